"""Rankings API endpoints. Same engine as the /ranking commands."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter

from cmr_dynasty.api.deps import RepoDep
from cmr_dynasty.core.standings import rank_all_time, rank_season, ranking_lines
from cmr_dynasty.models.league import GameResult, SeasonRecord, Team

router = APIRouter(prefix="/api/standings", tags=["standings"])


@router.get("")
async def get_standings(repo: RepoDep, season: int | None = None) -> dict:
    """Season ranking of active coaches. Defaults to the current season."""
    if season is None:
        season = (await repo.get_clock()).season
    records = [SeasonRecord.model_validate(r) for r in await repo.get_records_for_season(season)]
    results = [GameResult.model_validate(r) for r in await repo.get_results_for_season(season)]
    occupants = {t.taken_by for t in await repo.get_occupied_teams() if t.taken_by}

    ranked = rank_season(records, results, occupants)
    return {"season": season, "data": [asdict(line) for line in ranking_lines(ranked)]}


@router.get("/all-time")
async def get_all_time_standings(repo: RepoDep) -> dict:
    """All-time ranking of coaches who currently hold a team."""
    records = [SeasonRecord.model_validate(r) for r in await repo.get_all_records()]
    results = [GameResult.model_validate(r) for r in await repo.get_all_results()]
    teams = [Team.model_validate(t) for t in await repo.get_all_teams()]

    ranked = rank_all_time(records, results, teams)
    return {"data": [asdict(line) for line in ranking_lines(ranked, fallback_name="Unknown")]}
