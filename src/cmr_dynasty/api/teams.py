"""Team API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from cmr_dynasty.api.deps import RepoDep
from cmr_dynasty.models.league import Team

router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.get("")
async def list_teams(request: Request, repo: RepoDep, available: bool = False) -> dict:
    """List all teams, or only open teams at the offer tier when ``available`` is set."""
    if available:
        rows = await repo.get_open_teams(request.app.state.settings.dynasty_open_tier_stars)
    else:
        rows = await repo.get_all_teams()
    return {"data": [Team.model_validate(row).model_dump() for row in rows]}


@router.get("/{team_id}")
async def get_team(team_id: int, repo: RepoDep) -> dict:
    team = await repo.get_team(team_id)
    if not team:
        raise HTTPException(404, "Team not found")
    return {"data": Team.model_validate(team).model_dump()}
