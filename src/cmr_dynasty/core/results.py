"""Game result submission.

Results are stored from the submitting side's point of view. Each submission
updates the season records of the human-controlled teams involved; the
``user_wins``/``user_losses`` columns only move when the other side is also
human-controlled.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cmr_dynasty.core.errors import DuplicateSubmission, NoTeamControlled, TeamNotFound
from cmr_dynasty.db.repository import Repository
from cmr_dynasty.models.league import GameResult, LeagueClock, SeasonRecord, Team

logger = logging.getLogger(__name__)


def find_team_by_name(teams: Sequence[Team], name: str) -> Team | None:
    """Exact case-insensitive match first, then the first substring match."""
    needle = name.strip().lower()
    if not needle:
        return None
    for team in teams:
        if team.name.lower() == needle:
            return team
    for team in teams:
        if needle in team.name.lower():
            return team
    return None


def outcome_flag(score: int, other_score: int) -> str:
    """``"W"`` for a strictly higher score. Ties are recorded as losses."""
    return "W" if score > other_score else "L"


@dataclass(frozen=True)
class SubmittedGame:
    """What a ``/game-result`` submission wrote."""

    clock: LeagueClock
    result: GameResult
    user_team: Team
    opponent_team: Team
    user_record: SeasonRecord
    opponent_record: SeasonRecord | None

    @property
    def won(self) -> bool:
        return self.result.result == "W"


@dataclass(frozen=True)
class EnteredGame:
    """What a commissioner-entered result wrote."""

    season: int
    week: int
    result: GameResult
    home_team: Team
    away_team: Team

    @property
    def home_won(self) -> bool:
        return self.result.result == "W"


async def _all_teams(repo: Repository) -> list[Team]:
    return [Team.model_validate(row) for row in await repo.get_all_teams()]


async def submit_game_result(
    repo: Repository,
    clock: LeagueClock,
    user_id: str,
    username: str,
    opponent_name: str,
    user_score: int,
    opponent_score: int,
    summary: str,
) -> SubmittedGame:
    """Record a game for the team the user occupies, in the clock's season and week.

    Raises NoTeamControlled, DuplicateSubmission or TeamNotFound before any
    write. One submission per team per week.
    """
    user_row = await repo.get_team_for_user(user_id)
    if user_row is None:
        raise NoTeamControlled()
    user_team = Team.model_validate(user_row)

    existing = await repo.get_submitted_result(clock.season, clock.week, user_team.id)
    if existing is not None:
        raise DuplicateSubmission(existing.opponent_team_name)

    opponent = find_team_by_name(await _all_teams(repo), opponent_name)
    if opponent is None:
        raise TeamNotFound(f'Opponent "{opponent_name}" not found.')

    flag = outcome_flag(user_score, opponent_score)
    won = flag == "W"
    coach_name = user_team.taken_by_name or username

    row = await repo.store_result(
        season=clock.season,
        week=clock.week,
        user_team_id=user_team.id,
        user_team_name=user_team.name,
        opponent_team_id=opponent.id,
        opponent_team_name=opponent.name,
        user_score=user_score,
        opponent_score=opponent_score,
        summary=summary,
        result=flag,
        taken_by=user_team.taken_by,
        taken_by_name=coach_name,
    )

    user_record = await repo.increment_record(
        clock.season, user_row, won, opponent.is_human, occupant_name=coach_name
    )
    opponent_record = None
    if opponent.is_human:
        opponent_row = await repo.get_team(opponent.id)
        if opponent_row is not None:
            # The submitter always occupies a team, so the opponent's game is a user game.
            opponent_record = await repo.increment_record(clock.season, opponent_row, not won, True)

    logger.info(
        "game_result_recorded season=%d week=%d team=%s opponent=%s score=%d-%d result=%s",
        clock.season,
        clock.week,
        user_team.id,
        opponent.id,
        user_score,
        opponent_score,
        flag,
    )
    return SubmittedGame(
        clock=clock,
        result=GameResult.model_validate(row),
        user_team=user_team,
        opponent_team=opponent,
        user_record=SeasonRecord.model_validate(user_record),
        opponent_record=SeasonRecord.model_validate(opponent_record) if opponent_record else None,
    )


async def enter_any_game_result(
    repo: Repository,
    clock: LeagueClock,
    home_name: str,
    away_name: str,
    home_score: int,
    away_score: int,
    week: int,
    summary: str,
) -> EnteredGame:
    """Commissioner entry of any game, in the current season and an explicit week.

    The home side is stored as the submitting side. No duplicate check.
    """
    teams = await _all_teams(repo)
    home = find_team_by_name(teams, home_name)
    if home is None:
        raise TeamNotFound(f'Home team "{home_name}" not found.')
    away = find_team_by_name(teams, away_name)
    if away is None:
        raise TeamNotFound(f'Away team "{away_name}" not found.')

    flag = outcome_flag(home_score, away_score)
    home_won = flag == "W"

    row = await repo.store_result(
        season=clock.season,
        week=week,
        user_team_id=home.id,
        user_team_name=home.name,
        opponent_team_id=away.id,
        opponent_team_name=away.name,
        user_score=home_score,
        opponent_score=away_score,
        summary=summary,
        result=flag,
        taken_by=home.taken_by,
        taken_by_name=home.taken_by_name,
    )

    for team, won, other in ((home, home_won, away), (away, not home_won, home)):
        if not team.is_human:
            continue
        team_row = await repo.get_team(team.id)
        if team_row is not None:
            await repo.increment_record(clock.season, team_row, won, other.is_human)

    logger.info(
        "game_result_entered season=%d week=%d home=%s away=%s score=%d-%d",
        clock.season,
        week,
        home.id,
        away.id,
        home_score,
        away_score,
    )
    return EnteredGame(
        season=clock.season,
        week=week,
        result=GameResult.model_validate(row),
        home_team=home,
        away_team=away,
    )
