"""Commissioner roster changes -- resetting and moving coaches."""

from __future__ import annotations

import logging

from cmr_dynasty.core.errors import LeagueError, TeamNotFound
from cmr_dynasty.db.repository import Repository
from cmr_dynasty.models.league import Team

logger = logging.getLogger(__name__)


async def release_coach(repo: Repository, user_id: str) -> Team:
    """Free the team a user occupies. Returns the team as it was before release."""
    row = await repo.get_team_for_user(user_id)
    if row is None:
        raise TeamNotFound(f"User ID {user_id} has no team.")
    team = Team.model_validate(row)
    await repo.release_team(team.id)
    logger.info("coach_released user=%s team=%s", user_id, team.id)
    return team


async def move_coach(repo: Repository, coach_name: str, new_team_id: str) -> tuple[Team, Team]:
    """Move a coach (by display name) to another team.

    The new team is claimed with a conditional write, so a team that already
    has a coach is never overwritten. Returns ``(old_team, new_team)`` as they
    were before the move.
    """
    coach_teams = await repo.get_teams_for_coach_name(coach_name)
    if not coach_teams:
        raise TeamNotFound(f'Coach "{coach_name}" not found.')
    old_team = Team.model_validate(coach_teams[0])

    new_row = await repo.get_team(int(new_team_id)) if new_team_id.strip().isdigit() else None
    if new_row is None:
        raise TeamNotFound("New team not found.")
    new_team = Team.model_validate(new_row)

    if new_team.id == old_team.id:
        raise LeagueError(f"**{coach_name}** already coaches **{new_team.name}**.")
    if not await repo.claim_team(new_team.id, old_team.taken_by or "", coach_name):
        raise LeagueError(f"**{new_team.name}** already has a coach.")
    await repo.release_team(old_team.id)

    logger.info(
        "coach_moved coach=%s from_team=%s to_team=%s", old_team.taken_by, old_team.id, new_team.id
    )
    return old_team, new_team
