"""Team, record, result, and clock models.

Snapshots of datastore rows. Built with ``model_validate(row)`` so they stay
usable after the session that loaded them has closed.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

_ROW_CONFIG = ConfigDict(from_attributes=True)


class Team(BaseModel):
    """A league team and its current occupant (if any)."""

    model_config = _ROW_CONFIG

    id: int
    name: str
    conference: str | None = None
    stars: float | None = None
    taken_by: str | None = None
    taken_by_name: str | None = None

    @property
    def is_human(self) -> bool:
        """True when a user currently occupies this team."""
        return bool(self.taken_by and self.taken_by.strip() and self.taken_by != "null")

    @property
    def conference_label(self) -> str:
        return self.conference or "Independent"


class SeasonRecord(BaseModel):
    """Win/loss aggregate for one team (or one occupant, when aggregated)."""

    model_config = _ROW_CONFIG

    season: int | None = None
    team_id: int | None = None
    team_name: str = ""
    taken_by: str | None = None
    taken_by_name: str | None = None
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    user_wins: int = Field(default=0, ge=0)
    user_losses: int = Field(default=0, ge=0)

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"

    @property
    def user_record(self) -> str:
        return f"{self.user_wins}-{self.user_losses}"


class GameResult(BaseModel):
    """One submitted game, from the submitting side's point of view."""

    model_config = _ROW_CONFIG

    season: int
    week: int
    user_team_id: int
    user_team_name: str
    opponent_team_id: int
    opponent_team_name: str
    user_score: int
    opponent_score: int
    summary: str = ""
    result: Literal["W", "L"]
    taken_by: str | None = None
    taken_by_name: str | None = None


class LeagueClock(BaseModel):
    """Current season and week, read once and passed through an operation."""

    model_config = ConfigDict(frozen=True)

    season: int = 1
    week: int = 0
