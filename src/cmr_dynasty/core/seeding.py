"""Team seeding -- loading the league's team list from YAML.

File format::

    teams:
      - name: Appalachian State
        conference: Sun Belt
        stars: 2.5
      - name: Army
        stars: 2.0
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from cmr_dynasty.db.repository import Repository

logger = logging.getLogger(__name__)


class TeamSeed(BaseModel):
    name: str = Field(min_length=1)
    conference: str | None = None
    stars: float | None = None


class TeamsConfig(BaseModel):
    teams: list[TeamSeed] = Field(default_factory=list)


def load_teams_yaml(path: str | Path) -> TeamsConfig:
    """Load and validate a teams file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return TeamsConfig.model_validate(data)


async def seed_teams(repo: Repository, config: TeamsConfig) -> int:
    """Insert teams whose name is not already present. Returns how many were added."""
    added = 0
    for seed in config.teams:
        if await repo.get_team_by_name(seed.name) is not None:
            continue
        await repo.create_team(name=seed.name, conference=seed.conference, stars=seed.stars)
        added += 1
    await repo.ensure_clock()
    logger.info("teams_seeded added=%d total=%d", added, len(config.teams))
    return added
