"""Load the league's teams from YAML and initialise the league clock.

Usage:
    python scripts/seed_teams.py seed [PATH]   # Insert missing teams (default scripts/teams.yaml)
    python scripts/seed_teams.py status        # Print clock and team counts

Uses DATABASE_URL, defaulting to the local SQLite database (cmr_dynasty.db).
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from cmr_dynasty.core.seeding import load_teams_yaml, seed_teams
from cmr_dynasty.db.engine import create_engine, get_session, init_db
from cmr_dynasty.db.repository import Repository

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///cmr_dynasty.db")
DEFAULT_TEAMS_FILE = Path(__file__).parent / "teams.yaml"


async def seed(path: Path) -> None:
    config = load_teams_yaml(path)
    engine = create_engine(DATABASE_URL)
    await init_db(engine)
    async with get_session(engine) as session:
        added = await seed_teams(Repository(session), config)
    await engine.dispose()
    print(f"Added {added} of {len(config.teams)} teams from {path}")


async def status() -> None:
    engine = create_engine(DATABASE_URL)
    await init_db(engine)
    async with get_session(engine) as session:
        repo = Repository(session)
        clock = await repo.get_clock()
        teams = await repo.get_all_teams()
        occupied = await repo.get_occupied_teams()
    await engine.dispose()
    print(f"Season {clock.season}, Week {clock.week}")
    print(f"Teams: {len(teams)} ({len(occupied)} with a coach)")
    for team in occupied:
        print(f"  {team.name:<30} {team.taken_by_name} ({team.taken_by})")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return

    cmd = sys.argv[1]
    if cmd == "seed":
        path = Path(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_TEAMS_FILE
        asyncio.run(seed(path))
    elif cmd == "status":
        asyncio.run(status())
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)


if __name__ == "__main__":
    main()
