"""Tests for loading and seeding the team list."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cmr_dynasty.core.seeding import TeamsConfig, TeamSeed, load_teams_yaml, seed_teams
from cmr_dynasty.db.repository import Repository
from cmr_dynasty.models.league import LeagueClock

TEAMS_YAML = """\
teams:
  - name: Appalachian State
    conference: Sun Belt
    stars: 2.5
  - name: Army
    stars: 2.0
"""


@pytest.fixture
def teams_file(tmp_path: Path) -> Path:
    path = tmp_path / "teams.yaml"
    path.write_text(TEAMS_YAML)
    return path


class TestLoadTeamsYaml:
    def test_parses_teams(self, teams_file: Path):
        config = load_teams_yaml(teams_file)
        assert [t.name for t in config.teams] == ["Appalachian State", "Army"]
        assert config.teams[0].conference == "Sun Belt"
        assert config.teams[1].conference is None
        assert config.teams[1].stars == 2.0

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_teams_yaml(path).teams == []

    def test_blank_name_rejected(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("teams:\n  - name: ''\n")
        with pytest.raises(ValidationError):
            load_teams_yaml(path)

    def test_bundled_sample_loads(self):
        sample = Path(__file__).resolve().parent.parent / "scripts" / "teams.yaml"
        assert load_teams_yaml(sample).teams


class TestSeedTeams:
    async def test_inserts_and_initialises_clock(self, repo: Repository, teams_file: Path):
        added = await seed_teams(repo, load_teams_yaml(teams_file))
        assert added == 2
        assert len(await repo.get_all_teams()) == 2
        assert [t.name for t in await repo.get_open_teams(2.5)] == ["Appalachian State"]
        assert await repo.get_clock() == LeagueClock(season=1, week=0)

    async def test_existing_names_skipped(self, repo: Repository):
        await repo.create_team("Army", stars=2.0, taken_by="111", taken_by_name="alice")
        config = TeamsConfig(teams=[TeamSeed(name="army"), TeamSeed(name="Navy", stars=2.5)])
        assert await seed_teams(repo, config) == 1
        army = await repo.get_team_by_name("Army")
        assert army is not None
        assert army.taken_by == "111"
