"""Tests for commissioner roster changes."""

import pytest

from cmr_dynasty.core.errors import LeagueError, TeamNotFound
from cmr_dynasty.core.roster import move_coach, release_coach
from cmr_dynasty.db.repository import Repository


@pytest.fixture
async def league(repo: Repository) -> Repository:
    await repo.create_team("Troy", stars=2.5, taken_by="111", taken_by_name="alice")
    await repo.create_team("Navy", stars=2.5, taken_by="222", taken_by_name="bob")
    await repo.create_team("Army", stars=2.5)
    return repo


async def _team_id(repo: Repository, name: str) -> int:
    row = await repo.get_team_by_name(name)
    assert row is not None
    return row.id


class TestReleaseCoach:
    async def test_frees_team(self, league: Repository):
        team = await release_coach(league, "111")
        assert team.name == "Troy"
        assert team.taken_by == "111"
        assert await league.get_team_for_user("111") is None
        open_names = [t.name for t in await league.get_open_teams(2.5)]
        assert "Troy" in open_names

    async def test_user_without_team(self, league: Repository):
        with pytest.raises(TeamNotFound, match="User ID 999 has no team."):
            await release_coach(league, "999")


class TestMoveCoach:
    async def test_moves_to_open_team(self, league: Repository):
        army_id = await _team_id(league, "Army")
        old, new = await move_coach(league, "alice", str(army_id))
        assert (old.name, new.name) == ("Troy", "Army")
        moved = await league.get_team_for_user("111")
        assert moved is not None
        assert moved.id == army_id
        assert moved.taken_by_name == "alice"
        troy = await league.get_team_by_name("Troy")
        assert troy is not None
        assert troy.taken_by is None

    async def test_occupied_team_is_not_overwritten(self, league: Repository):
        navy_id = await _team_id(league, "Navy")
        with pytest.raises(LeagueError, match="already has a coach"):
            await move_coach(league, "alice", str(navy_id))
        navy = await league.get_team(navy_id)
        assert navy is not None
        assert navy.taken_by == "222"

    async def test_same_team_rejected(self, league: Repository):
        troy_id = await _team_id(league, "Troy")
        with pytest.raises(LeagueError, match="already coaches"):
            await move_coach(league, "alice", str(troy_id))

    async def test_unknown_coach(self, league: Repository):
        with pytest.raises(TeamNotFound, match='Coach "carol" not found.'):
            await move_coach(league, "carol", "1")

    @pytest.mark.parametrize("team_id", ["9999", "abc", ""])
    async def test_unknown_team(self, league: Repository, team_id: str):
        with pytest.raises(TeamNotFound, match="New team not found."):
            await move_coach(league, "alice", team_id)
