"""API tests: health, teams, standings over an in-memory database."""

import pytest
from httpx import ASGITransport, AsyncClient

from cmr_dynasty.config import Settings
from cmr_dynasty.core.results import submit_game_result
from cmr_dynasty.db.engine import create_engine, get_session, init_db
from cmr_dynasty.db.repository import Repository
from cmr_dynasty.main import create_app


@pytest.fixture
async def app_and_engine():
    """Create test app with in-memory database."""
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    application = create_app(settings)
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    application.state.engine = engine
    yield application, engine
    await engine.dispose()


@pytest.fixture
async def client(app_and_engine):
    application, _ = app_and_engine
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def seeded(app_and_engine):
    """Two coached teams with one game between them, plus an open and a high-tier team."""
    _, engine = app_and_engine
    async with get_session(engine) as session:
        repo = Repository(session)
        await repo.create_team(
            "Troy", conference="Sun Belt", stars=2.5, taken_by="111", taken_by_name="alice"
        )
        await repo.create_team("Navy", conference="AAC", stars=2.5, taken_by="222", taken_by_name="bob")
        await repo.create_team("Army", conference="Independent", stars=2.5)
        await repo.create_team("Alabama", conference="SEC", stars=5.0)
        clock = await repo.ensure_clock()
        await submit_game_result(repo, clock, "111", "alice", "Navy", 28, 10, "")
    return engine


class TestHealth:
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "env": "development"}


class TestTeams:
    async def test_list_all(self, client: AsyncClient, seeded):
        resp = await client.get("/api/teams")
        assert resp.status_code == 200
        names = {t["name"] for t in resp.json()["data"]}
        assert names == {"Troy", "Navy", "Army", "Alabama"}

    async def test_available_only(self, client: AsyncClient, seeded):
        resp = await client.get("/api/teams", params={"available": "true"})
        assert [t["name"] for t in resp.json()["data"]] == ["Army"]

    async def test_get_one(self, client: AsyncClient, seeded):
        resp = await client.get("/api/teams/1")
        assert resp.status_code == 200
        team = resp.json()["data"]
        assert team["name"] == "Troy"
        assert team["taken_by_name"] == "alice"

    async def test_not_found(self, client: AsyncClient):
        resp = await client.get("/api/teams/999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Team not found"


class TestStandings:
    async def test_current_season(self, client: AsyncClient, seeded):
        resp = await client.get("/api/standings")
        assert resp.status_code == 200
        body = resp.json()
        assert body["season"] == 1
        rows = body["data"]
        assert [r["display_name"] for r in rows] == ["alice", "bob"]
        assert rows[0] == {
            "rank": 1,
            "display_name": "alice",
            "team_name": "Troy",
            "record": "1-0",
            "user_record": "1-0",
        }

    async def test_empty_season(self, client: AsyncClient, seeded):
        resp = await client.get("/api/standings", params={"season": 7})
        assert resp.json() == {"season": 7, "data": []}

    async def test_all_time(self, client: AsyncClient, seeded):
        resp = await client.get("/api/standings/all-time")
        assert resp.status_code == 200
        rows = resp.json()["data"]
        assert [r["team_name"] for r in rows] == ["Troy", "Navy"]
        assert rows[1]["record"] == "0-1"
