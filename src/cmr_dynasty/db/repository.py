"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. Results and news items are append-only.
Team claims and clock advances are conditional writes that report whether
they took effect.
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cmr_dynasty.db.models import MetaRow, NewsFeedRow, RecordRow, ResultRow, TeamRow
from cmr_dynasty.models.league import LeagueClock

CURRENT_SEASON_KEY = "current_season"
CURRENT_WEEK_KEY = "current_week"


def meta_int(raw: str) -> int:
    """Parse a stored clock value, tolerating "01" and "1.0"."""
    return int(float(raw.strip()))


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Teams ---

    async def create_team(
        self,
        name: str,
        conference: str | None = None,
        stars: float | None = None,
        taken_by: str | None = None,
        taken_by_name: str | None = None,
    ) -> TeamRow:
        row = TeamRow(
            name=name,
            conference=conference,
            stars=stars,
            taken_by=taken_by,
            taken_by_name=taken_by_name,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_team(self, team_id: int) -> TeamRow | None:
        return await self.session.get(TeamRow, team_id)

    async def get_team_by_name(self, name: str) -> TeamRow | None:
        stmt = select(TeamRow).where(func.lower(TeamRow.name) == name.lower()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all_teams(self) -> list[TeamRow]:
        """All teams, ordered by conference then name."""
        stmt = select(TeamRow).order_by(TeamRow.conference, TeamRow.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_team_for_user(self, user_id: str) -> TeamRow | None:
        """The team a user currently occupies, if any."""
        stmt = select(TeamRow).where(TeamRow.taken_by == user_id).order_by(TeamRow.id).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_teams_for_coach_name(self, coach_name: str) -> list[TeamRow]:
        stmt = select(TeamRow).where(TeamRow.taken_by_name == coach_name).order_by(TeamRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_occupied_teams(self) -> list[TeamRow]:
        stmt = select(TeamRow).where(TeamRow.taken_by.is_not(None)).order_by(TeamRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_open_teams(self, stars: float) -> list[TeamRow]:
        """Unoccupied teams at exactly the given desirability tier."""
        stmt = (
            select(TeamRow)
            .where(TeamRow.stars == stars, TeamRow.taken_by.is_(None))
            .order_by(TeamRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def claim_team(self, team_id: int, user_id: str, user_name: str) -> bool:
        """Set a team's occupant only if it is currently unoccupied.

        Returns True when the claim took effect.
        """
        stmt = (
            update(TeamRow)
            .where(TeamRow.id == team_id, TeamRow.taken_by.is_(None))
            .values(taken_by=user_id, taken_by_name=user_name)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release_team(self, team_id: int) -> None:
        stmt = (
            update(TeamRow)
            .where(TeamRow.id == team_id)
            .values(taken_by=None, taken_by_name=None)
        )
        await self.session.execute(stmt)

    # --- Season records ---

    async def get_record(self, season: int, team_id: int) -> RecordRow | None:
        stmt = select(RecordRow).where(RecordRow.season == season, RecordRow.team_id == team_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_records_for_season(self, season: int) -> list[RecordRow]:
        stmt = select(RecordRow).where(RecordRow.season == season).order_by(RecordRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_records(self) -> list[RecordRow]:
        stmt = select(RecordRow).order_by(RecordRow.season, RecordRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def increment_record(
        self,
        season: int,
        team: TeamRow,
        did_win: bool,
        opponent_is_human: bool,
        occupant_name: str | None = None,
    ) -> RecordRow:
        """Add one game to a team's season record, creating it on first game.

        The occupant columns are refreshed from ``team`` on every write.
        """
        row = await self.get_record(season, team.id)
        if row is None:
            row = RecordRow(
                season=season,
                team_id=team.id,
                team_name=team.name,
                wins=0,
                losses=0,
                user_wins=0,
                user_losses=0,
            )
            self.session.add(row)

        row.team_name = team.name
        row.taken_by = team.taken_by
        row.taken_by_name = occupant_name or team.taken_by_name
        if did_win:
            row.wins += 1
        else:
            row.losses += 1
        if opponent_is_human:
            if did_win:
                row.user_wins += 1
            else:
                row.user_losses += 1
        await self.session.flush()
        return row

    # --- Results ---

    async def store_result(self, **fields: object) -> ResultRow:
        row = ResultRow(**fields)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_submitted_result(
        self, season: int, week: int, user_team_id: int
    ) -> ResultRow | None:
        """The result a team already submitted for this season/week, if any."""
        stmt = (
            select(ResultRow)
            .where(
                ResultRow.season == season,
                ResultRow.week == week,
                ResultRow.user_team_id == user_team_id,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_results_for_season(self, season: int) -> list[ResultRow]:
        stmt = select(ResultRow).where(ResultRow.season == season).order_by(ResultRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_results_for_week(self, season: int, week: int) -> list[ResultRow]:
        stmt = (
            select(ResultRow)
            .where(ResultRow.season == season, ResultRow.week == week)
            .order_by(ResultRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_results(self) -> list[ResultRow]:
        stmt = select(ResultRow).order_by(ResultRow.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- News feed ---

    async def add_news(self, season: int, week: int, text: str) -> NewsFeedRow:
        row = NewsFeedRow(season=season, week=week, text=text)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_news_for_week(self, season: int, week: int) -> list[NewsFeedRow]:
        stmt = (
            select(NewsFeedRow)
            .where(NewsFeedRow.season == season, NewsFeedRow.week == week)
            .order_by(NewsFeedRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- League clock ---

    async def get_clock(self) -> LeagueClock:
        """Read season and week in a single query. Missing keys use defaults."""
        stmt = select(MetaRow).where(MetaRow.key.in_([CURRENT_SEASON_KEY, CURRENT_WEEK_KEY]))
        result = await self.session.execute(stmt)
        values = {row.key: row.value for row in result.scalars().all()}
        defaults = LeagueClock()
        season = values.get(CURRENT_SEASON_KEY)
        week = values.get(CURRENT_WEEK_KEY)
        return LeagueClock(
            season=meta_int(season) if season is not None else defaults.season,
            week=meta_int(week) if week is not None else defaults.week,
        )

    async def ensure_clock(self) -> LeagueClock:
        """Insert default clock keys if they are missing.

        Existing values are rewritten in canonical form ("01" and "1.0" become
        "1") so ``compare_and_set_meta`` can match them.
        """
        defaults = LeagueClock()
        clock_keys = ((CURRENT_SEASON_KEY, defaults.season), (CURRENT_WEEK_KEY, defaults.week))
        for key, value in clock_keys:
            row = await self.session.get(MetaRow, key)
            if row is None:
                self.session.add(MetaRow(key=key, value=str(value)))
            elif row.value != str(meta_int(row.value)):
                row.value = str(meta_int(row.value))
        await self.session.flush()
        return await self.get_clock()

    async def compare_and_set_meta(self, key: str, expected: int, new: int) -> bool:
        """Write ``new`` only if the stored value still equals ``expected``.

        A missing key counts as holding ``expected`` and is inserted.
        """
        stmt = (
            update(MetaRow)
            .where(MetaRow.key == key, MetaRow.value == str(expected))
            .values(value=str(new))
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 1:
            return True
        if await self.session.get(MetaRow, key) is None:
            self.session.add(MetaRow(key=key, value=str(new)))
            await self.session.flush()
            return True
        return False

    async def set_meta(self, key: str, value: int) -> None:
        row = await self.session.get(MetaRow, key)
        if row is None:
            self.session.add(MetaRow(key=key, value=str(value)))
        else:
            row.value = str(value)
        await self.session.flush()
