"""Database engine and per-command sessions.

The bot and the API share one engine. Every slash command and every request
works inside a single ``get_session`` block, so its writes land together or
not at all.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cmr_dynasty.db.models import Base

logger = logging.getLogger(__name__)

# Applied to every new SQLite connection.
SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=15000",
)


def create_engine(database_url: str) -> AsyncEngine:
    """Build the async engine for ``database_url`` (SQLite gets the pragmas above)."""
    if not database_url.startswith("sqlite"):
        return create_async_engine(database_url, pool_pre_ping=True)

    engine = create_async_engine(database_url, connect_args={"timeout": 15})

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn: object, _record: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
        cursor.close()

    return engine


async def init_db(engine: AsyncEngine) -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_initialized url=%s", engine.url.render_as_string(hide_password=True))


_factories: dict[int, async_sessionmaker[AsyncSession]] = {}


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for ``engine``, built once per engine.

    ``expire_on_commit`` is off so rows returned from a command can still be
    read after its session commits.
    """
    factory = _factories.get(id(engine.sync_engine))
    if factory is None:
        factory = async_sessionmaker(engine, expire_on_commit=False)
        _factories[id(engine.sync_engine)] = factory
    return factory


@asynccontextmanager
async def get_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit when the block exits cleanly, roll back otherwise."""
    async with create_session_factory(engine)() as session:
        try:
            yield session
        except BaseException:
            await session.rollback()
            raise
        await session.commit()
