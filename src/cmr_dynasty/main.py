"""CMR Dynasty process entry point.

One process serves the health check and read-only league API and hosts the
Discord bot in the same event loop. Run with ``uvicorn cmr_dynasty.main:app``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from cmr_dynasty.api.standings import router as standings_router
from cmr_dynasty.api.teams import router as teams_router
from cmr_dynasty.config import Settings
from cmr_dynasty.core.offers import OfferBook
from cmr_dynasty.db.engine import create_engine, get_session, init_db
from cmr_dynasty.db.repository import Repository
from cmr_dynasty.discord.bot import is_discord_enabled, start_discord_bot

logger = logging.getLogger(__name__)


async def self_ping(url: str) -> None:
    """GET our own public URL so the hosting platform doesn't idle the process."""
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.get(url)
        logger.info("self_ping status=%d", response.status_code)
    except httpx.HTTPError as e:
        logger.warning("self_ping_failed url=%s err=%s", url, e)


def start_self_ping(settings: Settings) -> AsyncIOScheduler | None:
    """Schedule ``self_ping`` when SELF_PING_URL is configured."""
    if not settings.self_ping_url:
        return None
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        self_ping,
        trigger="interval",
        seconds=settings.self_ping_interval_seconds,
        kwargs={"url": settings.self_ping_url},
        id="self_ping",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("self_ping_scheduled every=%ds", settings.self_ping_interval_seconds)
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database and league clock, then bring up the bot and keep-alive job."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await init_db(engine)
    async with get_session(engine) as session:
        clock = await Repository(session).ensure_clock()
    logger.info("league_clock season=%d week=%d", clock.season, clock.week)

    app.state.engine = engine
    app.state.offer_book = OfferBook()

    bot = None
    if is_discord_enabled(settings):
        bot = await start_discord_bot(settings, engine, app.state.offer_book)
    else:
        logger.info("discord_bot_not_started env=%s", settings.dynasty_env)
    app.state.discord_bot = bot
    app.state.scheduler = start_self_ping(settings)

    yield

    if app.state.scheduler is not None:
        app.state.scheduler.shutdown(wait=False)
    if bot is not None:
        await bot.close()
        logger.info("discord_bot_stopped")
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app. Startup work happens in ``lifespan``."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.dynasty_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="CMR Dynasty",
        description="Job offers, game results and coach rankings for the CMR Dynasty league",
        version="0.1.0",
        docs_url=None if settings.dynasty_env == "production" else "/docs",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.include_router(teams_router)
    app.include_router(standings_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.dynasty_env}

    return app


app = create_app()
