"""FastAPI dependency injection for the engine and repository."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from cmr_dynasty.db.engine import get_session
from cmr_dynasty.db.repository import Repository


async def get_engine(request: Request) -> AsyncEngine:
    """Get the database engine from app state."""
    return request.app.state.engine


async def get_repo(
    engine: Annotated[AsyncEngine, Depends(get_engine)],
) -> AsyncGenerator[Repository, None]:
    """Yield a repository bound to a session that commits when the request succeeds."""
    async with get_session(engine) as session:
        yield Repository(session)


RepoDep = Annotated[Repository, Depends(get_repo)]
