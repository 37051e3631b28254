"""Discord bot helpers — DB session context, guild channel and role lookup."""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncGenerator, Iterable
from contextlib import asynccontextmanager

import discord
from sqlalchemy.ext.asyncio import AsyncEngine

from cmr_dynasty.config import (
    AUTOCOMPLETE_LIMIT,
    AUTOCOMPLETE_MIN_LENGTH,
    HEAD_COACH_ROLE,
    TEAM_CHANNELS_CATEGORY,
)
from cmr_dynasty.db.engine import get_session
from cmr_dynasty.db.repository import Repository

logger = logging.getLogger(__name__)

STREAM_LINK_RE = re.compile(
    r"https?://(?:www\.)?(?:youtube\.com|youtu\.be|twitch\.tv)/[^\s<>\"')]+",
    re.IGNORECASE,
)
GAME_CONTEXT_RE = re.compile(r"live|stream|game|watch|vs|playing", re.IGNORECASE)


@asynccontextmanager
async def db_session(
    engine: AsyncEngine,
) -> AsyncGenerator[Repository, None]:
    """Yield a Repository bound to a fresh async session."""
    async with get_session(engine) as session:
        yield Repository(session)


def normalize_channel_name(team_name: str) -> str:
    """Team name as Discord stores it for a text channel.

    Lowercase, whitespace to hyphens, other punctuation dropped, hyphen runs
    collapsed. "St. Mary's" becomes "st-marys".
    """
    raw = re.sub(r"\s+", "-", team_name.strip().lower())
    return re.sub(r"-{2,}", "-", re.sub(r"[^a-z0-9-]", "", raw)).strip("-")


def is_team_channel(channel: object) -> bool:
    """True for channels under the team category or named like a team channel."""
    category = getattr(channel, "category", None)
    if category is not None and category.name == TEAM_CHANNELS_CATEGORY:
        return True
    name = (getattr(channel, "name", "") or "").lower()
    return "team-" in name or "-team" in name


def has_stream_link(content: str) -> bool:
    """A YouTube/Twitch link alongside words that suggest a game is on."""
    return bool(STREAM_LINK_RE.search(content) and GAME_CONTEXT_RE.search(content))


def find_text_channel(guild: discord.Guild, name: str) -> discord.TextChannel | None:
    return discord.utils.get(guild.text_channels, name=name)


def find_team_category(guild: discord.Guild) -> discord.CategoryChannel | None:
    return discord.utils.get(guild.categories, name=TEAM_CHANNELS_CATEGORY)


def find_team_channel(guild: discord.Guild, team_name: str) -> discord.TextChannel | None:
    """The team's text channel under the team category, if it exists."""
    category = find_team_category(guild)
    if category is None:
        return None
    slug = normalize_channel_name(team_name)
    return discord.utils.get(category.text_channels, name=slug)


async def find_or_create_category(guild: discord.Guild) -> discord.CategoryChannel:
    category = find_team_category(guild)
    if category is None:
        category = await guild.create_category(TEAM_CHANNELS_CATEGORY)
        logger.info("discord_created category=%s", TEAM_CHANNELS_CATEGORY)
    return category


async def find_or_create_role(guild: discord.Guild, name: str = HEAD_COACH_ROLE) -> discord.Role:
    role = discord.utils.get(guild.roles, name=name)
    if role is None:
        role = await guild.create_role(name=name, reason="Role for team heads")
        logger.info("discord_created role=%s", name)
    return role


async def find_or_create_team_channel(
    guild: discord.Guild,
    team_name: str,
) -> tuple[discord.TextChannel, bool]:
    """Return the team's channel and whether it was just created."""
    category = await find_or_create_category(guild)
    slug = normalize_channel_name(team_name)
    existing = discord.utils.get(category.text_channels, name=slug)
    if existing is not None:
        return existing, False
    channel = await guild.create_text_channel(
        slug,
        category=category,
        topic=f"Team channel for {team_name}",
        reason=f"Team channel for {team_name}",
    )
    logger.info("discord_created team_channel=%s id=%d", slug, channel.id)
    return channel, True


def autocomplete_matches(
    options: Iterable[tuple[str, str]],
    current: str,
) -> list[tuple[str, str]]:
    """Filter ``(label, value)`` pairs for an autocomplete response.

    Nothing is suggested until a couple of characters are typed. Matching is
    a case-insensitive substring test on the label; duplicates are dropped.
    """
    needle = current.strip().lower()
    if len(needle) < AUTOCOMPLETE_MIN_LENGTH:
        return []
    matches = sorted({(label, value) for label, value in options if needle in label.lower()})
    return matches[:AUTOCOMPLETE_LIMIT]
