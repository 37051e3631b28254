"""League clock -- advancing weeks and seasons, press releases, weekly summaries.

The clock (``current_season``/``current_week`` in ``meta``) is read once per
command and the same value is used for every write in that command. Advances
are compare-and-set: the write only lands if the stored value still matches
what was read, so two commissioners advancing at once move the clock once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from cmr_dynasty.config import VALID_ADVANCE_INTERVALS
from cmr_dynasty.core.errors import ClockConflict, LeagueError
from cmr_dynasty.db.repository import CURRENT_SEASON_KEY, CURRENT_WEEK_KEY, Repository
from cmr_dynasty.models.league import GameResult, LeagueClock

logger = logging.getLogger(__name__)

NO_WEEKLY_NEWS = "No news or results this week."


@dataclass(frozen=True)
class WeekAdvance:
    """The completed week's content and the week the league moved to."""

    season: int
    completed_week: int
    new_week: int
    press_releases: list[str] = field(default_factory=list)
    results: list[GameResult] = field(default_factory=list)


def validate_interval(hours: int) -> int:
    if hours not in VALID_ADVANCE_INTERVALS:
        raise LeagueError("Interval must be 24 or 48 hours.")
    return hours


def next_advance_time(now: datetime, hours: int, tz_name: str) -> str:
    """Format ``now + hours`` in the league time zone, e.g. ``"Sun, Oct 18, 3:04 PM CDT"``."""
    local = (now + timedelta(hours=hours)).astimezone(ZoneInfo(tz_name))
    hour = local.hour % 12 or 12
    return f"{local:%a, %b} {local.day}, {hour}:{local:%M %p %Z}"


def advance_message(role_mention: str, new_week: int, hours: int, when: str) -> str:
    return (
        f"{role_mention} We have advanced to Week {new_week}\n"
        f"Next advance expected in {hours} hours: **{when}**"
    )


def weekly_summary_text(press_releases: list[str], results: list[GameResult]) -> str:
    """Body of the weekly summary: press releases as bullets, then results."""
    parts: list[str] = []
    if press_releases:
        parts.append("**Press Releases:**\n" + "\n".join(f"• {text}" for text in press_releases))
    if results:
        games = [
            f"{r.user_team_name} {r.user_score} - {r.opponent_team_name} {r.opponent_score}\n"
            f"Summary: {r.summary or 'No summary'}"
            for r in results
        ]
        parts.append("**Game Results:**\n" + "\n\n".join(games))
    return "\n\n".join(parts) if parts else NO_WEEKLY_NEWS


async def advance_week(repo: Repository, clock: LeagueClock) -> WeekAdvance:
    """Move the week forward by one and collect the completed week's content.

    Raises ClockConflict when the stored week no longer equals ``clock.week``.
    """
    new_week = clock.week + 1
    if not await repo.compare_and_set_meta(CURRENT_WEEK_KEY, clock.week, new_week):
        logger.warning("week_advance_conflict season=%d expected_week=%d", clock.season, clock.week)
        raise ClockConflict("The week was already advanced. Check the current week and try again.")

    press = [row.text for row in await repo.get_news_for_week(clock.season, clock.week)]
    results = [
        GameResult.model_validate(row)
        for row in await repo.get_results_for_week(clock.season, clock.week)
    ]
    logger.info(
        "week_advanced season=%d week=%d->%d press=%d results=%d",
        clock.season,
        clock.week,
        new_week,
        len(press),
        len(results),
    )
    return WeekAdvance(
        season=clock.season,
        completed_week=clock.week,
        new_week=new_week,
        press_releases=press,
        results=results,
    )


async def advance_season(repo: Repository, clock: LeagueClock) -> LeagueClock:
    """Start the next season at week 0. Both keys change in the caller's transaction."""
    new_season = clock.season + 1
    if not await repo.compare_and_set_meta(CURRENT_SEASON_KEY, clock.season, new_season):
        logger.warning("season_advance_conflict expected_season=%d", clock.season)
        raise ClockConflict(
            "The season was already advanced. Check the current season and try again."
        )
    await repo.set_meta(CURRENT_WEEK_KEY, 0)
    logger.info("season_advanced season=%d->%d", clock.season, new_season)
    return LeagueClock(season=new_season, week=0)


async def post_press_release(repo: Repository, clock: LeagueClock, text: str) -> None:
    await repo.add_news(clock.season, clock.week, text)
    logger.info("press_release_added season=%d week=%d", clock.season, clock.week)
