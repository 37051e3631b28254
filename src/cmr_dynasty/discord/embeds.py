"""Discord embed builders for the CMR Dynasty league.

Builds discord.Embed objects for game results, press releases, weekly
summaries, rankings, and the team list. Each builder takes domain data and
returns a styled embed ready to send.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import discord

from cmr_dynasty.core.season import weekly_summary_text
from cmr_dynasty.core.standings import RankingLine
from cmr_dynasty.models.league import GameResult, SeasonRecord, Team

# Color palette
COLOR_WIN = 0x00FF00  # Green: game won by the submitting side
COLOR_LOSS = 0xFF0000  # Red: game lost by the submitting side
COLOR_PRESS = 0xFFA500  # Orange: press releases
COLOR_SUMMARY = 0x1E90FF  # Blue: weekly summary
COLOR_RANKINGS = 0xFFD700  # Gold: rankings
COLOR_TEAM_LIST = 0x2B2D31  # Dark: team list

# Discord rejects embed descriptions longer than this.
DESCRIPTION_LIMIT = 4096

TEAM_LIST_TITLE = "2.5\N{BLACK STAR} Teams + All Taken Teams"
RANKINGS_FOOTNOTE = "*Record in parentheses is vs user teams only*"


def _now() -> datetime:
    return datetime.now(UTC)


def build_game_result_embed(
    user_team: Team,
    opponent_team: Team,
    result: GameResult,
    user_record: SeasonRecord,
    opponent_record: SeasonRecord | None = None,
) -> discord.Embed:
    """Box score for a submitted game, framed from the submitting side."""
    record_text = f"Record: {user_team.name} {user_record.record}"
    if opponent_record is not None:
        record_text += f", {opponent_team.name} {opponent_record.record}"

    description = (
        f"{user_team.name.ljust(20)} {result.user_score}\n"
        f"{opponent_team.name.ljust(20)} {result.opponent_score}\n"
        f"{record_text}\n"
        f"Summary: {result.summary or 'No summary provided'}"
    )
    return discord.Embed(
        title=f"Game Result: {user_team.name} vs {opponent_team.name}",
        description=description,
        color=COLOR_WIN if result.result == "W" else COLOR_LOSS,
        timestamp=_now(),
    )


def build_manual_result_embed(result: GameResult) -> discord.Embed:
    description = (
        f"{result.user_team_name} {result.user_score} - "
        f"{result.opponent_team_name} {result.opponent_score}\n"
        f"Week {result.week}, Season {result.season}\n"
        f"Summary: {result.summary or 'No summary'}"
    )
    return discord.Embed(
        title=f"Manually Entered Result: {result.user_team_name} vs {result.opponent_team_name}",
        description=description,
        color=COLOR_WIN if result.result == "W" else COLOR_LOSS,
        timestamp=_now(),
    )


def build_press_release_embed(text: str) -> discord.Embed:
    return discord.Embed(
        title="Press Release",
        description=text,
        color=COLOR_PRESS,
        timestamp=_now(),
    )


def build_weekly_summary_embed(
    season: int,
    week: int,
    press_releases: list[str],
    results: list[GameResult],
) -> discord.Embed:
    """Summary of a completed week, posted when the week advances."""
    description = weekly_summary_text(press_releases, results)
    if len(description) > DESCRIPTION_LIMIT:
        description = description[: DESCRIPTION_LIMIT - 1] + "\N{HORIZONTAL ELLIPSIS}"
    return discord.Embed(
        title=f"Weekly Summary \N{EN DASH} Season {season}, Week {week}",
        description=description,
        color=COLOR_SUMMARY,
        timestamp=_now(),
    )


def build_rankings_embed(
    lines: Sequence[RankingLine],
    title: str,
    empty_text: str,
) -> discord.Embed:
    """Ranking table in a code block, with the user-record footnote.

    Args:
        lines: Display rows, best first.
        title: Embed title.
        empty_text: Shown in place of the table when there are no rows.
    """
    body = "".join(line.render() for line in lines)
    body = body + RANKINGS_FOOTNOTE if body else empty_text
    return discord.Embed(
        title=title,
        description=f"```\n{body}\n```",
        color=COLOR_RANKINGS,
        timestamp=_now(),
    )


def build_season_rankings_embed(season: int, lines: Sequence[RankingLine]) -> discord.Embed:
    return build_rankings_embed(
        lines,
        title=f"\N{TROPHY} CMR Dynasty Rankings \N{EN DASH} Season {season}",
        empty_text="No user teams found.",
    )


def build_all_time_rankings_embed(lines: Sequence[RankingLine]) -> discord.Embed:
    return build_rankings_embed(
        lines,
        title="\N{CROWN} CMR Dynasty All-Time Rankings",
        empty_text="No user teams found across all seasons.",
    )


def team_list_text(teams: Sequence[Team], open_tier: float) -> str:
    """Open-tier and occupied teams grouped by conference, names sorted.

    Conferences keep the order they first appear in ``teams``.
    """
    by_conference: dict[str, list[Team]] = {}
    for team in teams:
        by_conference.setdefault(team.conference_label, []).append(team)

    sections: list[str] = []
    for conference, members in by_conference.items():
        shown = [
            t
            for t in members
            if t.is_human or (t.stars is not None and abs(t.stars - open_tier) < 0.0001)
        ]
        if not shown:
            continue
        shown.sort(key=lambda t: t.name)
        rows = [f"\n__**{conference}**__"]
        for t in shown:
            if t.is_human:
                rows.append(
                    f"\N{AMERICAN FOOTBALL} **{t.name}** \N{EM DASH} <@{t.taken_by}> "
                    f"({t.taken_by_name or 'Coach'})"
                )
            else:
                rows.append(
                    f"\N{LARGE GREEN CIRCLE} **{t.name}** \N{EM DASH} Available "
                    f"({open_tier:g}\N{BLACK STAR})"
                )
        sections.append("\n".join(rows))
    return "\n".join(sections)


def split_description(text: str, limit: int = DESCRIPTION_LIMIT) -> list[str]:
    """Split on line boundaries into chunks no longer than ``limit``."""
    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current.strip():
        chunks.append(current)
    return chunks


def build_team_list_embeds(teams: Sequence[Team], open_tier: float) -> list[discord.Embed]:
    """The team list as one or more embeds; continuations repeat the title."""
    text = team_list_text(teams, open_tier)
    if not text:
        text = "No 2.5\N{BLACK STAR} teams or taken teams available at this time."

    embeds: list[discord.Embed] = []
    for i, chunk in enumerate(split_description(text)):
        title = TEAM_LIST_TITLE if i == 0 else f"{TEAM_LIST_TITLE} (cont.)"
        embeds.append(
            discord.Embed(
                title=title,
                description=chunk,
                color=COLOR_TEAM_LIST,
                timestamp=_now(),
            )
        )
    return embeds
