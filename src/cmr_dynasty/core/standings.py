"""Coach rankings — season and all-time.

Ranks human-controlled teams with a pairwise comparator:

1. If the two records are within one win of each other, the better overall
   win percentage ranks higher; otherwise the team with more wins ranks
   higher and the comparison stops there.
2. Better win percentage against human-controlled opponents.
3. Better head-to-head win percentage between the two occupants.

The comparator looks at only the two records in front of it, so it is not
transitive for three or more records (A > B and B > C does not imply A > C).
Orderings of such groups depend on the sort algorithm. Keep it pairwise:
existing league tables were produced this way.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from cmr_dynasty.models.league import GameResult, SeasonRecord, Team

H2HKey = tuple[str, str]


@dataclass
class H2HTally:
    wins: int = 0
    losses: int = 0

    @property
    def pct(self) -> float:
        games = self.wins + self.losses
        return self.wins / games if games > 0 else 0.0


@dataclass(frozen=True)
class RankingLine:
    """One display row of a ranking table."""

    rank: int
    display_name: str
    team_name: str
    record: str
    user_record: str

    def render(self) -> str:
        return (
            f"{self.rank:>2}. {self.display_name}\n"
            f" {self.team_name}\n"
            f" {self.record} ({self.user_record})\n\n"
        )


def win_pct(wins: int, losses: int) -> float:
    """Wins over games played, or 0 when no games were played."""
    games = wins + losses
    return wins / games if games > 0 else 0.0


def build_h2h_map(
    results: Iterable[GameResult],
    records: Sequence[SeasonRecord],
) -> dict[H2HKey, H2HTally]:
    """Tally occupant-vs-occupant results from the game log.

    The opponent's occupant is resolved through the first record whose
    ``team_id`` matches the result's opponent team. Results whose submitting
    side has no occupant, or whose opponent cannot be resolved to one, are
    skipped. Keys are directional: ``(a, b)`` is a's record against b.
    """
    occupant_by_team: dict[int, str | None] = {}
    for rec in records:
        if rec.team_id is not None and rec.team_id not in occupant_by_team:
            occupant_by_team[rec.team_id] = rec.taken_by

    h2h: dict[H2HKey, H2HTally] = {}
    for r in results:
        if not r.taken_by or not r.opponent_team_id:
            continue
        opponent = occupant_by_team.get(r.opponent_team_id)
        if not opponent:
            continue
        tally = h2h.setdefault((r.taken_by, opponent), H2HTally())
        if r.result == "W":
            tally.wins += 1
        else:
            tally.losses += 1
    return h2h


def h2h_pct(h2h: dict[H2HKey, H2HTally], user_a: str | None, user_b: str | None) -> float:
    """User A's win percentage against user B, or 0 with no games between them."""
    tally = h2h.get((user_a or "", user_b or ""))
    return tally.pct if tally else 0.0


def _desc(a_value: float, b_value: float) -> int:
    """Comparator result that puts the larger value first."""
    if a_value > b_value:
        return -1
    if a_value < b_value:
        return 1
    return 0


def compare_records(
    a: SeasonRecord,
    b: SeasonRecord,
    h2h: dict[H2HKey, H2HTally],
) -> int:
    """Pairwise ranking comparator. Negative means ``a`` ranks ahead of ``b``."""
    if abs(a.wins - b.wins) <= 1:
        order = _desc(win_pct(a.wins, a.losses), win_pct(b.wins, b.losses))
        if order:
            return order
    else:
        return _desc(a.wins, b.wins)

    order = _desc(win_pct(a.user_wins, a.user_losses), win_pct(b.user_wins, b.user_losses))
    if order:
        return order

    return _desc(h2h_pct(h2h, a.taken_by, b.taken_by), h2h_pct(h2h, b.taken_by, a.taken_by))


def sort_records(
    records: Iterable[SeasonRecord],
    h2h: dict[H2HKey, H2HTally],
) -> list[SeasonRecord]:
    """Sort best-first with the pairwise comparator."""
    key = functools.cmp_to_key(lambda a, b: compare_records(a, b, h2h))
    return sorted(records, key=key)


def rank_season(
    records: Sequence[SeasonRecord],
    results: Iterable[GameResult],
    active_occupants: set[str],
) -> list[SeasonRecord]:
    """Rank one season's records for occupants who currently hold a team.

    ``records`` is the full season; the H2H map resolves opponents against all
    of it, while only records held by an active occupant are ranked.
    """
    h2h = build_h2h_map(results, records)
    active = [r for r in records if r.taken_by in active_occupants]
    return sort_records(active, h2h)


def aggregate_all_time(
    records: Iterable[SeasonRecord],
    current_teams: Iterable[Team],
) -> list[SeasonRecord]:
    """Sum every season's record per current occupant.

    Occupants who hold no team today are dropped, whatever their history.
    The display name is the first one seen for the occupant; the team name
    is the occupant's current team.
    """
    team_by_occupant: dict[str, str] = {}
    for team in current_teams:
        if team.taken_by:
            team_by_occupant[team.taken_by] = team.name

    totals: dict[str, SeasonRecord] = {}
    for rec in records:
        user_id = rec.taken_by
        if not user_id or user_id not in team_by_occupant:
            continue
        agg = totals.get(user_id)
        if agg is None:
            agg = totals[user_id] = SeasonRecord(
                taken_by=user_id,
                taken_by_name=rec.taken_by_name or "Unknown",
                team_name=team_by_occupant.get(user_id) or "No Team",
            )
        agg.wins += rec.wins
        agg.losses += rec.losses
        agg.user_wins += rec.user_wins
        agg.user_losses += rec.user_losses
    return list(totals.values())


def rank_all_time(
    records: Sequence[SeasonRecord],
    results: Iterable[GameResult],
    current_teams: Iterable[Team],
) -> list[SeasonRecord]:
    """Rank current occupants by their summed record across all seasons."""
    h2h = build_h2h_map(results, records)
    return sort_records(aggregate_all_time(records, current_teams), h2h)


def ranking_lines(
    ranked: Sequence[SeasonRecord],
    fallback_name: str | None = None,
) -> list[RankingLine]:
    """Display rows for a ranked list.

    The occupant's display name falls back to ``fallback_name`` when given,
    otherwise to the team name.
    """
    lines: list[RankingLine] = []
    for i, rec in enumerate(ranked, 1):
        fallback = fallback_name if fallback_name is not None else rec.team_name
        display = rec.taken_by_name or fallback
        lines.append(
            RankingLine(
                rank=i,
                display_name=display,
                team_name=rec.team_name or "No Team",
                record=rec.record,
                user_record=rec.user_record,
            )
        )
    return lines
