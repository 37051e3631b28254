"""Tests for coach rankings: comparator, head-to-head map, all-time aggregation."""

from cmr_dynasty.core.standings import (
    H2HTally,
    build_h2h_map,
    compare_records,
    h2h_pct,
    rank_all_time,
    rank_season,
    ranking_lines,
    win_pct,
)
from cmr_dynasty.models.league import GameResult, SeasonRecord, Team


def _record(
    user: str,
    team_id: int,
    wins: int,
    losses: int,
    user_wins: int = 0,
    user_losses: int = 0,
    season: int = 1,
) -> SeasonRecord:
    return SeasonRecord(
        season=season,
        team_id=team_id,
        team_name=f"Team {user}",
        taken_by=user,
        taken_by_name=f"coach_{user}",
        wins=wins,
        losses=losses,
        user_wins=user_wins,
        user_losses=user_losses,
    )


def _result(
    submitter: str,
    team_id: int,
    opponent_team_id: int,
    won: bool,
    week: int = 1,
    season: int = 1,
) -> GameResult:
    return GameResult(
        season=season,
        week=week,
        user_team_id=team_id,
        user_team_name=f"Team {submitter}",
        opponent_team_id=opponent_team_id,
        opponent_team_name="Opponent",
        user_score=21 if won else 14,
        opponent_score=14 if won else 21,
        result="W" if won else "L",
        taken_by=submitter,
        taken_by_name=f"coach_{submitter}",
    )


class TestWinPct:
    def test_no_games_is_zero(self):
        assert win_pct(0, 0) == 0.0

    def test_ratio(self):
        assert win_pct(3, 1) == 0.75

    def test_tally_pct(self):
        assert H2HTally(wins=1, losses=3).pct == 0.25
        assert H2HTally().pct == 0.0


class TestComparator:
    def test_win_gap_over_one_decides_by_raw_wins(self):
        # B has the better percentage but A has two more wins.
        a = _record("A", 1, wins=6, losses=4)
        b = _record("B", 2, wins=4, losses=0)
        assert compare_records(a, b, {}) < 0
        assert compare_records(b, a, {}) > 0

    def test_close_records_compare_win_pct(self):
        a = _record("A", 1, wins=5, losses=5)
        b = _record("B", 2, wins=4, losses=0)
        assert compare_records(b, a, {}) < 0

    def test_tied_pct_falls_through_to_user_pct_before_h2h(self):
        a = _record("A", 1, wins=4, losses=2, user_wins=1, user_losses=1)
        b = _record("B", 2, wins=4, losses=2, user_wins=2, user_losses=1)
        # A owns the head-to-head, but the user-game percentage is checked first.
        h2h = {("A", "B"): H2HTally(wins=1, losses=0)}
        assert compare_records(b, a, h2h) < 0

    def test_h2h_breaks_remaining_tie(self):
        a = _record("A", 1, wins=4, losses=2, user_wins=1, user_losses=1)
        b = _record("B", 2, wins=4, losses=2, user_wins=1, user_losses=1)
        h2h = {("A", "B"): H2HTally(wins=1, losses=0), ("B", "A"): H2HTally(wins=0, losses=1)}
        assert compare_records(a, b, h2h) < 0

    def test_full_tie_is_zero(self):
        a = _record("A", 1, wins=2, losses=2)
        b = _record("B", 2, wins=2, losses=2)
        assert compare_records(a, b, {}) == 0


class TestH2HMap:
    def test_directional_pct_when_each_coach_reports_every_game(self):
        # X beat Y twice and Y beat X once; both coaches submit each game.
        records = [_record("X", 1, 0, 0), _record("Y", 2, 0, 0)]
        results = [
            _result("X", 1, 2, won=True, week=1),
            _result("Y", 2, 1, won=False, week=1),
            _result("X", 1, 2, won=True, week=2),
            _result("Y", 2, 1, won=False, week=2),
            _result("X", 1, 2, won=False, week=3),
            _result("Y", 2, 1, won=True, week=3),
        ]
        h2h = build_h2h_map(results, records)
        assert h2h_pct(h2h, "X", "Y") == 2 / 3
        assert h2h_pct(h2h, "Y", "X") == 1 / 3

    def test_unknown_pair_is_zero(self):
        assert h2h_pct({}, "X", "Y") == 0.0
        assert h2h_pct({}, None, None) == 0.0

    def test_skips_cpu_opponents(self):
        records = [_record("X", 1, 0, 0)]
        results = [_result("X", 1, 99, won=True)]
        assert build_h2h_map(results, records) == {}

    def test_skips_results_without_submitting_occupant(self):
        records = [_record("X", 1, 0, 0), _record("Y", 2, 0, 0)]
        orphan = _result("X", 1, 2, won=True).model_copy(update={"taken_by": None})
        assert build_h2h_map([orphan], records) == {}

    def test_opponent_resolved_through_first_matching_record(self):
        # Team 2 changed hands between seasons; the earliest record wins.
        records = [
            _record("X", 1, 0, 0),
            _record("Y", 2, 0, 0, season=1),
            _record("Z", 2, 0, 0, season=2),
        ]
        h2h = build_h2h_map([_result("X", 1, 2, won=True, season=2)], records)
        assert ("X", "Y") in h2h
        assert ("X", "Z") not in h2h


class TestRankSeason:
    def test_only_active_occupants_ranked(self):
        records = [_record("A", 1, 3, 1), _record("B", 2, 5, 0), _record("C", 3, 1, 3)]
        ranked = rank_season(records, [], active_occupants={"A", "C"})
        assert [r.taken_by for r in ranked] == ["A", "C"]

    def test_order_best_first(self):
        records = [_record("A", 1, 1, 3), _record("B", 2, 5, 0), _record("C", 3, 3, 1)]
        ranked = rank_season(records, [], active_occupants={"A", "B", "C"})
        assert [r.taken_by for r in ranked] == ["B", "C", "A"]

    def test_empty(self):
        assert rank_season([], [], active_occupants=set()) == []


class TestAllTime:
    def test_sums_seasons_and_drops_former_coaches(self):
        records = [
            _record("A", 1, 3, 1, season=1),
            _record("A", 1, 2, 2, user_wins=1, user_losses=1, season=2),
            _record("GONE", 2, 10, 0, season=1),
        ]
        teams = [Team(id=5, name="Marshall", taken_by="A", taken_by_name="coach_A")]
        ranked = rank_all_time(records, [], teams)
        assert len(ranked) == 1
        agg = ranked[0]
        assert agg.taken_by == "A"
        assert (agg.wins, agg.losses, agg.user_wins, agg.user_losses) == (5, 3, 1, 1)
        # Team name is the coach's current team, not the historical one.
        assert agg.team_name == "Marshall"

    def test_missing_display_name_is_unknown(self):
        rec = _record("A", 1, 1, 0).model_copy(update={"taken_by_name": None})
        teams = [Team(id=1, name="Troy", taken_by="A")]
        ranked = rank_all_time([rec], [], teams)
        assert ranked[0].taken_by_name == "Unknown"


class TestRankingLines:
    def test_render(self):
        lines = ranking_lines([_record("A", 1, 3, 1, user_wins=1, user_losses=0)])
        assert lines[0].render() == " 1. coach_A\n Team A\n 3-1 (1-0)\n\n"

    def test_display_name_falls_back_to_team_name(self):
        rec = _record("A", 1, 1, 0).model_copy(update={"taken_by_name": None})
        assert ranking_lines([rec])[0].display_name == "Team A"

    def test_display_name_explicit_fallback(self):
        rec = _record("A", 1, 1, 0).model_copy(update={"taken_by_name": None})
        assert ranking_lines([rec], fallback_name="Unknown")[0].display_name == "Unknown"
