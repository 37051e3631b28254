"""Tests for league snapshot models."""

import pytest
from pydantic import ValidationError

from cmr_dynasty.models.league import LeagueClock, SeasonRecord, Team


class TestTeam:
    @pytest.mark.parametrize("taken_by", [None, "", "  ", "null"])
    def test_unoccupied_values(self, taken_by):
        assert not Team(id=1, name="Troy", taken_by=taken_by).is_human

    def test_occupied(self):
        assert Team(id=1, name="Troy", taken_by="111").is_human

    def test_conference_label(self):
        assert Team(id=1, name="Army").conference_label == "Independent"
        assert Team(id=1, name="Troy", conference="Sun Belt").conference_label == "Sun Belt"


class TestSeasonRecord:
    def test_record_strings(self):
        rec = SeasonRecord(wins=7, losses=2, user_wins=3, user_losses=1)
        assert rec.record == "7-2"
        assert rec.user_record == "3-1"

    def test_counters_non_negative(self):
        with pytest.raises(ValidationError):
            SeasonRecord(wins=-1)


class TestLeagueClock:
    def test_defaults(self):
        assert LeagueClock() == LeagueClock(season=1, week=0)

    def test_frozen(self):
        clock = LeagueClock()
        with pytest.raises(ValidationError):
            clock.week = 3
