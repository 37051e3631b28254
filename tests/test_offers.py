"""Tests for the job-offer flow: picking, parsing, one-shot marker, claims."""

import random

import pytest

from cmr_dynasty.core.errors import OfferAlreadyUsed
from cmr_dynasty.core.offers import (
    ClaimStatus,
    OfferBook,
    claim_offer,
    format_offers_message,
    parse_choice,
    pick_random,
    request_offers,
)
from cmr_dynasty.models.league import Team


def _teams(n: int) -> list[Team]:
    return [
        Team(id=i, name=f"Team {i}", conference="Sun Belt" if i % 2 else None, stars=2.5)
        for i in range(1, n + 1)
    ]


class _Pool:
    """Records how often the open-team pool was fetched."""

    def __init__(self, teams: list[Team]) -> None:
        self.teams = teams
        self.calls = 0

    async def __call__(self) -> list[Team]:
        self.calls += 1
        return list(self.teams)


async def _deliver_ok(offers: list[Team]) -> None:
    return None


class TestPickRandom:
    def test_never_duplicates_and_caps_at_pool(self):
        picked = pick_random(_teams(2), 5)
        assert len(picked) == 2
        assert {t.id for t in picked} == {1, 2}

    def test_picks_requested_count(self):
        picked = pick_random(_teams(10), 3, random.Random(7))
        assert len(picked) == 3
        assert len({t.id for t in picked}) == 3

    def test_empty_pool(self):
        assert pick_random([], 3) == []


class TestParseChoice:
    @pytest.mark.parametrize("raw", ["0", "4", "abc", "", "-1"])
    def test_invalid(self, raw: str):
        assert parse_choice(raw, 3) is None

    @pytest.mark.parametrize("raw", ["2", " 2 ", "2abc", "2!"])
    def test_valid(self, raw: str):
        assert parse_choice(raw, 3) == 2


class TestFormatOffers:
    def test_grouped_by_conference_with_offer_numbers(self):
        offers = _teams(3)
        text = format_offers_message(offers)
        assert text.startswith("Your CMR Dynasty job offers:")
        assert "**Sun Belt**" in text
        assert "**Independent**" in text
        assert "1\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP} Team 1" in text
        assert "2\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP} Team 2" in text
        assert text.endswith("Reply with the number of the team you want to accept.")


class TestRequestOffers:
    async def test_sends_offers_and_sets_pending(self):
        book = OfferBook()
        delivered: list[list[Team]] = []

        async def deliver(offers: list[Team]) -> None:
            delivered.append(offers)

        offers = await request_offers(book, "u1", 3, _Pool(_teams(5)), deliver)
        assert len(offers) == 3
        assert delivered == [offers]
        assert book.pending("u1") == offers
        assert book.has_used("u1")

    async def test_second_request_rejected_without_fetch(self):
        book = OfferBook()
        pool = _Pool(_teams(5))
        await request_offers(book, "u1", 3, pool, _deliver_ok)
        with pytest.raises(OfferAlreadyUsed):
            await request_offers(book, "u1", 3, pool, _deliver_ok)
        assert pool.calls == 1

    async def test_empty_pool_rolls_back_marker(self):
        book = OfferBook()
        offers = await request_offers(book, "u1", 3, _Pool([]), _deliver_ok)
        assert offers == []
        assert not book.has_used("u1")
        assert book.pending("u1") is None

    async def test_delivery_failure_rolls_back(self):
        book = OfferBook()

        async def deliver(offers: list[Team]) -> None:
            raise RuntimeError("DMs closed")

        with pytest.raises(RuntimeError):
            await request_offers(book, "u1", 3, _Pool(_teams(5)), deliver)
        assert not book.has_used("u1")
        assert book.pending("u1") is None

    async def test_fetch_failure_rolls_back(self):
        book = OfferBook()

        async def fetch() -> list[Team]:
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await request_offers(book, "u1", 3, fetch, _deliver_ok)
        assert not book.has_used("u1")

    async def test_clearing_marker_allows_exactly_one_more(self):
        book = OfferBook()
        pool = _Pool(_teams(5))
        await request_offers(book, "u1", 3, pool, _deliver_ok)
        book.clear_marker("u1")
        await request_offers(book, "u1", 3, pool, _deliver_ok)
        with pytest.raises(OfferAlreadyUsed):
            await request_offers(book, "u1", 3, pool, _deliver_ok)

    async def test_users_are_independent(self):
        book = OfferBook()
        pool = _Pool(_teams(5))
        await request_offers(book, "u1", 3, pool, _deliver_ok)
        await request_offers(book, "u2", 3, pool, _deliver_ok)
        assert book.has_used("u1") and book.has_used("u2")


class TestClaimOffer:
    @pytest.fixture
    def book(self) -> OfferBook:
        book = OfferBook()
        book.set_pending("u1", _teams(3))
        return book

    async def test_no_pending_offers(self):
        async def claim(team: Team) -> bool:
            raise AssertionError("should not be called")

        outcome = await claim_offer(OfferBook(), "u1", "1", claim)
        assert outcome.status is ClaimStatus.NO_OFFER

    async def test_invalid_reply_keeps_offers(self, book: OfferBook):
        async def claim(team: Team) -> bool:
            raise AssertionError("should not be called")

        outcome = await claim_offer(book, "u1", "7", claim)
        assert outcome.status is ClaimStatus.INVALID
        assert book.pending("u1") is not None

    async def test_claims_chosen_offer_and_clears_pending(self, book: OfferBook):
        claimed: list[Team] = []

        async def claim(team: Team) -> bool:
            claimed.append(team)
            return True

        outcome = await claim_offer(book, "u1", "2", claim)
        assert outcome.status is ClaimStatus.CLAIMED
        assert outcome.team is not None
        assert outcome.team.id == 2
        assert [t.id for t in claimed] == [2]
        assert book.pending("u1") is None

    async def test_taken_team_keeps_offers_pending(self, book: OfferBook):
        async def claim(team: Team) -> bool:
            return False

        outcome = await claim_offer(book, "u1", "1", claim)
        assert outcome.status is ClaimStatus.TAKEN
        assert outcome.team is not None
        assert outcome.team.id == 1
        assert book.pending("u1") is not None

    async def test_claim_error_leaves_offers_intact(self, book: OfferBook):
        async def claim(team: Team) -> bool:
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await claim_offer(book, "u1", "1", claim)
        assert len(book.pending("u1") or []) == 3
