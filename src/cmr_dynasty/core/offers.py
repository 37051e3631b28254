"""Job offers — offering open teams to new coaches and committing claims.

Per user: no offer -> offers pending -> claimed. A user gets one offer batch
(the one-shot marker); an admin reset of their team clears the marker.
Pending offers live only in memory and are lost on restart.

The datastore is reached through callables so this module stays free of
session handling; the bot wires them to the repository.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import random
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from cmr_dynasty.core.errors import OfferAlreadyUsed
from cmr_dynasty.models.league import Team

logger = logging.getLogger(__name__)

T = TypeVar("T")

OFFER_REPLY_PROMPT = "Reply with the number of the team you want to accept."
INVALID_CHOICE_PROMPT = "Reply with the number of the team you choose (from the DM list)."
KEYCAP = "\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}"

_LEADING_INT = re.compile(r"[+-]?\d+")


class OfferBook:
    """In-memory offer state, keyed by Discord user id.

    Holds the pending offer lists, the one-shot markers, and a lock per user
    so one user's request and claim never interleave.
    """

    def __init__(self) -> None:
        self._pending: dict[str, list[Team]] = {}
        self._used: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, user_id: str) -> asyncio.Lock:
        if user_id not in self._locks:
            self._locks[user_id] = asyncio.Lock()
        return self._locks[user_id]

    def has_used(self, user_id: str) -> bool:
        return user_id in self._used

    def mark_used(self, user_id: str) -> bool:
        """Set the one-shot marker. Returns False if it was already set."""
        if user_id in self._used:
            return False
        self._used.add(user_id)
        return True

    def clear_marker(self, user_id: str) -> None:
        self._used.discard(user_id)

    def pending(self, user_id: str) -> list[Team] | None:
        return self._pending.get(user_id)

    def set_pending(self, user_id: str, offers: list[Team]) -> None:
        self._pending[user_id] = list(offers)

    def clear_pending(self, user_id: str) -> None:
        self._pending.pop(user_id, None)


def pick_random(items: Sequence[T], n: int, rng: random.Random | None = None) -> list[T]:
    """Pick up to ``n`` distinct items uniformly at random, without replacement.

    Repeatedly removes a random index from a shrinking working copy.
    """
    rng = rng or random.Random()
    pool = list(items)
    picked: list[T] = []
    while len(picked) < n and pool:
        picked.append(pool.pop(rng.randrange(len(pool))))
    return picked


def group_by_conference(offers: Sequence[Team]) -> dict[str, list[tuple[int, Team]]]:
    """Group offers by conference, keeping each offer's 1-based number."""
    grouped: dict[str, list[tuple[int, Team]]] = {}
    for number, team in enumerate(offers, 1):
        grouped.setdefault(team.conference_label, []).append((number, team))
    return grouped


def format_offers_message(offers: Sequence[Team]) -> str:
    """The DM listing offers by conference, numbered in offer order."""
    parts = ["Your CMR Dynasty job offers:\n"]
    for conference, items in group_by_conference(offers).items():
        parts.append(f"**{conference}**")
        parts.extend(f"{number}{KEYCAP} {team.name}" for number, team in items)
        parts.append("")
    parts.append(OFFER_REPLY_PROMPT)
    return "\n".join(parts)


def parse_choice(raw: str, offer_count: int) -> int | None:
    """Parse a reply into a 1-based offer number, or None if invalid.

    Leading digits are enough ("2", " 2 ", "2!" all parse as 2).
    """
    match = _LEADING_INT.match(raw.strip())
    if match is None:
        return None
    choice = int(match.group())
    if choice < 1 or choice > offer_count:
        return None
    return choice


async def request_offers(
    book: OfferBook,
    user_id: str,
    count: int,
    fetch_pool: Callable[[], Awaitable[list[Team]]],
    deliver: Callable[[list[Team]], Awaitable[object]],
    rng: random.Random | None = None,
) -> list[Team]:
    """Run one offer request for a user.

    Raises OfferAlreadyUsed before touching the datastore if the user already
    received offers. Returns an empty list when no open teams exist. The
    marker is rolled back when the pool is empty or when fetching or
    delivering the offers fails.
    """
    async with book.lock(user_id):
        if not book.mark_used(user_id):
            raise OfferAlreadyUsed()

        try:
            pool = await fetch_pool()
            if not pool:
                book.clear_marker(user_id)
                logger.info("offers_pool_empty user=%s", user_id)
                return []

            offers = pick_random(pool, count, rng)
            book.set_pending(user_id, offers)
            await deliver(offers)
        except Exception:  # roll back offer state, then re-raise
            book.clear_marker(user_id)
            book.clear_pending(user_id)
            raise

        logger.info(
            "offers_sent user=%s count=%d teams=%s",
            user_id,
            len(offers),
            ",".join(str(t.id) for t in offers),
        )
        return offers


class ClaimStatus(enum.Enum):
    NO_OFFER = "no_offer"
    INVALID = "invalid"
    TAKEN = "taken"
    CLAIMED = "claimed"


@dataclass(frozen=True)
class ClaimOutcome:
    status: ClaimStatus
    team: Team | None = None


async def claim_offer(
    book: OfferBook,
    user_id: str,
    reply: str,
    claim: Callable[[Team], Awaitable[bool]],
) -> ClaimOutcome:
    """Handle a user's reply to their pending offers.

    ``claim`` performs the conditional write and returns False when the team
    already has an occupant; in that case the offers stay pending so the user
    can pick again. Datastore errors propagate with the offers left intact.
    """
    async with book.lock(user_id):
        offers = book.pending(user_id)
        if not offers:
            return ClaimOutcome(ClaimStatus.NO_OFFER)

        choice = parse_choice(reply, len(offers))
        if choice is None:
            logger.info("offer_choice_invalid user=%s raw=%r", user_id, reply.strip()[:20])
            return ClaimOutcome(ClaimStatus.INVALID)

        team = offers[choice - 1]
        if not await claim(team):
            logger.info("offer_claim_lost user=%s team=%s", user_id, team.id)
            return ClaimOutcome(ClaimStatus.TAKEN, team)

        book.clear_pending(user_id)
        logger.info("offer_claimed user=%s team=%s", user_id, team.id)
        return ClaimOutcome(ClaimStatus.CLAIMED, team)
