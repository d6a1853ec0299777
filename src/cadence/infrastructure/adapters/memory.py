"""
In-memory repositories: infrastructure adapters for the storage ports.

Useful for tests, the HTTP server and the CLI, which loads a deck file
into these and writes it back afterwards.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from cadence.application.id_service import generate_card_id
from cadence.application.utils.clock import ensure_utc
from cadence.domain.errors import CardNotFound
from cadence.domain.models import ReviewCard, ReviewEvent
from cadence.domain.ports import CardRepository, ReviewLog

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository):
    """
    Stores cards in a dict keyed by card_id.

    Each card has its own asyncio.Lock; update() holds it across the
    read-transition-write so concurrent reviews of one card are serialized.
    """

    def __init__(self, cards: Iterable[ReviewCard] = ()):
        self._cards: dict[str, ReviewCard] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        for card in cards:
            self._store(card)

    def _store(self, card: ReviewCard) -> ReviewCard:
        if card.card_id is None:
            card = replace(card, card_id=generate_card_id())
        self._cards[card.card_id] = card
        self._locks.setdefault(card.card_id, asyncio.Lock())
        return card

    def snapshot(self) -> list[ReviewCard]:
        """Current cards in insertion order, without awaiting."""
        return list(self._cards.values())

    async def add(self, card: ReviewCard) -> ReviewCard:
        return self._store(card)

    async def get(self, card_id: str) -> ReviewCard:
        try:
            return self._cards[card_id]
        except KeyError:
            raise CardNotFound(card_id) from None

    async def list(self) -> list[ReviewCard]:
        return self.snapshot()

    async def update(
        self, card_id: str, transition: Callable[[ReviewCard], ReviewCard]
    ) -> ReviewCard:
        lock = self._locks.get(card_id)
        if lock is None:
            raise CardNotFound(card_id)

        async with lock:
            current = self._cards[card_id]
            updated = transition(current)
            if updated.card_id != card_id:
                updated = replace(updated, card_id=card_id)
            self._cards[card_id] = updated
            logger.debug(f"Stored card {card_id}")
            return updated


class InMemoryReviewLog(ReviewLog):
    """Append-only list of review events."""

    def __init__(self, events: Iterable[ReviewEvent] = ()):
        self._events: list[ReviewEvent] = list(events)

    def snapshot(self) -> list[ReviewEvent]:
        return self._sorted(self._events)

    @staticmethod
    def _sorted(events: list[ReviewEvent]) -> list[ReviewEvent]:
        # sorted() is stable, so events sharing a timestamp keep append order
        return sorted(events, key=lambda e: ensure_utc(e.reviewed_at))

    async def append(self, event: ReviewEvent) -> None:
        self._events.append(event)

    async def events_for(self, card_id: str) -> list[ReviewEvent]:
        return self._sorted([e for e in self._events if e.card_id == card_id])

    async def all_events(self) -> list[ReviewEvent]:
        return self.snapshot()
