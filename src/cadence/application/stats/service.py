"""
Review Service: application layer orchestrator.

Coordinates the pure scheduler with the card repository and review log:
read state, compute the next state, write it back, record the event.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from cadence.application.id_service import generate_card_id
from cadence.application.scheduler import (
    compute_next,
    new_card,
    prioritize,
    select_due,
    validate_rating,
)
from cadence.application.utils.clock import utc_now
from cadence.domain.models import (
    CardStats,
    ReviewCard,
    ReviewEvent,
    ReviewOverview,
    StudyRecommendation,
)
from cadence.domain.ports import CardRepository, ReviewLog

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchReview:
    """One entry of a batch review submission."""

    card_id: str
    rating: int
    time_spent: float | None = None


class ReviewService:
    """
    Application service for review sessions.

    Follows Dependency Inversion: depends on the CardRepository and ReviewLog
    abstractions, not concrete adapter implementations.
    """

    def __init__(
        self,
        cards: CardRepository,
        log: ReviewLog,
        calculator: MetricsCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            cards: The repository (port) holding card state.
            log: The review history (port).
            calculator: Optional custom calculator; uses default limits if not provided.
            clock: Source of the current instant; defaults to UTC wall time.
        """
        self._cards = cards
        self._log = log
        self._calc = calculator or MetricsCalculator()
        self._clock = clock or utc_now

    async def create_card(self) -> ReviewCard:
        card = await self._cards.add(new_card(self._clock(), card_id=generate_card_id()))
        logger.info(f"Created card {card.card_id}")
        return card

    async def submit_review(
        self, card_id: str, rating: int, time_spent: float | None = None
    ) -> ReviewCard:
        """
        Apply one review to a stored card and record it in the log.

        Raises:
            InvalidRating: Before anything is read or written.
            CardNotFound: If the card does not exist.
        """
        validate_rating(rating)
        now = self._clock()

        updated = await self._cards.update(card_id, lambda card: compute_next(card, rating, now))
        await self._log.append(
            ReviewEvent(rating=rating, reviewed_at=now, time_spent=time_spent, card_id=card_id)
        )

        logger.info(
            f"Reviewed {card_id}: rating={rating} interval={updated.interval}d "
            f"next={updated.next_review.isoformat()}"
        )
        return updated

    async def submit_reviews(self, reviews: list[BatchReview]) -> list[ReviewCard]:
        """
        Apply a batch of reviews in order.

        Every rating is validated and every card looked up before any update
        is written, so an invalid entry leaves all cards untouched.

        Raises:
            ValueError: If the batch is empty.
            InvalidRating: If any rating is invalid.
            CardNotFound: If any card does not exist.
        """
        if not reviews:
            raise ValueError("No reviews provided")

        for review in reviews:
            validate_rating(review.rating)
        for review in reviews:
            await self._cards.get(review.card_id)

        results = []
        for review in reviews:
            results.append(
                await self.submit_review(review.card_id, review.rating, review.time_spent)
            )
        return results

    async def session_queue(self, limit: int | None = None) -> list[ReviewCard]:
        """Due cards in review order, optionally truncated to limit."""
        now = self._clock()
        queue = prioritize(select_due(await self._cards.list(), now), now)
        if limit is not None:
            queue = queue[:limit]
        return queue

    async def card_stats(self, card_id: str) -> CardStats:
        card = await self._cards.get(card_id)
        events = await self._log.events_for(card_id)
        return self._calc.card_stats(card, events, self._clock())

    async def overview(self) -> ReviewOverview:
        cards = await self._cards.list()
        events = await self._log.all_events()
        return self._calc.overview(cards, events, self._clock())

    async def recommendation(self) -> StudyRecommendation:
        due = select_due(await self._cards.list(), self._clock())
        return self._calc.recommend(len(due))
