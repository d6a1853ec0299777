"""
Metrics calculator for deriving review statistics and study plans.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from cadence.application.scheduler import is_due
from cadence.application.utils.clock import ensure_utc, resolve_now
from cadence.domain.constants import (
    DUE_WINDOW_DAYS,
    MAX_CARDS_PER_SESSION,
    MAX_SESSIONS_PER_DAY,
    MINUTES_PER_CARD,
    PASSING_RATING,
)
from cadence.domain.models import (
    CardStats,
    ReviewCard,
    ReviewEvent,
    ReviewOverview,
    StudyRecommendation,
)


def retention(events: Sequence[ReviewEvent]) -> float:
    """Percentage (0-100) of reviews rated as successful recall. 0 when empty."""
    if not events:
        return 0.0
    correct = sum(1 for e in events if e.rating >= PASSING_RATING)
    return correct / len(events) * 100


def current_streak(events: Sequence[ReviewEvent]) -> int:
    """
    Count consecutive successful reviews ending at the most recent one.

    Args:
        events: Review history ordered oldest to newest.
    """
    streak = 0
    for event in reversed(events):
        if event.rating < PASSING_RATING:
            break
        streak += 1
    return streak


def average_rating(events: Sequence[ReviewEvent]) -> float:
    if not events:
        return 0.0
    return sum(e.rating for e in events) / len(events)


def study_recommendation(
    due_count: int,
    *,
    max_cards_per_session: int = MAX_CARDS_PER_SESSION,
    minutes_per_card: float = MINUTES_PER_CARD,
    max_sessions_per_day: int = MAX_SESSIONS_PER_DAY,
) -> StudyRecommendation:
    """
    Split one day's due cards into study sessions.

    Demand beyond max_sessions_per_day full sessions is not carried over to
    later days; sessions_per_day is simply capped.
    """
    if due_count <= 0:
        return StudyRecommendation(sessions_per_day=0, cards_per_session=0, estimated_minutes=0.0)

    if due_count <= max_cards_per_session:
        return StudyRecommendation(
            sessions_per_day=1,
            cards_per_session=due_count,
            estimated_minutes=due_count * minutes_per_card,
        )

    sessions_needed = math.ceil(due_count / max_cards_per_session)
    cards_per_session = math.ceil(due_count / sessions_needed)

    return StudyRecommendation(
        sessions_per_day=min(sessions_needed, max_sessions_per_day),
        cards_per_session=cards_per_session,
        estimated_minutes=cards_per_session * minutes_per_card,
    )


def card_stats(
    card: ReviewCard, events: Sequence[ReviewEvent], now: datetime | None = None
) -> CardStats:
    """Combine a card's current state with metrics derived from its history."""
    return CardStats(
        total_reviews=len(events),
        correct_reviews=sum(1 for e in events if e.rating >= PASSING_RATING),
        streak=current_streak(events),
        retention=retention(events),
        average_rating=average_rating(events),
        interval=card.interval,
        ease_factor=card.ease_factor,
        next_review=card.next_review,
        is_due=is_due(card, now),
    )


def study_day_streak(events: Sequence[ReviewEvent], now: datetime | None = None) -> int:
    """
    Count consecutive UTC calendar days with at least one review, ending today.

    A learner who has not reviewed yet today has a streak of 0.
    """
    if not events:
        return 0

    review_days = {ensure_utc(e.reviewed_at).date() for e in events}
    day = resolve_now(now).date()
    streak = 0
    while day in review_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def review_overview(
    cards: Sequence[ReviewCard],
    events: Sequence[ReviewEvent],
    now: datetime | None = None,
) -> ReviewOverview:
    """Dashboard counts for a collection of cards and its review log."""
    now = resolve_now(now)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_end = start_of_day + timedelta(days=DUE_WINDOW_DAYS)
    today = now.date()

    return ReviewOverview(
        due_today=sum(1 for c in cards if is_due(c, now)),
        due_this_week=sum(1 for c in cards if is_due(c, week_end)),
        study_streak_days=study_day_streak(events, now),
        reviewed_today=sum(1 for e in events if ensure_utc(e.reviewed_at).date() == today),
    )


class MetricsCalculator:
    """
    Computes review statistics with configurable planning limits.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        max_cards_per_session: int = MAX_CARDS_PER_SESSION,
        minutes_per_card: float = MINUTES_PER_CARD,
        max_sessions_per_day: int = MAX_SESSIONS_PER_DAY,
    ):
        self.max_cards_per_session = max_cards_per_session
        self.minutes_per_card = minutes_per_card
        self.max_sessions_per_day = max_sessions_per_day

    def recommend(self, due_count: int) -> StudyRecommendation:
        return study_recommendation(
            due_count,
            max_cards_per_session=self.max_cards_per_session,
            minutes_per_card=self.minutes_per_card,
            max_sessions_per_day=self.max_sessions_per_day,
        )

    def card_stats(
        self, card: ReviewCard, events: Sequence[ReviewEvent], now: datetime | None = None
    ) -> CardStats:
        return card_stats(card, events, now)

    def overview(
        self,
        cards: Sequence[ReviewCard],
        events: Sequence[ReviewEvent],
        now: datetime | None = None,
    ) -> ReviewOverview:
        return review_overview(cards, events, now)
