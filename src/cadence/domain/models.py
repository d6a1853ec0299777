"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ReviewCard:
    """
    SM-2 review state of a single card.

    Attributes:
        interval: Days until the next review (>= 1 after any computation).
        repetition: Consecutive successful reviews since the last failure.
        ease_factor: Interval growth multiplier, never below 1.3.
        next_review: Timezone-aware instant on or after which the card is due.
        card_id: Opaque identifier assigned by the persistence layer.
    """

    interval: int
    repetition: int
    ease_factor: float
    next_review: datetime
    card_id: str | None = None


@dataclass(frozen=True)
class ReviewEvent:
    """
    A single entry of a card's review history.

    Attributes:
        rating: SM-2 grade given (0=blackout ... 5=perfect).
        reviewed_at: When the review happened.
        time_spent: Seconds spent on the card, if recorded.
        card_id: The reviewed card, if known.
    """

    rating: int
    reviewed_at: datetime
    time_spent: float | None = None
    card_id: str | None = None


@dataclass(frozen=True)
class StudyRecommendation:
    """Suggested split of one day's due cards into sessions."""

    sessions_per_day: int
    cards_per_session: int
    estimated_minutes: float  # Per session


@dataclass(frozen=True)
class CardStats:
    """
    Statistics for one card, combining its current state with its history.
    """

    total_reviews: int
    correct_reviews: int
    streak: int
    retention: float  # 0-100
    average_rating: float

    # Current state
    interval: int
    ease_factor: float
    next_review: datetime
    is_due: bool


@dataclass(frozen=True)
class ReviewOverview:
    """Dashboard summary across a collection of cards and its review log."""

    due_today: int
    due_this_week: int
    study_streak_days: int
    reviewed_today: int

