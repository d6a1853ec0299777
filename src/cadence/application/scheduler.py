"""
SM-2 scheduler.

Pure functions over immutable ReviewCard values: state transitions on review,
due-set selection and session ordering. No I/O; every function takes an
explicit `now` (defaulting to the current UTC instant once per call).
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from cadence.application.utils.clock import ensure_utc, resolve_now
from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    FIRST_SUCCESS_INTERVAL,
    INITIAL_INTERVAL,
    MAX_RATING,
    MIN_EASE_FACTOR,
    MIN_RATING,
    PASSING_RATING,
    SECOND_SUCCESS_INTERVAL,
)
from cadence.domain.errors import InvalidRating
from cadence.domain.models import ReviewCard

logger = logging.getLogger(__name__)

# UI buttons: Again, Hard, Good, Easy, Perfect
_USER_RATING_MAP = {1: 1, 2: 2, 3: 3, 4: 4, 5: 5}


def new_card(now: datetime | None = None, card_id: str | None = None) -> ReviewCard:
    """Create a card with default SM-2 parameters, due immediately."""
    return ReviewCard(
        interval=INITIAL_INTERVAL,
        repetition=0,
        ease_factor=DEFAULT_EASE_FACTOR,
        next_review=resolve_now(now),
        card_id=card_id,
    )


def validate_rating(rating: Any) -> int:
    """
    Return rating unchanged if it is an integer in [0, 5].

    Raises:
        InvalidRating: For out-of-range values, floats, bools and non-numbers.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRating(rating)
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidRating(rating)
    return rating


def convert_user_rating(user_rating: Any) -> int:
    """
    Convert a 1-5 user button rating to an SM-2 grade.

    1=Again, 2=Hard, 3=Good, 4=Easy, 5=Perfect.
    """
    if (
        isinstance(user_rating, bool)
        or not isinstance(user_rating, int)
        or user_rating not in _USER_RATING_MAP
    ):
        raise InvalidRating(user_rating, f"User rating must be 1-5, got {user_rating!r}")
    return _USER_RATING_MAP[user_rating]


def update_ease_factor(ease_factor: float, rating: int) -> float:
    """
    Apply the SM-2 quadratic ease adjustment for a passing rating.

    Rating 5 adds 0.1, rating 4 leaves ease unchanged, rating 3 subtracts 0.14.
    """
    miss = MAX_RATING - rating
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_next(card: ReviewCard, rating: int, now: datetime | None = None) -> ReviewCard:
    """
    Compute a card's state after a review.

    Args:
        card: Current state. Not modified.
        rating: SM-2 grade, 0 (blackout) to 5 (perfect). 3 and above is a pass.
        now: Review instant. Defaults to the current UTC time.

    Returns:
        A new ReviewCard with next_review = now + interval days.

    Raises:
        InvalidRating: If rating is not an integer in [0, 5].
    """
    validate_rating(rating)
    now = resolve_now(now)

    if rating < PASSING_RATING:
        # Failures reset scheduling but leave the ease estimate alone
        repetition = 0
        interval = INITIAL_INTERVAL
        ease_factor = card.ease_factor
    else:
        ease_factor = update_ease_factor(card.ease_factor, rating)
        repetition = card.repetition + 1
        if repetition == 1:
            interval = FIRST_SUCCESS_INTERVAL
        elif repetition == 2:
            interval = SECOND_SUCCESS_INTERVAL
        else:
            interval = max(1, _round_half_up(card.interval * ease_factor))

    next_review = now + timedelta(days=interval)

    logger.debug(
        f"Card {card.card_id}: rating={rating} "
        f"interval {card.interval}->{interval} rep {card.repetition}->{repetition} "
        f"ease {card.ease_factor:.2f}->{ease_factor:.2f}"
    )

    return replace(
        card,
        interval=interval,
        repetition=repetition,
        ease_factor=ease_factor,
        next_review=next_review,
    )


def is_due(card: ReviewCard, now: datetime | None = None) -> bool:
    return ensure_utc(card.next_review) <= resolve_now(now)


def overdue(card: ReviewCard, now: datetime) -> timedelta:
    """How long past its due instant the card is; zero if not yet due."""
    return max(timedelta(0), ensure_utc(now) - ensure_utc(card.next_review))


def select_due(cards: Iterable[ReviewCard], now: datetime | None = None) -> list[ReviewCard]:
    """Filter to cards that are due. Input order is kept."""
    now = resolve_now(now)
    return [card for card in cards if is_due(card, now)]


def prioritize(cards: Iterable[ReviewCard], now: datetime | None = None) -> list[ReviewCard]:
    """
    Order cards for a review session.

    Most overdue first; among equally overdue cards (including every card
    that is not yet due) the lowest ease factor comes first. The sort is
    stable, so ties keep their input order.
    """
    now = resolve_now(now)
    return sorted(cards, key=lambda card: (-overdue(card, now), card.ease_factor))
