"""Domain errors."""

from typing import Any


class InvalidRating(ValueError):
    """Raised when a review rating is not an integer in [0, 5]."""

    def __init__(self, rating: Any, message: str | None = None):
        self.rating = rating
        super().__init__(message or f"Rating must be an integer between 0 and 5, got {rating!r}")


class CardNotFound(KeyError):
    """Raised by repositories when a card identifier is unknown."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card {self.card_id} not found"
