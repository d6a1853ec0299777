"""
Ports (interfaces) for card storage and review history.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import ReviewCard, ReviewEvent


class CardRepository(ABC):
    """
    Port for storing and retrieving card review state by identifier.

    Implementations:
        - InMemoryCardRepository: Process-local dict guarded by per-card locks.
    """

    @abstractmethod
    async def add(self, card: ReviewCard) -> ReviewCard:
        """
        Store a new card.

        Returns:
            The stored card, with card_id assigned if it had none.
        """
        pass

    @abstractmethod
    async def get(self, card_id: str) -> ReviewCard:
        """
        Fetch a card.

        Raises:
            CardNotFound: If no card has this identifier.
        """
        pass

    @abstractmethod
    async def list(self) -> list[ReviewCard]:
        """Return every stored card."""
        pass

    @abstractmethod
    async def update(
        self, card_id: str, transition: Callable[[ReviewCard], ReviewCard]
    ) -> ReviewCard:
        """
        Read a card, apply transition and write the result back.

        Concurrent updates of the same card must be serialized so that no
        update is computed from a stale read.

        Raises:
            CardNotFound: If no card has this identifier.
        """
        pass


class ReviewLog(ABC):
    """
    Port for the append-only review history.
    """

    @abstractmethod
    async def append(self, event: ReviewEvent) -> None:
        pass

    @abstractmethod
    async def events_for(self, card_id: str) -> list[ReviewEvent]:
        """
        Fetch history for a single card.

        Returns:
            ReviewEvent objects sorted by reviewed_at ascending.
        """
        pass

    @abstractmethod
    async def all_events(self) -> list[ReviewEvent]:
        """Fetch every event, sorted by reviewed_at ascending."""
        pass
