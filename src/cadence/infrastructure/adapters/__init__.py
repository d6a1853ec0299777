# Infrastructure Adapters Package
from .memory import InMemoryCardRepository, InMemoryReviewLog

__all__ = ["InMemoryCardRepository", "InMemoryReviewLog"]
