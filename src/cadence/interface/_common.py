"""Shared helpers for CLI commands."""

import logging
from pathlib import Path
from typing import Any

from cadence.application.config import AppConfig, resolve_config
from cadence.application.stats.metrics_calculator import MetricsCalculator
from cadence.application.stats.service import ReviewService
from cadence.infrastructure.adapters.memory import InMemoryCardRepository, InMemoryReviewLog
from cadence.infrastructure.deck_file import Deck, load_deck, save_deck

logger = logging.getLogger(__name__)


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config, dropping CLI options the user did not pass."""
    return resolve_config({k: v for k, v in overrides.items() if v is not None})


def _calculator_for(config: AppConfig) -> MetricsCalculator:
    return MetricsCalculator(
        max_cards_per_session=config.max_cards_per_session,
        minutes_per_card=config.minutes_per_card,
        max_sessions_per_day=config.max_sessions_per_day,
    )


class DeckSession:
    """
    A deck file loaded into in-memory repositories behind a ReviewService.

    Call save() to write the repositories back to the file.
    """

    def __init__(self, config: AppConfig):
        if config.deck_path is None:
            raise ValueError("No deck path configured")
        self.config = config
        self.path: Path = config.deck_path
        deck = load_deck(self.path)
        self.cards = InMemoryCardRepository(deck.cards)
        self.log = InMemoryReviewLog(deck.events)
        self.service = ReviewService(self.cards, self.log, calculator=_calculator_for(config))

    def save(self) -> None:
        save_deck(self.path, Deck(cards=self.cards.snapshot(), events=self.log.snapshot()))
        logger.info(f"Saved deck to {self.path}")
