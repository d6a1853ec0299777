"""
Deck files: YAML (or JSON, a YAML subset) holding cards and their review log.

    cards:
      - id: card_01J...
        interval: 6
        repetition: 2
        ease_factor: 2.7
        next_review: 2026-10-24T09:00:00+00:00
    events:
      - card_id: card_01J...
        rating: 5
        reviewed_at: 2026-10-18T09:00:00+00:00
        time_spent: 8.5
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from cadence.application.utils.clock import ensure_utc
from cadence.domain.models import ReviewCard, ReviewEvent

logger = logging.getLogger(__name__)


class DeckFormatError(ValueError):
    """Raised when a deck file cannot be parsed into cards and events."""


@dataclass
class Deck:
    cards: list[ReviewCard] = field(default_factory=list)
    events: list[ReviewEvent] = field(default_factory=list)


# ---------- Timestamps ----------


def _parse_timestamp(value: Any, key: str) -> datetime:
    # PyYAML already turns unquoted ISO timestamps into datetimes
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value))
        except ValueError:
            pass
    raise DeckFormatError(f"'{key}' is not an ISO timestamp: {value!r}")


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise DeckFormatError(f"Missing '{key}' in {data!r}")
    return data[key]


# ---------- Records ----------


def card_to_dict(card: ReviewCard) -> dict[str, Any]:
    return {
        "id": card.card_id,
        "interval": card.interval,
        "repetition": card.repetition,
        "ease_factor": card.ease_factor,
        "next_review": ensure_utc(card.next_review).isoformat(),
    }


def card_from_dict(data: dict[str, Any]) -> ReviewCard:
    if not isinstance(data, dict):
        raise DeckFormatError(f"Card entry must be a mapping, got {data!r}")
    try:
        return ReviewCard(
            interval=int(_require(data, "interval")),
            repetition=int(_require(data, "repetition")),
            ease_factor=float(_require(data, "ease_factor")),
            next_review=_parse_timestamp(_require(data, "next_review"), "next_review"),
            card_id=str(data["id"]) if data.get("id") is not None else None,
        )
    except DeckFormatError:
        raise
    except (TypeError, ValueError) as e:
        raise DeckFormatError(f"Invalid card entry {data!r}: {e}") from e


def event_to_dict(event: ReviewEvent) -> dict[str, Any]:
    d: dict[str, Any] = {
        "card_id": event.card_id,
        "rating": event.rating,
        "reviewed_at": ensure_utc(event.reviewed_at).isoformat(),
    }
    if event.time_spent is not None:
        d["time_spent"] = event.time_spent
    return d


def event_from_dict(data: dict[str, Any]) -> ReviewEvent:
    if not isinstance(data, dict):
        raise DeckFormatError(f"Event entry must be a mapping, got {data!r}")
    rating = _require(data, "rating")
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise DeckFormatError(f"Event rating must be an integer, got {rating!r}")
    time_spent = data.get("time_spent")
    return ReviewEvent(
        rating=rating,
        reviewed_at=_parse_timestamp(_require(data, "reviewed_at"), "reviewed_at"),
        time_spent=float(time_spent) if time_spent is not None else None,
        card_id=str(data["card_id"]) if data.get("card_id") is not None else None,
    )


# ---------- Files ----------


def parse_deck(text: str) -> Deck:
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise DeckFormatError(f"Invalid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise DeckFormatError("Deck file must contain a mapping with 'cards' and 'events'")

    cards = raw.get("cards") or []
    events = raw.get("events") or []
    if not isinstance(cards, list) or not isinstance(events, list):
        raise DeckFormatError("'cards' and 'events' must be lists")

    return Deck(
        cards=[card_from_dict(c) for c in cards],
        events=[event_from_dict(e) for e in events],
    )


def load_deck(path: Path) -> Deck:
    """Load a deck file. A missing file is an empty deck."""
    if not path.exists():
        logger.info(f"Deck {path} does not exist yet; starting empty")
        return Deck()
    return parse_deck(path.read_text(encoding="utf-8"))


def dump_deck(deck: Deck) -> str:
    data = {
        "cards": [card_to_dict(c) for c in deck.cards],
        "events": [event_to_dict(e) for e in deck.events],
    }
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def save_deck(path: Path, deck: Deck) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_deck(deck), encoding="utf-8")
    logger.debug(f"Wrote {len(deck.cards)} cards and {len(deck.events)} events to {path}")
