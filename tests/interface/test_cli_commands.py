"""Tests for CLI commands: new, review, queue, stats, plan and config."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from typer.testing import CliRunner

from cadence.application.config import AppConfig
from cadence.domain.models import ReviewCard
from cadence.infrastructure.deck_file import Deck, load_deck, save_deck
from cadence.interface._common import DeckSession
from cadence.interface.cli import app

runner = CliRunner()


@pytest.fixture
def deck_path(tmp_path, mock_home):
    return tmp_path / "deck.yaml"


@pytest.fixture
def seeded_deck(deck_path):
    now = datetime.now(timezone.utc)
    save_deck(
        deck_path,
        Deck(
            cards=[
                ReviewCard(1, 0, 2.5, now - timedelta(days=1), card_id="card_late"),
                ReviewCard(6, 2, 2.6, now + timedelta(days=5), card_id="card_later"),
                ReviewCard(1, 0, 1.7, now - timedelta(days=1), card_id="card_hard"),
            ]
        ),
    )
    return deck_path


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "SM-2 spaced-repetition scheduler" in result.stdout
    for command in ("review", "queue", "stats", "plan"):
        assert command in result.stdout


# --- New / Review ---


def test_new_creates_due_cards(deck_path):
    result = runner.invoke(app, ["new", str(deck_path), "--count", "2"])

    assert result.exit_code == 0
    ids = result.stdout.split()
    assert len(ids) == 2
    deck = load_deck(deck_path)
    assert [c.card_id for c in deck.cards] == ids
    assert all(c.repetition == 0 and c.ease_factor == 2.5 for c in deck.cards)


def test_review_updates_deck(seeded_deck):
    result = runner.invoke(
        app, ["review", "card_hard", "5", str(seeded_deck), "--time-spent", "3"]
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["id"] == "card_hard"
    assert data["repetition"] == 1
    assert data["interval"] == 1
    assert data["ease_factor"] == pytest.approx(1.8)

    deck = load_deck(seeded_deck)
    stored = next(c for c in deck.cards if c.card_id == "card_hard")
    assert stored.repetition == 1
    assert len(deck.events) == 1
    assert deck.events[0].time_spent == 3.0


def test_review_dry_run_leaves_deck(seeded_deck):
    before = seeded_deck.read_text()
    result = runner.invoke(app, ["review", "card_late", "4", str(seeded_deck), "--dry-run"])

    assert result.exit_code == 0
    assert "DRY RUN" in result.stdout
    assert seeded_deck.read_text() == before


def test_review_invalid_rating(seeded_deck):
    before = seeded_deck.read_text()
    result = runner.invoke(app, ["review", "card_late", "6", str(seeded_deck)])

    assert result.exit_code == 2
    assert seeded_deck.read_text() == before


def test_review_unknown_card(seeded_deck):
    result = runner.invoke(app, ["review", "card_ghost", "4", str(seeded_deck)])
    assert result.exit_code == 1


def test_unreadable_deck(deck_path):
    deck_path.write_text("cards: [broken")
    result = runner.invoke(app, ["queue", str(deck_path)])
    assert result.exit_code == 1


# --- Queue ---


def test_queue_orders_due_cards(seeded_deck):
    result = runner.invoke(app, ["queue", str(seeded_deck), "--json"])

    assert result.exit_code == 0
    ids = [c["id"] for c in json.loads(result.stdout)]
    assert ids == ["card_hard", "card_late"]


def test_queue_limit(seeded_deck):
    result = runner.invoke(app, ["queue", str(seeded_deck), "--limit", "1"])

    assert result.exit_code == 0
    assert "Due cards: 1" in result.stdout
    assert "card_hard" in result.stdout


def test_queue_empty(deck_path):
    result = runner.invoke(app, ["queue", str(deck_path)])
    assert result.exit_code == 0
    assert "No cards due" in result.stdout


# --- Stats ---


def test_stats_overview_json(seeded_deck):
    runner.invoke(app, ["review", "card_late", "5", str(seeded_deck)])

    result = runner.invoke(app, ["stats", str(seeded_deck), "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["due_today"] == 1
    assert data["reviewed_today"] == 1
    assert data["study_streak_days"] == 1
    assert data["recommendation"]["cards_per_session"] == 1


def test_stats_single_card(seeded_deck):
    runner.invoke(app, ["review", "card_late", "2", str(seeded_deck)])

    result = runner.invoke(app, ["stats", str(seeded_deck), "--card", "card_late"])

    assert result.exit_code == 0
    assert "total_reviews: 1" in result.stdout
    assert "retention: 0.0" in result.stdout


def test_stats_unknown_card(seeded_deck):
    result = runner.invoke(app, ["stats", str(seeded_deck), "--card", "card_ghost"])
    assert result.exit_code == 1


# --- Plan ---


def test_plan_json(mock_home):
    result = runner.invoke(app, ["plan", "45", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "sessions_per_day": 3,
        "cards_per_session": 15,
        "estimated_minutes": 22.5,
    }


def test_plan_text(mock_home):
    result = runner.invoke(app, ["plan", "7"])
    assert result.exit_code == 0
    assert "1 session(s) of 7 cards, ~10.5 min each" in result.stdout


def test_plan_nothing_due(mock_home):
    result = runner.invoke(app, ["plan", "0"])
    assert result.exit_code == 0
    assert "Nothing due" in result.stdout


# --- Config ---


def test_config_show(mock_home, monkeypatch):
    monkeypatch.setenv("CADENCE_MAX_CARDS_PER_SESSION", "15")
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["max_cards_per_session"] == 15
    assert data["deck_path"].endswith("deck.yaml")
    assert set(data) == {
        "deck_path",
        "max_cards_per_session",
        "minutes_per_card",
        "max_sessions_per_day",
        "session_limit",
        "host",
        "port",
    }


# --- Deck session ---


def test_deck_session_requires_deck_path(mock_home):
    with pytest.raises(ValueError, match="No deck path configured"):
        DeckSession(AppConfig(deck_path=None))
