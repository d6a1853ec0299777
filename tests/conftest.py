from datetime import datetime, timezone

import pytest

from cadence.application.scheduler import new_card


@pytest.fixture
def now():
    """A fixed review instant so due dates are deterministic."""
    return datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def fresh_card(now):
    return new_card(now, card_id="card_fresh")


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and CADENCE_* settings from the developer machine
    monkeypatch.setenv("HOME", str(home))
    for key in ("DECK_PATH", "MAX_CARDS_PER_SESSION", "MINUTES_PER_CARD", "MAX_SESSIONS_PER_DAY"):
        monkeypatch.delenv(f"CADENCE_{key}", raising=False)
    return home
