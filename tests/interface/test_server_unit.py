from datetime import datetime
from unittest.mock import patch

from fastapi.testclient import TestClient

from cadence.consts import VERSION
from cadence.server import app

client = TestClient(app)

NOW = "2026-10-18T09:00:00+00:00"


def card(card_id=None, **overrides):
    data = {
        "id": card_id,
        "interval": 1,
        "repetition": 0,
        "ease_factor": 2.5,
        "next_review": NOW,
    }
    data.update(overrides)
    return data


def parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts)


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version():
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_new_card():
    response = client.post("/cards/new")
    assert response.status_code == 200
    data = response.json()
    assert (data["interval"], data["repetition"], data["ease_factor"]) == (1, 0, 2.5)


def test_review_success():
    response = client.post("/review", json={"card": card("c1"), "rating": 5, "now": NOW})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "c1"
    assert data["interval"] == 1
    assert data["repetition"] == 1
    assert abs(data["ease_factor"] - 2.6) < 1e-9
    assert parse(data["next_review"]) == parse("2026-10-19T09:00:00+00:00")


def test_review_third_success_uses_ease():
    body = {"card": card(interval=6, repetition=2, ease_factor=2.7), "rating": 3, "now": NOW}
    response = client.post("/review", json=body)

    assert response.status_code == 200
    assert response.json()["interval"] == 15


def test_review_invalid_rating_is_400():
    for rating in (-1, 6):
        response = client.post("/review", json={"card": card(), "rating": rating})
        assert response.status_code == 400
        assert "between 0 and 5" in response.json()["detail"]


def test_review_rejects_non_integer_ratings():
    for rating in (True, "4", 4.0, 3.5):
        response = client.post("/review", json={"card": card(), "rating": rating})
        assert response.status_code == 400, rating
        assert "between 0 and 5" in response.json()["detail"]


def test_review_rejects_card_breaking_invariants():
    for overrides in ({"interval": 0}, {"ease_factor": 1.2}):
        response = client.post("/review", json={"card": card(**overrides), "rating": 4})
        assert response.status_code == 422, overrides


def test_review_accepts_card_at_ease_floor():
    body = {"card": card(ease_factor=1.3), "rating": 3, "now": NOW}
    response = client.post("/review", json=body)
    assert response.status_code == 200
    assert response.json()["ease_factor"] == 1.3


def test_queue_orders_and_filters():
    cards = [
        card("mild", next_review="2026-10-17T09:00:00+00:00"),
        card("future", next_review="2026-10-20T09:00:00+00:00"),
        card("late", next_review="2026-10-10T09:00:00+00:00"),
        card("hard", next_review="2026-10-17T09:00:00+00:00", ease_factor=1.3),
    ]

    response = client.post("/queue", json={"cards": cards, "now": NOW})
    assert [c["id"] for c in response.json()] == ["late", "hard", "mild"]

    response = client.post("/queue", json={"cards": cards, "now": NOW, "due_only": False})
    assert [c["id"] for c in response.json()] == ["late", "hard", "mild", "future"]

    response = client.post("/queue", json={"cards": cards, "now": NOW, "limit": 2})
    assert len(response.json()) == 2


def test_stats():
    events = [
        {"rating": 4, "reviewed_at": "2026-10-17T10:00:00+00:00"},
        {"rating": 1, "reviewed_at": "2026-10-16T10:00:00+00:00"},
        {"rating": 5, "reviewed_at": "2026-10-18T08:00:00+00:00"},
        {"rating": 3, "reviewed_at": "2026-10-18T08:30:00+00:00"},
    ]
    response = client.post("/stats", json={"events": events, "card": card(), "now": NOW})

    assert response.status_code == 200
    data = response.json()
    assert data["total_reviews"] == 4
    assert data["retention"] == 75.0
    assert data["streak"] == 3
    assert data["average_rating"] == 3.25
    assert data["study_streak_days"] == 3
    assert data["is_due"] is True


def test_stats_empty():
    response = client.post("/stats", json={"events": []})
    data = response.json()
    assert data["retention"] == 0
    assert data["streak"] == 0
    assert data["is_due"] is None


def test_stats_rejects_out_of_range_event():
    response = client.post("/stats", json={"events": [{"rating": 9, "reviewed_at": NOW}]})
    assert response.status_code == 422


def test_plan(mock_home):
    response = client.post("/plan", json={"due_count": 100})
    assert response.json() == {
        "sessions_per_day": 3,
        "cards_per_session": 20,
        "estimated_minutes": 30.0,
    }


@patch("cadence.server.resolve_config")
def test_plan_uses_configured_limits(mock_resolve_config, mock_home):
    from cadence.application.config import AppConfig

    mock_resolve_config.return_value = AppConfig(max_cards_per_session=5, minutes_per_card=2.0)

    response = client.post("/plan", json={"due_count": 12})

    assert response.json() == {
        "sessions_per_day": 3,
        "cards_per_session": 4,
        "estimated_minutes": 8.0,
    }
