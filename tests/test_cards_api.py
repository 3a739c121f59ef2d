"""API tests for the card endpoints."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from vocab_srs.db.models import Card


def create_card(client, front="Das Haus", back="The house", user_id="learner-1", **extra):
    response = client.post("/cards", json={"front": front, "back": back, "userId": user_id, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert datetime.fromisoformat(payload["timestamp"]).tzinfo is not None


def test_create_card_returns_initial_state(client):
    card = create_card(client, tags=["house", "noun"])

    assert card["front"] == "Das Haus"
    assert card["back"] == "The house"
    assert card["userId"] == "learner-1"
    assert card["tags"] == ["house", "noun"]
    assert card["easeFactor"] == pytest.approx(2.5)
    assert card["intervalDays"] == 0
    assert card["reps"] == 0
    assert card["totalReviews"] == 0
    assert card["totalFails"] == 0
    assert card["isLeech"] is False
    assert card["state"] == "new"
    assert card["nextReview"]


@pytest.mark.parametrize(
    "body",
    [
        {"back": "The house", "userId": "learner-1"},
        {"front": "Das Haus", "userId": "learner-1"},
        {"front": "   ", "back": "The house", "userId": "learner-1"},
        {"front": "Das Haus", "back": "", "userId": "learner-1"},
    ],
)
def test_create_card_rejects_missing_text(client, body):
    response = client.post("/cards", json=body)

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


def test_create_card_requires_user(client):
    response = client.post("/cards", json={"front": "Das Haus", "back": "The house"})

    assert response.status_code == 400


def test_create_card_with_null_tags(client):
    card = create_card(client, tags=None)

    assert card["tags"] == []


def test_user_id_header_fallback(client):
    response = client.post(
        "/cards", json={"front": "Das Haus", "back": "The house"}, headers={"X-User-Id": "learner-9"}
    )

    assert response.status_code == 201
    assert response.json()["userId"] == "learner-9"

    listed = client.get("/cards", headers={"X-User-Id": "learner-9"})
    assert [card["front"] for card in listed.json()] == ["Das Haus"]


def test_list_cards_scoped_by_user(client):
    create_card(client, front="die Katze", back="the cat")
    create_card(client, front="der Hund", back="the dog", user_id="learner-2")

    response = client.get("/cards", params={"userId": "learner-1"})

    assert response.status_code == 200
    assert [card["front"] for card in response.json()] == ["die Katze"]
    assert client.get("/cards").status_code == 400


def test_get_card(client):
    card = create_card(client)

    response = client.get(f"/cards/{card['id']}")
    assert response.status_code == 200
    assert response.json()["id"] == card["id"]

    assert client.get(f"/cards/{card['id']}", params={"userId": "learner-2"}).status_code == 404
    assert client.get("/cards/2b1e6f0c-5a4d-4c3b-8a29-1f0e9d8c7b6a").status_code == 404
    assert client.get("/cards/not-a-card").status_code == 404


def test_das_haus_review_scenario(client):
    card = create_card(client, front="Das Haus", back="The house")
    url = f"/cards/{card['id']}/review"

    first = client.post(url, json={"quality": 5, "userId": "learner-1"})
    assert first.status_code == 200
    assert first.json()["card"]["reps"] == 1
    assert first.json()["card"]["intervalDays"] == 1
    assert first.json()["review"]["quality"] == 5
    assert first.json()["review"]["stateTransition"] == "new->learning"

    second = client.post(url, json={"quality": 5, "userId": "learner-1"}).json()
    assert second["card"]["reps"] == 2
    assert second["card"]["intervalDays"] == 6
    assert second["review"]["intervalBefore"] == 1

    third = client.post(url, json={"quality": 2, "userId": "learner-1"}).json()
    assert third["card"]["reps"] == 0
    assert third["card"]["intervalDays"] == 1
    assert third["card"]["totalFails"] == 1
    assert third["card"]["totalReviews"] == 3

    history = client.get(f"/cards/{card['id']}/reviews")
    assert history.status_code == 200
    assert [review["quality"] for review in history.json()] == [5, 5, 2]

    latest = client.get(f"/cards/{card['id']}/reviews", params={"limit": 2})
    assert [review["quality"] for review in latest.json()] == [5, 2]


@pytest.mark.parametrize("body", [{"quality": 6}, {"quality": -1}, {}, {"quality": "five"}, {"quality": 4.5}])
def test_invalid_quality_is_rejected_without_state_change(client, body):
    card = create_card(client)

    response = client.post(f"/cards/{card['id']}/review", json=body)

    assert response.status_code == 400
    after = client.get(f"/cards/{card['id']}").json()
    assert after["totalReviews"] == 0
    assert after["reps"] == 0
    assert client.get(f"/cards/{card['id']}/reviews").json() == []


@pytest.mark.parametrize("quality", ["5", 5.0])
def test_numeric_quality_forms_are_accepted(client, quality):
    card = create_card(client)

    response = client.post(f"/cards/{card['id']}/review", json={"quality": quality})

    assert response.status_code == 200
    assert response.json()["review"]["quality"] == 5
    assert response.json()["card"]["reps"] == 1


def test_review_unknown_card(client):
    response = client.post("/cards/2b1e6f0c-5a4d-4c3b-8a29-1f0e9d8c7b6a/review", json={"quality": 4})

    assert response.status_code == 404


def test_reviews_of_unknown_card(client):
    assert client.get("/cards/2b1e6f0c-5a4d-4c3b-8a29-1f0e9d8c7b6a/reviews").status_code == 404


def test_reset_leech_on_non_leech_is_noop(client):
    card = create_card(client)

    response = client.post(f"/cards/{card['id']}/reset-leech", json={"userId": "learner-1"})

    assert response.status_code == 200
    assert response.json()["isLeech"] is False
    assert response.json()["intervalDays"] == card["intervalDays"]


def test_reset_leech_clears_flag(client, make_card):
    card = make_card(is_leech=True, leech_notes="Marked as leech", total_fails=14, total_reviews=20)

    response = client.post(f"/cards/{card.id}/reset-leech", json={"userId": "learner-1"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["isLeech"] is False
    assert payload["leechNotes"] is None
    assert payload["totalFails"] == 14


def test_reset_leech_unknown_card(client):
    response = client.post("/cards/2b1e6f0c-5a4d-4c3b-8a29-1f0e9d8c7b6a/reset-leech", json={})

    assert response.status_code == 404


def test_due_cards(client):
    card = create_card(client)

    response = client.get("/cards/due", params={"userId": "learner-1"})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [card["id"]]

    past = client.get("/cards/due", params={"userId": "learner-1", "date": "2000-01-01T00:00:00+00:00"})
    assert past.status_code == 200
    assert past.json() == []


def test_due_cards_never_returns_future_cards(client):
    card = create_card(client)
    client.post(f"/cards/{card['id']}/review", json={"quality": 5})

    response = client.get("/cards/due", params={"userId": "learner-1"})

    assert response.json() == []


def test_due_cards_rejects_bad_date(client):
    response = client.get("/cards/due", params={"userId": "learner-1", "date": "next tuesday"})

    assert response.status_code == 400


def test_due_cards_new_card_cap(client):
    for i in range(4):
        create_card(client, front=f"Wort {i}", back=f"word {i}")

    response = client.get("/cards/due", params={"userId": "learner-1", "maxNewCards": 2})

    assert response.status_code == 200
    assert len(response.json()) == 2


def test_bulk_create_skips_duplicates(client):
    create_card(client, front="das Haus", back="the house")

    response = client.post(
        "/cards/bulk",
        json={
            "userId": "learner-1",
            "storyId": "story-7",
            "cards": [
                {"front": "Das Haus", "back": "the house"},
                {"front": "der Garten", "back": "the garden", "tags": ["outside"]},
                {"front": "die Tür", "back": "the door"},
                {"front": "DIE TÜR", "back": "the door"},
            ],
        },
    )

    assert response.status_code == 201
    payload = response.json()
    assert [card["front"] for card in payload["created"]] == ["der Garten", "die Tür"]
    assert payload["skipped"] == ["Das Haus", "DIE TÜR"]
    assert all(card["storyId"] == "story-7" for card in payload["created"])


def test_stats(client, make_card):
    now = datetime.now(timezone.utc)
    make_card("a", "1", now=now - timedelta(hours=1), story_id="story-1")
    make_card("b", "2", now=now + timedelta(days=3), reps=3, total_reviews=3)
    make_card("c", "3", now=now - timedelta(days=1), total_reviews=15, total_fails=13, is_leech=True)

    response = client.get("/cards/stats", params={"userId": "learner-1"})

    assert response.status_code == 200
    assert response.json() == {
        "total": 3,
        "dueNow": 2,
        "newDue": 1,
        "learned": 1,
        "leeches": 1,
        "byStory": {"story-1": 1},
    }


def test_leeches_ordered_by_failures(client, make_card):
    make_card("few", "x", is_leech=True, total_fails=13, total_reviews=13)
    make_card("many", "x", is_leech=True, total_fails=20, total_reviews=25)
    make_card("fine", "x")

    response = client.get("/cards/leeches", params={"userId": "learner-1"})

    assert response.status_code == 200
    assert [card["front"] for card in response.json()] == ["many", "few"]


def test_forecast_endpoint(client, make_card):
    make_card("now", "x", now=datetime(2024, 3, 15, 8, 0, tzinfo=timezone.utc))
    make_card("later", "x", now=datetime(2024, 3, 17, 15, 0, tzinfo=timezone.utc))

    response = client.get(
        "/cards/forecast", params={"userId": "learner-1", "date": "2024-03-15T09:30:00+00:00"}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["cardsDueNow"] == 1
    assert len(payload["today"]) == 24
    assert payload["today"][9] == {"hour": 9, "count": 1, "cumulative": 1}
    assert [day["date"] for day in payload["week"]][:3] == ["2024-03-15", "2024-03-16", "2024-03-17"]
    assert payload["week"][2]["hours"][15]["count"] == 1
    assert payload["week"][-1]["cumulative"] == 2


def test_review_is_persisted_atomically(client, db_session):
    card = create_card(client)

    client.post(f"/cards/{card['id']}/review", json={"quality": 4})

    stored = db_session.get(Card, uuid.UUID(card["id"]))
    db_session.refresh(stored)
    assert stored.total_reviews == len(stored.reviews) == 1
