"""Smoke tests for the card endpoints using HTTPX."""
from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_create_review_and_history(async_client):
    created = await async_client.post(
        "/cards", json={"front": "der Apfel", "back": "the apple", "userId": "learner-3"}
    )
    assert created.status_code == 201
    card_id = created.json()["id"]

    reviewed = await async_client.post(f"/cards/{card_id}/review", json={"quality": 3, "userId": "learner-3"})
    assert reviewed.status_code == 200
    payload = reviewed.json()
    assert payload["card"]["reps"] == 1
    assert payload["card"]["easeFactor"] == pytest.approx(2.36)
    assert payload["review"]["cardId"] == card_id

    history = await async_client.get(f"/cards/{card_id}/reviews", params={"userId": "learner-3"})
    assert history.status_code == 200
    assert len(history.json()) == 1


@pytest.mark.asyncio
async def test_missing_user_is_a_client_error(async_client):
    for path in ("/cards", "/cards/due", "/cards/forecast", "/cards/stats", "/cards/leeches"):
        response = await async_client.get(path)
        assert response.status_code == 400, path


@pytest.mark.asyncio
async def test_bulk_requires_cards(async_client):
    response = await async_client.post("/cards/bulk", json={"userId": "learner-3", "cards": []})

    assert response.status_code == 400
