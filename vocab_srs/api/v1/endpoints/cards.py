"""Endpoints for cards, reviews and the read-side views built on them."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from vocab_srs.api.deps import get_db, get_user_id, resolve_user_id
from vocab_srs.schemas import (
    BulkCardCreate,
    BulkCardResult,
    CardCreate,
    CardRead,
    CardStats,
    Forecast,
    LeechResetRequest,
    ReviewRead,
    ReviewRequest,
    ReviewResult,
)
from vocab_srs.services import CardService, DueQueueService, ForecastService, ReviewService
from vocab_srs.utils.exceptions import SchedulerServiceError, to_http_exception


router = APIRouter(prefix="/cards", tags=["cards"])


@router.post("", response_model=CardRead, status_code=status.HTTP_201_CREATED)
def create_card(
    payload: CardCreate,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> CardRead:
    """Create a card that is due immediately."""

    try:
        card = CardService(db).create_card(
            user_id=resolve_user_id(payload.user_id, user_id),
            front=payload.front,
            back=payload.back,
            tags=payload.tags,
            story_id=payload.story_id,
        )
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return CardRead.model_validate(card)


@router.get("", response_model=list[CardRead])
def list_cards(
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> list[CardRead]:
    try:
        cards = CardService(db).list_cards(user_id=user_id)
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return [CardRead.model_validate(card) for card in cards]


@router.post("/bulk", response_model=BulkCardResult, status_code=status.HTTP_201_CREATED)
def bulk_create_cards(
    payload: BulkCardCreate,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> BulkCardResult:
    """Import several cards, skipping fronts the learner already has."""

    try:
        created, skipped = CardService(db).bulk_create(
            user_id=resolve_user_id(payload.user_id, user_id),
            items=payload.cards,
            story_id=payload.story_id,
        )
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return BulkCardResult(
        created=[CardRead.model_validate(card) for card in created],
        skipped=skipped,
    )


@router.get("/due", response_model=list[CardRead])
def get_due_cards(
    *,
    date: datetime | None = Query(None, description="Evaluate due-ness at this instant instead of now"),
    story_id: str | None = Query(None, alias="storyId"),
    tag: str | None = Query(None),
    max_new_cards: int | None = Query(None, alias="maxNewCards", ge=0),
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> list[CardRead]:
    """Return due cards, most overdue first, with new cards capped."""

    try:
        cards = DueQueueService(db).select_due(
            user_id=user_id,
            now=date,
            max_new_cards=max_new_cards,
            story_id=story_id,
            tag=tag,
            limit=limit,
        )
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return [CardRead.model_validate(card) for card in cards]


@router.get("/forecast", response_model=Forecast)
def get_forecast(
    *,
    date: datetime | None = Query(None, description="Build the forecast as of this instant"),
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> Forecast:
    try:
        return ForecastService(db).build_forecast(user_id=user_id, now=date)
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/stats", response_model=CardStats)
def get_stats(
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> CardStats:
    try:
        return CardService(db).stats(user_id=user_id)
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/leeches", response_model=list[CardRead])
def list_leeches(
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> list[CardRead]:
    """Flagged cards, most failures first."""

    try:
        cards = CardService(db).list_leeches(user_id=user_id)
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return [CardRead.model_validate(card) for card in cards]


@router.get("/{card_id}", response_model=CardRead)
def get_card(
    card_id: str,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> CardRead:
    try:
        card = CardService(db).get_card(card_id, user_id=user_id)
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return CardRead.model_validate(card)


@router.post("/{card_id}/review", response_model=ReviewResult)
def submit_review(
    card_id: str,
    payload: ReviewRequest,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> ReviewResult:
    """Grade a card and reschedule it."""

    try:
        outcome = ReviewService(db).submit_review(
            card_id,
            payload.quality,
            user_id=resolve_user_id(payload.user_id, user_id),
        )
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return ReviewResult(
        card=CardRead.model_validate(outcome.card),
        review=ReviewRead.model_validate(outcome.review),
    )


@router.post("/{card_id}/reset-leech", response_model=CardRead)
def reset_leech(
    card_id: str,
    payload: LeechResetRequest | None = None,
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> CardRead:
    """Clear the leech flag without touching the schedule."""

    body_user = payload.user_id if payload else None
    try:
        card = CardService(db).reset_leech(card_id, user_id=resolve_user_id(body_user, user_id))
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return CardRead.model_validate(card)


@router.get("/{card_id}/reviews", response_model=list[ReviewRead])
def list_reviews(
    card_id: str,
    limit: int | None = Query(None, ge=1, le=1000, description="Only the most recent reviews"),
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_user_id),
) -> list[ReviewRead]:
    """Review history, oldest first."""

    try:
        reviews = CardService(db).review_history(card_id, user_id=user_id, limit=limit)
    except SchedulerServiceError as exc:
        raise to_http_exception(exc) from exc
    return [ReviewRead.model_validate(review) for review in reviews]
