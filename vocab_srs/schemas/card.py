"""Pydantic models for the card and review endpoints."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from vocab_srs.core.srs.sm2 import CardPhase

CardText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CardCreate(CamelModel):
    """Payload for creating a card."""

    front: CardText
    back: CardText
    tags: list[str] | None = None
    user_id: str | None = None
    story_id: str | None = None


class BulkCardItem(CamelModel):
    front: CardText
    back: CardText
    tags: list[str] | None = None


class BulkCardCreate(CamelModel):
    """Payload for importing several cards for one learner."""

    user_id: str | None = None
    story_id: str | None = None
    cards: list[BulkCardItem] = Field(..., min_length=1)


class CardRead(CamelModel):
    """Card as returned by the API."""

    id: uuid.UUID
    user_id: str
    front: str
    back: str
    tags: list[str] = Field(default_factory=list)
    story_id: str | None = None
    ease_factor: float
    interval_days: int
    last_interval_days: int
    reps: int
    total_reviews: int
    total_fails: int
    consecutive_fails: int
    next_review: datetime
    last_reviewed_at: datetime | None = None
    is_leech: bool
    leech_notes: str | None = None
    state: CardPhase
    created_at: datetime
    updated_at: datetime


class BulkCardResult(CamelModel):
    created: list[CardRead]
    skipped: list[str]


class ReviewRequest(CamelModel):
    """Payload for submitting a review."""

    quality: int = Field(..., ge=0, le=5, description="Recall quality from 0 (blackout) to 5 (perfect)")
    user_id: str | None = None


class ReviewRead(CamelModel):
    """One entry of a card's review history."""

    id: uuid.UUID
    card_id: uuid.UUID
    user_id: str | None = None
    quality: int
    reviewed_at: datetime
    interval_before: int
    ease_factor_before: float
    interval_after: int
    ease_factor_after: float
    reps_after: int
    state_transition: str | None = None
    leech_detected: bool


class ReviewResult(CamelModel):
    """Response after scheduling a review."""

    card: CardRead
    review: ReviewRead


class LeechResetRequest(CamelModel):
    user_id: str | None = None


class CardStats(CamelModel):
    """Aggregate counters for a learner's deck."""

    total: int
    due_now: int
    new_due: int
    learned: int
    leeches: int
    by_story: dict[str, int] = Field(default_factory=dict)
