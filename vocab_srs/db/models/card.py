"""Card and review database models."""
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from vocab_srs.core.srs.sm2 import CardPhase, SchedulingState, phase_for
from vocab_srs.db.base import Base
from vocab_srs.db.types import StringList, UTCDateTime


class Card(Base):
    """One learner's memory state for one vocabulary item."""

    __tablename__ = "cards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(128), nullable=False, index=True)
    front = Column(Text, nullable=False)
    back = Column(Text, nullable=False)
    tags = Column(StringList, nullable=True, default=list)
    story_id = Column(String(128), nullable=True, index=True)

    # SM-2 state
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval_days = Column(Integer, nullable=False, default=0)
    last_interval_days = Column(Integer, nullable=False, default=0)
    reps = Column(Integer, nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    total_fails = Column(Integer, nullable=False, default=0)
    consecutive_fails = Column(Integer, nullable=False, default=0)
    next_review = Column(UTCDateTime, nullable=False)
    last_reviewed_at = Column(UTCDateTime, nullable=True)

    # Leech tracking
    is_leech = Column(Boolean, nullable=False, default=False)
    leech_notes = Column(Text, nullable=True)
    leech_reset_at = Column(UTCDateTime, nullable=True)
    fails_at_leech_reset = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    reviews = relationship(
        "Review",
        back_populates="card",
        cascade="all, delete-orphan",
        order_by="Review.sequence",
        lazy="select",
    )

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (Index("ix_cards_user_next_review", "user_id", "next_review"),)

    @property
    def state(self) -> CardPhase:
        return phase_for(reps=self.reps or 0, total_reviews=self.total_reviews or 0)

    @property
    def fails_since_leech_reset(self) -> int:
        return (self.total_fails or 0) - (self.fails_at_leech_reset or 0)

    def scheduling_state(self) -> SchedulingState:
        """Snapshot the SM-2 columns for the pure scheduler."""

        return SchedulingState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            last_interval_days=self.last_interval_days,
            reps=self.reps,
            total_reviews=self.total_reviews,
            total_fails=self.total_fails,
            consecutive_fails=self.consecutive_fails,
            next_review=self.next_review,
        )

    def apply_state(self, state: SchedulingState, reviewed_at: datetime) -> None:
        """Copy a computed scheduling state back onto the row."""

        self.ease_factor = state.ease_factor
        self.interval_days = state.interval_days
        self.last_interval_days = state.last_interval_days
        self.reps = state.reps
        self.total_reviews = state.total_reviews
        self.total_fails = state.total_fails
        self.consecutive_fails = state.consecutive_fails
        self.next_review = state.next_review
        self.last_reviewed_at = reviewed_at
        self.updated_at = reviewed_at

    def flag_leech(self, note: str) -> None:
        self.is_leech = True
        self.leech_notes = note

    def reset_leech(self, reset_at: datetime) -> None:
        """Clear the leech flag and start counting failures afresh."""

        self.is_leech = False
        self.leech_notes = None
        self.leech_reset_at = reset_at
        self.fails_at_leech_reset = self.total_fails
        self.updated_at = reset_at

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Card id={self.id} front={self.front!r} reps={self.reps} next_review={self.next_review}>"


class Review(Base):
    """Immutable record of one review event."""

    __tablename__ = "reviews"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    card_id = Column(
        UUID(as_uuid=True), ForeignKey("cards.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(128), nullable=True, index=True)
    quality = Column(Integer, nullable=False)
    reviewed_at = Column(UTCDateTime, nullable=False)
    # 1-based position in the card's history, in insertion order
    sequence = Column(Integer, nullable=False)

    # Snapshot of the card before the review
    interval_before = Column(Integer, nullable=False)
    ease_factor_before = Column(Float, nullable=False)
    # Outcome of the review
    interval_after = Column(Integer, nullable=False)
    ease_factor_after = Column(Float, nullable=False)
    reps_after = Column(Integer, nullable=False)
    state_transition = Column(String(50))
    leech_detected = Column(Boolean, nullable=False, default=False)

    card = relationship("Card", back_populates="reviews")

    __table_args__ = (
        Index("ix_reviews_card_reviewed_at", "card_id", "reviewed_at"),
        CheckConstraint("quality BETWEEN 0 AND 5", name="quality_range"),
        UniqueConstraint("card_id", "sequence"),
    )

    def set_transition(self, before: SchedulingState, after: SchedulingState) -> None:
        """Store the before/after scheduling values."""

        self.interval_before = before.interval_days
        self.ease_factor_before = before.ease_factor
        self.interval_after = after.interval_days
        self.ease_factor_after = after.ease_factor
        self.reps_after = after.reps
        self.sequence = after.total_reviews
        self.state_transition = f"{before.phase.value}->{after.phase.value}"
