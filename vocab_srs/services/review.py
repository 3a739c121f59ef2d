"""Review submission: schedule, detect leeches, persist atomically."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.orm import Session
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from vocab_srs.config import settings
from vocab_srs.core.srs import (
    LeechPolicy,
    SchedulerParams,
    SchedulingState,
    compute_next_state,
    ensure_utc,
    evaluate_leech,
    leech_note,
)
from vocab_srs.core.srs.sm2 import validate_quality
from vocab_srs.db.models.card import Card, Review
from vocab_srs.services.card_store import CardStore
from vocab_srs.services.params import leech_policy, scheduler_params
from vocab_srs.utils.exceptions import CardNotFoundError, ConcurrentUpdateError, ValidationError


@dataclass(slots=True)
class ReviewOutcome:
    """Result of one review. ``after`` is fixed; ``card`` is the live row."""

    card: Card
    review: Review
    after: SchedulingState


def _log_conflict(retry_state: RetryCallState) -> None:
    logger.warning(
        "Review lost a concurrent update race, retrying",
        attempt=retry_state.attempt_number,
    )


class ReviewService:
    """Apply a quality rating to a card.

    The card row is re-read under a row lock, advanced through the SM-2
    scheduler and the leech detector, and written back together with a new
    review record in a single transaction. A concurrent writer bumping the
    card's version makes the commit fail; the whole read-compute-write cycle is
    then retried against the fresh row.
    """

    def __init__(
        self,
        db: Session,
        *,
        params: SchedulerParams | None = None,
        policy: LeechPolicy | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self.db = db
        self.store = CardStore(db)
        self.params = params or scheduler_params()
        self.policy = policy or leech_policy()
        self.max_attempts = max_attempts or settings.REVIEW_CONFLICT_RETRIES

    def submit_review(
        self,
        card_id: str,
        quality: int,
        *,
        user_id: str | None = None,
        reviewed_at: datetime | None = None,
    ) -> ReviewOutcome:
        try:
            quality = validate_quality(quality)
        except ValueError as exc:
            raise ValidationError(str(exc), {"field": "quality", "value": quality}) from exc
        reviewed_at = ensure_utc(reviewed_at or datetime.now(timezone.utc))

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.01, max=0.2),
            retry=retry_if_exception_type(ConcurrentUpdateError),
            before_sleep=_log_conflict,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._apply(card_id, quality, user_id=user_id, reviewed_at=reviewed_at)
        raise AssertionError("unreachable")  # pragma: no cover

    def _apply(
        self, card_id: str, quality: int, *, user_id: str | None, reviewed_at: datetime
    ) -> ReviewOutcome:
        with self.store.transaction():
            card = self.store.get_card_for_update(card_id, user_id=user_id)
            if card is None:
                raise CardNotFoundError(card_id)

            # Window of ratings since the last leech reset, oldest first.
            previous = self.store.recent_qualities(
                card.id,
                limit=max(self.policy.window_size - 1, 0),
                since=card.leech_reset_at,
            )

            before = card.scheduling_state()
            after = compute_next_state(before, quality, reviewed_at=reviewed_at, params=self.params)
            card.apply_state(after, reviewed_at)

            leech_detected = False
            if not card.is_leech:
                fails = card.fails_since_leech_reset
                if evaluate_leech(
                    after, [*previous, quality], fails_since_reset=fails, policy=self.policy
                ):
                    card.flag_leech(leech_note(after, fails_since_reset=fails))
                    leech_detected = True

            review = Review(
                card_id=card.id,
                user_id=card.user_id,
                quality=quality,
                reviewed_at=reviewed_at,
                leech_detected=leech_detected,
            )
            review.set_transition(before, after)
            self.store.add_review(review)

        logger.info(
            "Review recorded",
            card_id=str(card.id),
            quality=quality,
            interval_before=before.interval_days,
            interval_after=after.interval_days,
            ease_before=round(before.ease_factor, 3),
            ease_after=round(after.ease_factor, 3),
            transition=review.state_transition,
        )
        if leech_detected:
            logger.warning(
                "Card flagged as leech",
                card_id=str(card.id),
                user_id=card.user_id,
                total_fails=card.total_fails,
            )
        return ReviewOutcome(card=card, review=review, after=after)
