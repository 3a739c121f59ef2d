"""SM-2 spaced repetition scheduler.

Pure scheduling core: given a card's current :class:`SchedulingState` and a
quality rating (0-5, below 3 counts as a failure) it returns the next state.
Nothing in this module touches the database or reads settings; callers pass a
:class:`SchedulerParams` built from configuration.

A card's lifecycle is tracked jointly by ``reps`` and ``total_reviews``:

* ``new``      - never reviewed (``total_reviews == 0``)
* ``learning`` - one or two consecutive successes, or reset by a failure
* ``review``   - three or more consecutive successes

The leech flag is independent of the phase and lives in :mod:`.leech`.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, replace
from enum import Enum

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
DEFAULT_FAILURE_EASE_PENALTY = 0.02
MAX_INTERVAL_DAYS = 3650  # 10 years

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
FAILED_INTERVAL_DAYS = 1

TZ = dt.timezone.utc


class CardPhase(str, Enum):
    """Learning phase derived from the repetition counters."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"


@dataclass(frozen=True, slots=True)
class SchedulerParams:
    """Tunable constants of the scheduler."""

    initial_ease_factor: float = DEFAULT_EASE_FACTOR
    min_ease_factor: float = MIN_EASE_FACTOR
    failure_ease_penalty: float = DEFAULT_FAILURE_EASE_PENALTY
    max_interval_days: int = MAX_INTERVAL_DAYS


DEFAULT_PARAMS = SchedulerParams()


@dataclass(frozen=True, slots=True)
class SchedulingState:
    """Memory state of one card as seen by the scheduler."""

    ease_factor: float
    interval_days: int
    last_interval_days: int
    reps: int
    total_reviews: int
    total_fails: int
    consecutive_fails: int
    next_review: dt.datetime

    @property
    def phase(self) -> CardPhase:
        return phase_for(reps=self.reps, total_reviews=self.total_reviews)


def ensure_utc(value: dt.datetime) -> dt.datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=TZ)
    return value.astimezone(TZ)


def phase_for(*, reps: int, total_reviews: int) -> CardPhase:
    """Map repetition counters onto a :class:`CardPhase`."""

    if total_reviews <= 0:
        return CardPhase.NEW
    if reps >= 3:
        return CardPhase.REVIEW
    return CardPhase.LEARNING


def is_failure(quality: int) -> bool:
    return quality < PASSING_QUALITY


def validate_quality(quality: int) -> int:
    """Reject anything that is not an integer rating in ``[0, 5]``."""

    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValueError("Quality must be an integer between 0 and 5")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise ValueError("Quality must be an integer between 0 and 5")
    return quality


def initial_state(
    created_at: dt.datetime, params: SchedulerParams = DEFAULT_PARAMS
) -> SchedulingState:
    """State of a freshly created card: due immediately."""

    return SchedulingState(
        ease_factor=params.initial_ease_factor,
        interval_days=0,
        last_interval_days=0,
        reps=0,
        total_reviews=0,
        total_fails=0,
        consecutive_fails=0,
        next_review=ensure_utc(created_at),
    )


def update_ease_factor(
    ease_factor: float, quality: int, params: SchedulerParams = DEFAULT_PARAMS
) -> float:
    """SM-2 formula: EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored."""

    distance = MAX_QUALITY - quality
    new_ef = ease_factor + (0.1 - distance * (0.08 + distance * 0.02))
    return max(params.min_ease_factor, new_ef)


def _clamp_interval(days: int, params: SchedulerParams) -> int:
    return max(FIRST_INTERVAL_DAYS, min(params.max_interval_days, days))


def on_failure(
    state: SchedulingState,
    reviewed_at: dt.datetime,
    params: SchedulerParams = DEFAULT_PARAMS,
) -> SchedulingState:
    """Transition for a failed review: back to a one-day interval, reps reset."""

    ease_factor = max(params.min_ease_factor, state.ease_factor - params.failure_ease_penalty)
    return replace(
        state,
        ease_factor=ease_factor,
        interval_days=FAILED_INTERVAL_DAYS,
        last_interval_days=state.interval_days,
        reps=0,
        total_reviews=state.total_reviews + 1,
        total_fails=state.total_fails + 1,
        consecutive_fails=state.consecutive_fails + 1,
        next_review=reviewed_at + dt.timedelta(days=FAILED_INTERVAL_DAYS),
    )


def on_success(
    state: SchedulingState,
    quality: int,
    reviewed_at: dt.datetime,
    params: SchedulerParams = DEFAULT_PARAMS,
) -> SchedulingState:
    """Transition for a passed review: grow the interval by the updated ease factor."""

    reps = state.reps + 1
    ease_factor = update_ease_factor(state.ease_factor, quality, params)

    if reps == 1:
        interval_days = FIRST_INTERVAL_DAYS
    elif reps == 2:
        interval_days = SECOND_INTERVAL_DAYS
    else:
        interval_days = round(state.interval_days * ease_factor)
    interval_days = _clamp_interval(interval_days, params)

    return replace(
        state,
        ease_factor=ease_factor,
        interval_days=interval_days,
        last_interval_days=state.interval_days,
        reps=reps,
        total_reviews=state.total_reviews + 1,
        consecutive_fails=0,
        next_review=reviewed_at + dt.timedelta(days=interval_days),
    )


def compute_next_state(
    state: SchedulingState,
    quality: int,
    *,
    reviewed_at: dt.datetime,
    params: SchedulerParams = DEFAULT_PARAMS,
) -> SchedulingState:
    """Main entry point for reviewing a card.

    Args:
        state: Current scheduling state of the card
        quality: Quality rating (0-5)
        reviewed_at: Timestamp of the review; the next due date is measured from it
        params: Scheduler constants

    Returns:
        The card's new :class:`SchedulingState`.
    """
    quality = validate_quality(quality)
    reviewed_at = ensure_utc(reviewed_at)

    if is_failure(quality):
        return on_failure(state, reviewed_at, params)
    return on_success(state, quality, reviewed_at, params)
