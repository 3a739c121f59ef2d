"""Leech detection for cards that keep failing."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from vocab_srs.core.srs.sm2 import SchedulingState, is_failure

DEFAULT_TOTAL_FAIL_THRESHOLD = 12
DEFAULT_WINDOW_SIZE = 30
DEFAULT_WINDOW_FAIL_THRESHOLD = 8


@dataclass(frozen=True, slots=True)
class LeechPolicy:
    """Thresholds deciding when a card counts as a leech."""

    total_fail_threshold: int = DEFAULT_TOTAL_FAIL_THRESHOLD
    window_size: int = DEFAULT_WINDOW_SIZE
    window_fail_threshold: int = DEFAULT_WINDOW_FAIL_THRESHOLD


DEFAULT_POLICY = LeechPolicy()


def _window(recent_qualities: Sequence[int], policy: LeechPolicy) -> Sequence[int]:
    return recent_qualities[-policy.window_size :]


def evaluate_leech(
    state: SchedulingState,
    recent_qualities: Sequence[int],
    *,
    fails_since_reset: int | None = None,
    policy: LeechPolicy = DEFAULT_POLICY,
) -> bool:
    """Return whether the card meets the leech criteria.

    ``recent_qualities`` are the ratings recorded since the last leech reset,
    oldest first, including the review just applied to ``state``.
    ``fails_since_reset`` defaults to the lifetime failure count.
    """

    fails = state.total_fails if fails_since_reset is None else fails_since_reset
    if fails > policy.total_fail_threshold:
        return True

    window = _window(recent_qualities, policy)
    if len(window) < policy.window_size:
        return False
    window_fails = sum(1 for quality in window if is_failure(quality))
    return window_fails > policy.window_fail_threshold


def leech_note(state: SchedulingState, *, fails_since_reset: int | None = None) -> str:
    fails = state.total_fails if fails_since_reset is None else fails_since_reset
    return (
        f"Marked as leech: {fails} fails since last reset "
        f"({state.total_fails} total), {state.consecutive_fails} consecutive"
    )
