"""Pure spaced repetition scheduling logic."""

from vocab_srs.core.srs.leech import LeechPolicy, evaluate_leech, leech_note
from vocab_srs.core.srs.sm2 import (
    CardPhase,
    SchedulerParams,
    SchedulingState,
    compute_next_state,
    ensure_utc,
    initial_state,
    phase_for,
)

__all__ = [
    "CardPhase",
    "LeechPolicy",
    "SchedulerParams",
    "SchedulingState",
    "compute_next_state",
    "ensure_utc",
    "evaluate_leech",
    "initial_state",
    "leech_note",
    "phase_for",
]
