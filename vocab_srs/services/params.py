"""Build scheduler value objects from configuration."""
from __future__ import annotations

from zoneinfo import ZoneInfo

from vocab_srs.config import Settings, settings
from vocab_srs.core.srs import LeechPolicy, SchedulerParams


def scheduler_params(config: Settings = settings) -> SchedulerParams:
    return SchedulerParams(
        initial_ease_factor=config.SRS_INITIAL_EASE_FACTOR,
        min_ease_factor=config.SRS_MIN_EASE_FACTOR,
        failure_ease_penalty=config.SRS_FAILURE_EASE_PENALTY,
        max_interval_days=config.SRS_MAX_INTERVAL_DAYS,
    )


def leech_policy(config: Settings = settings) -> LeechPolicy:
    return LeechPolicy(
        total_fail_threshold=config.LEECH_TOTAL_FAIL_THRESHOLD,
        window_size=config.LEECH_WINDOW_SIZE,
        window_fail_threshold=config.LEECH_WINDOW_FAIL_THRESHOLD,
    )


def forecast_zone(config: Settings = settings) -> ZoneInfo:
    return ZoneInfo(config.FORECAST_TIMEZONE)
