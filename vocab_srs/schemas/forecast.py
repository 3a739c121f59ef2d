"""Pydantic models for the review forecast."""
from __future__ import annotations

import datetime as dt

from vocab_srs.schemas.card import CamelModel


class HourBucket(CamelModel):
    hour: int
    count: int
    cumulative: int


class DayBucket(CamelModel):
    date: dt.date
    count: int
    cumulative: int
    hours: list[HourBucket]


class Forecast(CamelModel):
    """Hourly (today) and daily (week) projection of due cards."""

    today: list[HourBucket]
    week: list[DayBucket]
    cards_due_now: int
