"""Review forecast aggregation."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from itertools import accumulate
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from vocab_srs.core.srs import ensure_utc
from vocab_srs.schemas.forecast import DayBucket, Forecast, HourBucket
from vocab_srs.services.card_store import CardStore
from vocab_srs.services.cards import require_user_id
from vocab_srs.services.params import forecast_zone

FORECAST_DAYS = 7
HOURS_PER_DAY = 24


def _hour_buckets(counts: list[int]) -> list[HourBucket]:
    return [
        HourBucket(hour=hour, count=count, cumulative=cumulative)
        for hour, (count, cumulative) in enumerate(zip(counts, accumulate(counts)))
    ]


class ForecastService:
    """Bucket upcoming due dates into hours (today) and days (this week).

    Day and hour boundaries follow the configured forecast time zone. A card
    that is already due is counted in the current hour, so the current hour's
    cumulative value always covers ``cards_due_now``.
    """

    def __init__(self, db: Session, *, zone: ZoneInfo | None = None) -> None:
        self.store = CardStore(db)
        self.zone = zone or forecast_zone()

    def build_forecast(self, *, user_id: str | None, now: datetime | None = None) -> Forecast:
        user_id = require_user_id(user_id)
        now = ensure_utc(now or datetime.now(timezone.utc))

        today = now.astimezone(self.zone).date()
        days = [today + timedelta(days=offset) for offset in range(FORECAST_DAYS)]
        window_end = datetime.combine(
            today + timedelta(days=FORECAST_DAYS), time.min, tzinfo=self.zone
        )

        cards = self.store.cards_due_before(user_id=user_id, until=window_end, inclusive=False)
        per_day: dict[date, list[int]] = {day: [0] * HOURS_PER_DAY for day in days}
        due_now = 0
        for card in cards:
            if card.next_review <= now:
                due_now += 1
            local = max(card.next_review, now).astimezone(self.zone)
            hours = per_day.get(local.date())
            if hours is not None:
                hours[local.hour] += 1

        week: list[DayBucket] = []
        cumulative = 0
        for day in days:
            counts = per_day[day]
            cumulative += sum(counts)
            week.append(
                DayBucket(date=day, count=sum(counts), cumulative=cumulative, hours=_hour_buckets(counts))
            )

        return Forecast(today=week[0].hours, week=week, cards_due_now=due_now)
