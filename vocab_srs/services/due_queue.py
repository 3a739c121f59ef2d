"""Due queue selection."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from vocab_srs.config import settings
from vocab_srs.core.srs import ensure_utc
from vocab_srs.db.models.card import Card
from vocab_srs.services.card_store import CardStore
from vocab_srs.services.cards import require_user_id


class DueQueueService:
    """Select the cards a learner should review right now."""

    def __init__(self, db: Session) -> None:
        self.store = CardStore(db)

    def select_due(
        self,
        *,
        user_id: str | None,
        now: datetime | None = None,
        max_new_cards: int | None = None,
        story_id: str | None = None,
        tag: str | None = None,
        limit: int | None = None,
    ) -> list[Card]:
        """Return due cards, most overdue first, ties broken by id.

        Cards never reviewed count against ``max_new_cards``; cards already in
        progress are not capped. ``limit`` trims the final list without changing
        its order.
        """

        user_id = require_user_id(user_id)
        now = ensure_utc(now or datetime.now(timezone.utc))
        cap = settings.MAX_NEW_CARDS_PER_DAY if max_new_cards is None else max_new_cards

        queue: list[Card] = []
        if limit is not None and limit <= 0:
            return queue
        new_taken = 0
        for card in self.store.cards_due_before(user_id=user_id, until=now, story_id=story_id):
            if tag and tag not in (card.tags or []):
                continue
            if card.total_reviews == 0:
                if new_taken >= cap:
                    continue
                new_taken += 1
            queue.append(card)
            if limit is not None and len(queue) >= limit:
                break
        return queue
