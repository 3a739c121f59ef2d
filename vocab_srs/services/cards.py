"""Card lifecycle operations other than reviewing."""
from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.orm import Session

from vocab_srs.core.srs import SchedulerParams, ensure_utc, initial_state
from vocab_srs.db.models.card import Card, Review
from vocab_srs.schemas.card import BulkCardItem, CardStats
from vocab_srs.services.card_store import CardStore
from vocab_srs.services.params import scheduler_params
from vocab_srs.utils.exceptions import CardNotFoundError, ValidationError


def require_user_id(user_id: str | None) -> str:
    """Return a stripped user id or raise :class:`ValidationError`."""

    if user_id is None or not str(user_id).strip():
        raise ValidationError("userId is required", {"field": "userId"})
    return str(user_id).strip()


def _clean_text(value: str | None, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} must not be empty", {"field": field})
    return text


def _clean_tags(tags: Sequence[str] | None) -> list[str]:
    seen: list[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class CardService:
    """Create, read and reset cards for a learner."""

    def __init__(self, db: Session, *, params: SchedulerParams | None = None) -> None:
        self.db = db
        self.store = CardStore(db)
        self.params = params or scheduler_params()

    def _new_card(
        self,
        *,
        user_id: str,
        front: str,
        back: str,
        tags: Sequence[str] | None,
        story_id: str | None,
        now: datetime,
    ) -> Card:
        state = initial_state(now, self.params)
        return Card(
            user_id=user_id,
            front=_clean_text(front, "front"),
            back=_clean_text(back, "back"),
            tags=_clean_tags(tags),
            story_id=story_id,
            ease_factor=state.ease_factor,
            interval_days=state.interval_days,
            last_interval_days=state.last_interval_days,
            reps=state.reps,
            total_reviews=state.total_reviews,
            total_fails=state.total_fails,
            consecutive_fails=state.consecutive_fails,
            next_review=state.next_review,
            is_leech=False,
            fails_at_leech_reset=0,
            created_at=now,
            updated_at=now,
        )

    def create_card(
        self,
        *,
        user_id: str | None,
        front: str,
        back: str,
        tags: Sequence[str] | None = None,
        story_id: str | None = None,
        now: datetime | None = None,
    ) -> Card:
        """Create a card that is due immediately."""

        user_id = require_user_id(user_id)
        now = ensure_utc(now or datetime.now(timezone.utc))
        card = self._new_card(
            user_id=user_id, front=front, back=back, tags=tags, story_id=story_id, now=now
        )
        with self.store.transaction():
            self.store.add_card(card)
        logger.info("Card created", card_id=str(card.id), user_id=user_id, front=card.front)
        return card

    def bulk_create(
        self,
        *,
        user_id: str | None,
        items: Sequence[BulkCardItem],
        story_id: str | None = None,
        now: datetime | None = None,
    ) -> tuple[list[Card], list[str]]:
        """Create several cards at once, skipping fronts the learner already has.

        Duplicates are detected case-insensitively, both against stored cards
        and within the batch itself. Everything is committed in one transaction.
        """

        user_id = require_user_id(user_id)
        now = ensure_utc(now or datetime.now(timezone.utc))
        known = self.store.existing_fronts(user_id=user_id)
        created: list[Card] = []
        skipped: list[str] = []

        with self.store.transaction():
            for item in items:
                key = item.front.strip().lower()
                if key in known:
                    skipped.append(item.front)
                    continue
                card = self._new_card(
                    user_id=user_id,
                    front=item.front,
                    back=item.back,
                    tags=item.tags,
                    story_id=story_id,
                    now=now,
                )
                self.store.add_card(card)
                known.add(key)
                created.append(card)

        logger.info(
            "Bulk card import finished",
            user_id=user_id,
            created=len(created),
            skipped=len(skipped),
        )
        return created, skipped

    def get_card(self, card_id: str, *, user_id: str | None = None) -> Card:
        card = self.store.get_card(card_id, user_id=user_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def list_cards(self, *, user_id: str | None) -> list[Card]:
        return self.store.list_cards(user_id=require_user_id(user_id))

    def list_leeches(self, *, user_id: str | None) -> list[Card]:
        return self.store.list_leeches(user_id=require_user_id(user_id))

    def review_history(
        self, card_id: str, *, user_id: str | None = None, limit: int | None = None
    ) -> list[Review]:
        card = self.get_card(card_id, user_id=user_id)
        return self.store.list_reviews(card.id, limit=limit)

    def reset_leech(
        self, card_id: str, *, user_id: str | None = None, now: datetime | None = None
    ) -> Card:
        """Clear the leech flag; scheduling fields stay untouched.

        Resetting a card that is not a leech changes nothing.
        """

        now = ensure_utc(now or datetime.now(timezone.utc))
        with self.store.transaction():
            card = self.store.get_card_for_update(card_id, user_id=user_id)
            if card is None:
                raise CardNotFoundError(card_id)
            if card.is_leech:
                card.reset_leech(now)
                logger.info(
                    "Leech reset",
                    card_id=str(card.id),
                    user_id=card.user_id,
                    total_fails=card.total_fails,
                )
            else:
                logger.debug("Leech reset skipped, card is not a leech", card_id=str(card.id))
        return card

    def stats(self, *, user_id: str | None, now: datetime | None = None) -> CardStats:
        """Deck counters: totals, due cards, graduated cards and leeches."""

        user_id = require_user_id(user_id)
        now = ensure_utc(now or datetime.now(timezone.utc))
        cards = self.store.list_cards(user_id=user_id)

        due = [card for card in cards if card.next_review <= now]
        by_story = Counter(card.story_id for card in cards if card.story_id)
        return CardStats(
            total=len(cards),
            due_now=len(due),
            new_due=sum(1 for card in due if card.total_reviews == 0),
            learned=sum(1 for card in cards if card.reps >= 3),
            leeches=sum(1 for card in cards if card.is_leech),
            by_story=dict(by_story),
        )
