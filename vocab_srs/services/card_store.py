"""Persistence boundary for cards and their review history."""
from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from loguru import logger
from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from vocab_srs.db.models.card import Card, Review
from vocab_srs.utils.exceptions import ConcurrentUpdateError, StoreError


def parse_card_id(card_id: str | uuid.UUID) -> uuid.UUID | None:
    """Return the UUID for ``card_id`` or ``None`` when it is malformed."""

    if isinstance(card_id, uuid.UUID):
        return card_id
    try:
        return uuid.UUID(str(card_id))
    except (TypeError, ValueError):
        return None


class CardStore:
    """Keyed storage of cards plus the append-only review log.

    The store owns no scheduling rules. Writes go through :meth:`transaction`,
    which commits or rolls back as a unit and translates database failures into
    :class:`StoreError`.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit everything staged inside the block, or nothing at all."""

        try:
            yield self.db
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning("Concurrent card update detected", error=str(exc))
            raise ConcurrentUpdateError("Card was modified by another request") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Card store transaction failed", error=str(exc))
            raise StoreError("Card store transaction failed", {"error": str(exc)}) from exc
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------
    def _card_query(self, card_id: uuid.UUID, user_id: str | None):
        stmt = select(Card).where(Card.id == card_id)
        if user_id:
            stmt = stmt.where(Card.user_id == user_id)
        return stmt

    def add_card(self, card: Card) -> Card:
        self.db.add(card)
        return card

    def get_card(self, card_id: str | uuid.UUID, *, user_id: str | None = None) -> Card | None:
        """Return a card, optionally restricted to its owner."""

        parsed = parse_card_id(card_id)
        if parsed is None:
            return None
        return self.db.scalars(self._card_query(parsed, user_id)).first()

    def get_card_for_update(
        self, card_id: str | uuid.UUID, *, user_id: str | None = None
    ) -> Card | None:
        """Return a card with a row lock held until the transaction ends."""

        parsed = parse_card_id(card_id)
        if parsed is None:
            return None
        stmt = self._card_query(parsed, user_id).with_for_update()
        return self.db.scalars(stmt.execution_options(populate_existing=True)).first()

    def list_cards(self, *, user_id: str) -> list[Card]:
        stmt = (
            select(Card)
            .where(Card.user_id == user_id)
            .order_by(Card.created_at.desc(), Card.id)
        )
        return list(self.db.scalars(stmt))

    def cards_due_before(
        self,
        *,
        user_id: str,
        until: datetime,
        inclusive: bool = True,
        story_id: str | None = None,
    ) -> list[Card]:
        """Cards whose ``next_review`` falls at (or before) ``until``, oldest first."""

        bound = Card.next_review <= until if inclusive else Card.next_review < until
        stmt = select(Card).where(and_(Card.user_id == user_id, bound))
        if story_id:
            stmt = stmt.where(Card.story_id == story_id)
        stmt = stmt.order_by(Card.next_review.asc(), Card.id.asc())
        return list(self.db.scalars(stmt))

    def list_leeches(self, *, user_id: str) -> list[Card]:
        stmt = (
            select(Card)
            .where(Card.user_id == user_id)
            .where(Card.is_leech.is_(True))
            .order_by(Card.total_fails.desc(), Card.id)
        )
        return list(self.db.scalars(stmt))

    def existing_fronts(self, *, user_id: str) -> set[str]:
        """Lower-cased front texts the user already owns."""

        stmt = select(Card.front).where(Card.user_id == user_id)
        return {value.strip().lower() for value in self.db.scalars(stmt) if value}

    def due_counts_by_user(
        self, *, now: datetime, user_id: str | None = None
    ) -> dict[str, int]:
        """Number of due cards per user, users without due cards omitted."""

        stmt = (
            select(Card.user_id, func.count(Card.id))
            .where(Card.next_review <= now)
            .group_by(Card.user_id)
            .order_by(Card.user_id)
        )
        if user_id:
            stmt = stmt.where(Card.user_id == user_id)
        return {owner: int(count) for owner, count in self.db.execute(stmt)}

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------
    def add_review(self, review: Review) -> Review:
        self.db.add(review)
        return review

    def list_reviews(self, card_id: uuid.UUID, *, limit: int | None = None) -> list[Review]:
        """Review history oldest first; ``limit`` keeps only the most recent entries."""

        stmt = select(Review).where(Review.card_id == card_id)
        if limit is not None:
            stmt = stmt.order_by(Review.reviewed_at.desc(), Review.sequence.desc()).limit(limit)
            return list(reversed(list(self.db.scalars(stmt))))
        stmt = stmt.order_by(Review.reviewed_at.asc(), Review.sequence.asc())
        return list(self.db.scalars(stmt))

    def recent_qualities(
        self, card_id: uuid.UUID, *, limit: int, since: datetime | None = None
    ) -> list[int]:
        """Qualities of the last ``limit`` reviews (after ``since``), oldest first."""

        stmt = select(Review.quality).where(Review.card_id == card_id)
        if since is not None:
            stmt = stmt.where(Review.reviewed_at > since)
        stmt = stmt.order_by(Review.reviewed_at.desc(), Review.sequence.desc()).limit(limit)
        return list(reversed(list(self.db.scalars(stmt))))

    def count_reviews(self, card_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Review).where(Review.card_id == card_id)
        return int(self.db.scalar(stmt) or 0)
