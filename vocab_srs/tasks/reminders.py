"""Celery tasks reporting learners with cards waiting for review."""
from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger

from vocab_srs.celery_app import celery_app
from vocab_srs.db.session import SessionLocal
from vocab_srs.services.card_store import CardStore


@celery_app.task(name="vocab_srs.tasks.reminders.scan_due_cards")
def scan_due_cards(user_id: str | None = None) -> dict[str, int]:
    """Count due cards per learner and log a reminder for each one.

    Read only: due-ness is always computed on read, so this task never
    changes card state.
    """

    db = SessionLocal()
    now = datetime.now(timezone.utc)
    try:
        counts = CardStore(db).due_counts_by_user(now=now, user_id=user_id)
        for owner, due in counts.items():
            logger.info("Review reminder", user_id=owner, due_cards=due)

        total = sum(counts.values())
        logger.info("Due card scan finished", users=len(counts), due_cards=total)
        return {"users": len(counts), "due_cards": total}
    except Exception as exc:
        logger.error("Due card scan failed", error=str(exc))
        raise
    finally:
        db.close()
