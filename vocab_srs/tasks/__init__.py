"""Celery tasks package."""

from vocab_srs.tasks import reminders

__all__ = ["reminders"]
