"""Database models package."""
from vocab_srs.db.models.card import Card, Review

__all__ = [
    "Card",
    "Review",
]
