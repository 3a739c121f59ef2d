"""Service layer composing the card store and the scheduler."""

from vocab_srs.services.card_store import CardStore
from vocab_srs.services.cards import CardService
from vocab_srs.services.due_queue import DueQueueService
from vocab_srs.services.forecast import ForecastService
from vocab_srs.services.review import ReviewOutcome, ReviewService

__all__ = [
    "CardService",
    "CardStore",
    "DueQueueService",
    "ForecastService",
    "ReviewOutcome",
    "ReviewService",
]
