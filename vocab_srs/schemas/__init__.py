"""Request and response models."""

from vocab_srs.schemas.card import (
    BulkCardCreate,
    BulkCardItem,
    BulkCardResult,
    CardCreate,
    CardRead,
    CardStats,
    LeechResetRequest,
    ReviewRead,
    ReviewRequest,
    ReviewResult,
)
from vocab_srs.schemas.forecast import DayBucket, Forecast, HourBucket

__all__ = [
    "BulkCardCreate",
    "BulkCardItem",
    "BulkCardResult",
    "CardCreate",
    "CardRead",
    "CardStats",
    "DayBucket",
    "Forecast",
    "HourBucket",
    "LeechResetRequest",
    "ReviewRead",
    "ReviewRequest",
    "ReviewResult",
]
