"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from loguru import logger


class SchedulerServiceError(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(SchedulerServiceError):
    """Rejected input (empty card text, out-of-range quality, missing user)."""
    pass


class CardNotFoundError(SchedulerServiceError):
    """Raised when a card cannot be located for the requesting user."""

    def __init__(self, card_id: Any, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Card not found: {card_id}", details)
        self.card_id = card_id


class StoreError(SchedulerServiceError):
    """Card store read/write failure; the transaction was rolled back."""
    pass


class ConcurrentUpdateError(StoreError):
    """A card changed underneath a review and retries were exhausted."""
    pass


def handle_validation_error(error: ValidationError) -> HTTPException:
    """Handle validation errors."""
    logger.warning(f"Validation error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "message": error.message,
            "details": error.details
        }
    )


def handle_not_found_error(error: CardNotFoundError) -> HTTPException:
    """Handle unknown card identifiers."""
    logger.info(f"Not found: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error.message
    )


def handle_store_error(error: StoreError) -> HTTPException:
    """Handle store and transaction failures."""
    logger.error(f"Store error: {error.message}")
    if isinstance(error, ConcurrentUpdateError):
        detail = "The card was updated concurrently. Please retry the review."
    else:
        detail = "Database operation failed. Please try again later."
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail
    )


def to_http_exception(error: SchedulerServiceError) -> HTTPException:
    """Dispatch a domain error to its HTTP mapping."""
    if isinstance(error, ValidationError):
        return handle_validation_error(error)
    if isinstance(error, CardNotFoundError):
        return handle_not_found_error(error)
    if isinstance(error, StoreError):
        return handle_store_error(error)
    logger.error(f"Unhandled service error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error.message
    )
