"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Header, Query

from vocab_srs.db.session import get_db

__all__ = ["get_db", "get_user_id", "resolve_user_id"]


def resolve_user_id(*candidates: str | None) -> str | None:
    """Return the first non-blank user id among ``candidates``."""

    for candidate in candidates:
        if candidate is not None and candidate.strip():
            return candidate.strip()
    return None


def get_user_id(
    user_id: str | None = Query(None, alias="userId", description="Owner of the cards"),
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str | None:
    """Learner id from the query string, falling back to the ``X-User-Id`` header.

    Authentication happens upstream; this only reads the identity it forwards.
    """

    return resolve_user_id(user_id, x_user_id)
