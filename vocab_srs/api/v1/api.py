"""API router for version 1."""
from fastapi import APIRouter

from vocab_srs.api.v1.endpoints import cards


api_router = APIRouter()
api_router.include_router(cards.router)
