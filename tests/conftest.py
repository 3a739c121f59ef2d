"""Pytest fixtures for scheduler and API tests."""

import os
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from vocab_srs.api.deps import get_db
from vocab_srs.db.base import Base
from vocab_srs.db.models import Card, Review
from vocab_srs.main import create_app
from vocab_srs.services import CardService

NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[Card.__table__, Review.__table__])
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=[Review.__table__, Card.__table__])


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.query(Review).delete()
        db.query(Card).delete()
        db.commit()
        db.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture()
async def async_client(db_session: Session) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app()

    async def override_get_db() -> AsyncGenerator[Session, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def make_card(db_session: Session) -> Callable[..., Card]:
    """Create a card through the service, optionally overriding stored fields."""

    def _make(
        front: str = "das Haus",
        back: str = "the house",
        *,
        user_id: str = "learner-1",
        tags: list[str] | None = None,
        story_id: str | None = None,
        now: datetime = NOW,
        **fields,
    ) -> Card:
        card = CardService(db_session).create_card(
            user_id=user_id, front=front, back=back, tags=tags, story_id=story_id, now=now
        )
        if fields:
            for name, value in fields.items():
                setattr(card, name, value)
            db_session.commit()
        return card

    return _make
