"""
Test configuration and fixtures.
Runs the models against an in-memory SQLite database (aiosqlite), fresh per test.
"""
import os
import uuid as uuid_module
from datetime import timedelta

# Set test environment before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"

import pytest
from typing import AsyncGenerator, Any, Dict

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base, utcnow
from app.models.user import User
from app.models.credit_batch import CreditBatch
from app.ai.base import GradingProvider


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session

    await engine.dispose()


async def _create_user(db_session: AsyncSession, prefix: str) -> User:
    user = User(
        id=str(uuid_module.uuid4()),
        firebase_uid=f"{prefix}-{uuid_module.uuid4().hex[:8]}",
        email=f"{prefix}@example.com",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user with no credit batches."""
    return await _create_user(db_session, "firebase-test-uid")


@pytest.fixture(scope="function")
async def other_user(db_session: AsyncSession) -> User:
    """A second account, to check ledgers do not leak across owners."""
    return await _create_user(db_session, "firebase-other-uid")


@pytest.fixture
def make_batch(db_session: AsyncSession):
    """
    Factory inserting a batch in an exact state.

    Bypasses CreditService so tests can build expired or partly consumed batches.
    """
    async def _make_batch(
        user: User,
        credits: int,
        used_credits: int = 0,
        expires_in_days: float = 30,
        subscription_type: str = "free",
        created_ago_days: float = 0,
    ) -> CreditBatch:
        now = utcnow()
        batch = CreditBatch(
            id=str(uuid_module.uuid4()),
            user_id=user.id,
            credits=credits,
            used_credits=used_credits,
            subscription_type=subscription_type,
            expires_at=now + timedelta(days=expires_in_days),
            created_at=now - timedelta(days=created_ago_days),
            updated_at=now,
        )
        db_session.add(batch)
        await db_session.commit()
        await db_session.refresh(batch)
        return batch

    return _make_batch


class FakeGradingProvider(GradingProvider):
    """Grading provider returning a canned result."""

    def __init__(self, result: Dict[str, Any] = None, error: Exception = None):
        self.result = result or {"score": 88, "feedback": "Clear argument, cite more sources."}
        self.error = error
        self.calls = []

    def analyze(self, content: str, assignment_name: str) -> Dict[str, Any]:
        self.calls.append((content, assignment_name))
        if self.error:
            raise self.error
        return self.result

    def is_configured(self) -> bool:
        return True


@pytest.fixture
def fake_provider() -> FakeGradingProvider:
    return FakeGradingProvider()


def get_test_app(db_session: AsyncSession, test_user: User, provider: GradingProvider) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from app.main import app
    from app.database import get_db
    from app.auth.dependencies import get_current_user
    from app.api.analysis import grading_provider

    async def override_get_db():
        yield db_session

    async def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[grading_provider] = lambda: provider

    return app


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    test_user: User,
    fake_provider: FakeGradingProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(db_session, test_user, fake_provider)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
def stripe_webhook_secret(monkeypatch):
    """Configure a webhook secret for the duration of a test."""
    from app.config import settings

    monkeypatch.setattr(settings, "stripe_webhook_secret", "whsec_test")
    return "whsec_test"
