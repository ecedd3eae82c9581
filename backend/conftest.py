"""Global pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from horizon_risk.core.database import Base, get_postgres_session
from horizon_risk.main import app
from horizon_risk.models import sql_models  # noqa: F401
from horizon_risk.services.notification_dispatcher import NotificationDispatcher

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for time-windowed rules."""
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
async def test_db_engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async_session_maker = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_redis():
    """Mock Redis client for testing."""
    redis_mock = MagicMock()
    redis_mock.publish = AsyncMock(return_value=1)
    redis_mock.ping = AsyncMock(return_value=True)
    redis_mock.aclose = AsyncMock()
    return redis_mock


@pytest.fixture
def dispatcher(mock_redis) -> NotificationDispatcher:
    """Notification dispatcher publishing to the mock Redis client."""
    return NotificationDispatcher(redis_client=mock_redis)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """FastAPI test client whose database session is a mock."""

    async def override_get_db():
        yield AsyncMock(spec=AsyncSession)

    app.dependency_overrides[get_postgres_session] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Async FastAPI test client backed by the test database."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_postgres_session] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
