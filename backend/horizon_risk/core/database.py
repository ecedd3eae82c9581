"""
Database connection management.
"""

from __future__ import annotations

import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from horizon_risk.core.config import settings
from horizon_risk.core.logging import get_logger

logger = get_logger(__name__)

# SQLAlchemy setup
engine = create_async_engine(
    settings.POSTGRES_URL,
    echo=settings.ENVIRONMENT == "development",
    pool_pre_ping=True,
    pool_recycle=300,
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()

# Redis client, used for notification pub/sub
redis_client: redis.Redis | None = None


async def get_postgres_session() -> AsyncSession:
    """Get PostgreSQL async session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_redis_client():
    """Get Redis client."""
    return redis_client


async def init_databases():
    """Initialize all database connections."""
    global redis_client

    redis_client = redis.from_url(
        settings.REDIS_URL,
        socket_timeout=5,
        socket_connect_timeout=5,
    )

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        await redis_client.ping()

        logger.info("All database connections established")

    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise


async def close_databases():
    """Close all database connections."""
    global redis_client

    if redis_client:
        await redis_client.aclose()
        redis_client = None

    await engine.dispose()

    logger.info("All database connections closed")
