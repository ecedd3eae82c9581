"""
Background scoring tasks.

Each task runs one scoring operation in its own event loop with its own
database and Redis connections.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis
from celery.utils.log import get_task_logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from horizon_risk.core.celery_app import celery_app
from horizon_risk.core.config import settings
from horizon_risk.core.errors import ScoringError
from horizon_risk.services.moderation_service import CampaignModerationService
from horizon_risk.services.notification_dispatcher import NotificationDispatcher
from horizon_risk.services.trust_service import TrustScoreService

logger = get_task_logger(__name__)

RETRY_COUNTDOWN_SECONDS = 60

# Connections must not outlive the event loop of a single task run
engine = create_async_engine(settings.POSTGRES_URL, echo=False, poolclass=NullPool)
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@celery_app.task(bind=True, name="scoring.recalculate_trust_score")
def recalculate_trust_score(
    self, user_id: str, trigger_event: str | None = None
) -> dict:
    """
    Recalculate the trust score of one fundraiser.

    Args:
        user_id: Fundraiser profile ID
        trigger_event: Reason recorded on the audit event

    Returns:
        The stored trust result, or an error summary for terminal failures
    """
    try:
        logger.info(f"Recalculating trust score for user {user_id}")

        result = asyncio.run(_async_recalculate_trust_score(user_id, trigger_event))

        logger.info(
            f"Trust score for user {user_id}: {result['trust_score']} "
            f"({result['trust_tier']})"
        )
        return result

    except ScoringError as e:
        if e.retryable:
            logger.warning(f"Trust score recalculation for {user_id} failed: {e}")
            raise self.retry(exc=e, countdown=RETRY_COUNTDOWN_SECONDS)

        logger.error(f"Trust score recalculation for {user_id} rejected: {e}")
        return {"user_id": user_id, "error": e.code, "message": e.message}


async def _async_recalculate_trust_score(
    user_id: str, trigger_event: str | None
) -> dict:
    """Async helper for trust score recalculation."""
    redis_client = redis.from_url(settings.REDIS_URL)
    try:
        async with AsyncSessionLocal() as session:
            trust_service = TrustScoreService(
                session, dispatcher=NotificationDispatcher(redis_client)
            )
            result = await trust_service.compute_trust_score(user_id, trigger_event)
        return result.model_dump(mode="json")
    finally:
        await redis_client.aclose()


@celery_app.task(bind=True, name="scoring.moderate_campaign")
def moderate_campaign(self, campaign_id: str) -> dict:
    """
    Moderate one stored campaign.

    Args:
        campaign_id: Campaign ID

    Returns:
        The stored moderation result, or an error summary for terminal failures
    """
    try:
        logger.info(f"Moderating campaign {campaign_id}")

        result = asyncio.run(_async_moderate_campaign(campaign_id))

        logger.info(
            f"Campaign {campaign_id} moderated: {result['scores']['overall']} "
            f"({result['decision']})"
        )
        return result

    except ScoringError as e:
        if e.retryable:
            logger.warning(f"Moderation of campaign {campaign_id} failed: {e}")
            raise self.retry(exc=e, countdown=RETRY_COUNTDOWN_SECONDS)

        logger.error(f"Moderation of campaign {campaign_id} rejected: {e}")
        return {"campaign_id": campaign_id, "error": e.code, "message": e.message}


async def _async_moderate_campaign(campaign_id: str) -> dict:
    """Async helper for campaign moderation."""
    redis_client = redis.from_url(settings.REDIS_URL)
    try:
        async with AsyncSessionLocal() as session:
            moderation_service = CampaignModerationService(
                session, dispatcher=NotificationDispatcher(redis_client)
            )
            result = await moderation_service.moderate(campaign_id=campaign_id)
        return result.model_dump(mode="json")
    finally:
        await redis_client.aclose()
