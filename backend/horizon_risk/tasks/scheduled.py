"""
Scheduled tasks for periodic execution via Celery Beat.
"""

from __future__ import annotations

import asyncio

from celery.utils.log import get_task_logger
from sqlalchemy import select

from horizon_risk.core.celery_app import celery_app
from horizon_risk.core.clock import utc_now
from horizon_risk.models.sql_models import Campaign
from horizon_risk.services.scoring.trust_scorer import ACTIVE_FUNDING_STATUSES
from horizon_risk.tasks.scoring import AsyncSessionLocal, recalculate_trust_score

logger = get_task_logger(__name__)

SCHEDULED_TRIGGER_EVENT = "SCHEDULED"


@celery_app.task(name="scheduled.trust_recalculation")
def scheduled_trust_recalculation():
    """
    Queue trust score recalculation for every fundraiser with a campaign in
    an active funding state.
    Runs every TRUST_SCORE_UPDATE_INTERVAL_MINUTES.
    """
    logger.info("Running scheduled trust score recalculation")

    user_ids = asyncio.run(_async_active_fundraiser_ids())

    for user_id in user_ids:
        recalculate_trust_score.delay(user_id, SCHEDULED_TRIGGER_EVENT)

    logger.info(f"Queued trust score recalculation for {len(user_ids)} fundraisers")
    return {"queued": len(user_ids), "timestamp": utc_now().isoformat()}


async def _async_active_fundraiser_ids() -> list[str]:
    """Async helper listing fundraisers with actively funded campaigns."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(Campaign.recipient_id)
            .where(Campaign.status.in_(sorted(ACTIVE_FUNDING_STATUSES)))
            .distinct()
        )
        return list(result.scalars().all())
