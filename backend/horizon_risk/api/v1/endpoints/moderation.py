"""
Campaign Moderation API Endpoints

Provides REST API for screening campaign content before publication.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from horizon_risk.api.v1.errors import run_scoring_call
from horizon_risk.core.config import settings
from horizon_risk.core.database import get_postgres_session
from horizon_risk.schemas.moderation import (
    BatchModerationRequest,
    BatchModerationResponse,
    ModerateCampaignRequest,
    ModerationHistoryResponse,
    ModerationResult,
)
from horizon_risk.services.moderation_service import CampaignModerationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["moderation"])


@router.post("", response_model=ModerationResult)
async def moderate_campaign(
    request: ModerateCampaignRequest, db: AsyncSession = Depends(get_postgres_session)
):
    """
    Moderate a campaign.

    Runs the luxury, inappropriate content, fraud, need validation and trust
    indicator checks and routes the campaign to approved, review or rejected.
    Stored campaigns get their status updated; inline content without an
    identifier is evaluated without being stored.
    """
    try:
        moderation_service = CampaignModerationService(db)
        result = await run_scoring_call(
            moderation_service.moderate(
                campaign_id=request.campaign_id, campaign=request.campaign
            ),
            "Campaign moderation",
        )

        logger.info(
            "Moderated campaign %s: %.2f (%s)",
            result.campaign_id or "<inline>",
            result.scores.overall,
            result.decision.value,
        )
        return result

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error moderating campaign: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/batch", response_model=BatchModerationResponse)
async def batch_moderate_campaigns(
    request: BatchModerationRequest, db: AsyncSession = Depends(get_postgres_session)
):
    """
    Moderate several stored campaigns.

    Limited to MAX_BATCH_MODERATION campaigns per request. A campaign that
    fails or times out is reported in ``errors`` and does not stop the rest.
    """
    try:
        if len(request.campaign_ids) > settings.MAX_BATCH_MODERATION:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "invalid_input",
                    "message": (
                        f"Too many campaigns (max {settings.MAX_BATCH_MODERATION})"
                    ),
                },
            )

        moderation_service = CampaignModerationService(db)
        response = await moderation_service.batch_moderate(request.campaign_ids)

        logger.info(
            "Batch moderation: %d processed, %d failed",
            response.processed,
            response.failed,
        )
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error in batch moderation: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{campaign_id}/history", response_model=ModerationHistoryResponse)
async def get_moderation_history(
    campaign_id: str,
    limit: int = Query(20, ge=1, le=100, description="Number of runs to return"),
    db: AsyncSession = Depends(get_postgres_session),
):
    """Get the moderation runs of a campaign, newest first."""
    try:
        moderation_service = CampaignModerationService(db)
        return await run_scoring_call(
            moderation_service.get_history(campaign_id, limit=limit),
            "Moderation history lookup",
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error getting moderation history: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
