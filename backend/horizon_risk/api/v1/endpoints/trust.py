"""
Trust Score API Endpoints

Provides REST API for calculating and reading fundraiser trust scores.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from horizon_risk.api.v1.errors import run_scoring_call
from horizon_risk.core.database import get_postgres_session
from horizon_risk.schemas.trust import (
    TrustResult,
    TrustScoreHistoryResponse,
    TrustScoreRequest,
)
from horizon_risk.services.trust_service import TrustScoreService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trust-score"])


@router.post("", response_model=TrustResult)
async def calculate_trust_score(
    request: TrustScoreRequest, db: AsyncSession = Depends(get_postgres_session)
):
    """
    Calculate the trust score of a fundraiser.

    Combines update timeliness, spend proof accuracy, donor sentiment, KYC
    depth and behavioural anomalies into a 0-100 score and tier, stores the
    result on the profile and appends an audit event.
    """
    try:
        trust_service = TrustScoreService(db)
        result = await run_scoring_call(
            trust_service.compute_trust_score(request.user_id, request.trigger_event),
            "Trust score calculation",
        )

        logger.info(
            "Calculated trust score for user %s: %.2f",
            request.user_id,
            result.trust_score,
        )
        return result

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error calculating trust score: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{user_id}", response_model=TrustResult)
async def get_trust_score(
    user_id: str, db: AsyncSession = Depends(get_postgres_session)
):
    """Get the latest stored trust score of a fundraiser without recalculating."""
    try:
        trust_service = TrustScoreService(db)
        return await run_scoring_call(
            trust_service.get_current_result(user_id), "Trust score lookup"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error getting trust score: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{user_id}/history", response_model=TrustScoreHistoryResponse)
async def get_trust_score_history(
    user_id: str,
    limit: int = Query(20, ge=1, le=100, description="Number of events to return"),
    db: AsyncSession = Depends(get_postgres_session),
):
    """Get the trust score audit trail of a fundraiser, newest first."""
    try:
        trust_service = TrustScoreService(db)
        return await run_scoring_call(
            trust_service.get_history(user_id, limit=limit), "Trust history lookup"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error getting trust score history: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
