"""
Trust score service: read history, score, persist and broadcast.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from horizon_risk.core.clock import as_utc, utc_now
from horizon_risk.core.errors import DataAccessError, NotFound, PersistenceError
from horizon_risk.core.logging import get_logger
from horizon_risk.models.sql_models import TrustScoreEvent, UserProfile
from horizon_risk.schemas.trust import (
    TrustMetrics,
    TrustResult,
    TrustScoreEventResponse,
    TrustScoreHistoryResponse,
    TrustTier,
)
from horizon_risk.services.history import (
    EventHistoryReader,
    SqlEventHistoryReader,
    load_fundraiser_history,
)
from horizon_risk.services.notification_dispatcher import (
    NotificationDispatcher,
    notification_dispatcher,
)
from horizon_risk.services.scoring.trust_scorer import TrustScorer

logger = get_logger(__name__)

DEFAULT_TRIGGER_EVENT = "CALCULATION"


class TrustScoreService:
    """Service for fundraiser trust score operations."""

    def __init__(
        self,
        db_session: AsyncSession,
        reader: EventHistoryReader | None = None,
        dispatcher: NotificationDispatcher | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db_session
        self.reader = reader or SqlEventHistoryReader(db_session)
        self.dispatcher = dispatcher or notification_dispatcher
        self.clock = clock
        self.scorer = TrustScorer()

    async def compute_trust_score(
        self, user_id: str, trigger_event: str | None = None
    ) -> TrustResult:
        """
        Recalculate, store and broadcast a fundraiser's trust score.

        Raises:
            NotFound: the user has no profile
            DataAccessError: history could not be read
            PersistenceError: the result could not be written
        """
        now = as_utc(self.clock())
        history = await load_fundraiser_history(self.reader, user_id, now)
        computation = self.scorer.calculate_score(history, now)

        result = TrustResult(
            user_id=user_id,
            trust_score=computation.trust_score,
            trust_tier=computation.trust_tier,
            metrics=computation.metrics,
            confidence=computation.confidence,
            recommendations=list(computation.recommendations),
            computed_at=now,
        )

        await self._store_result(result, trigger_event or DEFAULT_TRIGGER_EVENT)
        await self.dispatcher.broadcast_trust_score_update(result)

        logger.info(
            f"Calculated trust score for user {user_id}: "
            f"{result.trust_score} ({result.trust_tier.value})"
        )
        return result

    async def _store_result(self, result: TrustResult, event_type: str) -> None:
        """Overwrite the profile's latest result and append an audit event."""
        try:
            query = (
                select(UserProfile)
                .where(UserProfile.id == result.user_id)
                .with_for_update()
            )
            profile = (await self.db.execute(query)).scalar_one_or_none()
            if profile is None:
                raise NotFound(f"User profile {result.user_id} not found")

            old_score = profile.trust_score
            last_updated = profile.trust_score_last_updated

            # Last write wins, by computation time
            if last_updated is None or result.computed_at >= as_utc(last_updated):
                profile.trust_score = result.trust_score
                profile.trust_tier = result.trust_tier.value
                profile.trust_confidence = result.confidence
                profile.trust_metrics = result.metrics.model_dump()
                profile.trust_recommendations = result.recommendations
                profile.trust_score_last_updated = result.computed_at
            else:
                logger.warning(
                    f"Skipping stale trust score for user {result.user_id}: "
                    f"computed {result.computed_at.isoformat()}, "
                    f"stored {as_utc(last_updated).isoformat()}"
                )

            self.db.add(
                TrustScoreEvent(
                    user_id=result.user_id,
                    event_type=event_type,
                    old_score=old_score,
                    new_score=result.trust_score,
                    trust_tier=result.trust_tier.value,
                    metrics_snapshot=result.metrics.model_dump(),
                    confidence_level=result.confidence,
                    created_at=result.computed_at,
                )
            )
            await self.db.commit()

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"Failed to store trust score for {result.user_id}: {e}")
            raise PersistenceError(
                f"Could not store trust score for user {result.user_id}"
            ) from e

    async def _get_profile(self, user_id: str) -> UserProfile:
        try:
            result = await self.db.execute(
                select(UserProfile).where(UserProfile.id == user_id)
            )
            profile = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not read profile {user_id}") from e

        if profile is None:
            raise NotFound(f"User profile {user_id} not found")
        return profile

    async def get_current_result(self, user_id: str) -> TrustResult:
        """Latest stored trust result, without recalculating."""
        profile = await self._get_profile(user_id)

        if profile.trust_score is None or profile.trust_score_last_updated is None:
            raise NotFound(f"No trust score has been calculated for user {user_id}")

        return TrustResult(
            user_id=profile.id,
            trust_score=profile.trust_score,
            trust_tier=TrustTier(profile.trust_tier),
            metrics=TrustMetrics.model_validate(profile.trust_metrics),
            confidence=profile.trust_confidence or 0.0,
            recommendations=list(profile.trust_recommendations or []),
            computed_at=as_utc(profile.trust_score_last_updated),
        )

    async def get_history(
        self, user_id: str, limit: int = 20
    ) -> TrustScoreHistoryResponse:
        """Trust score audit trail, newest first."""
        await self._get_profile(user_id)

        try:
            events_result = await self.db.execute(
                select(TrustScoreEvent)
                .where(TrustScoreEvent.user_id == user_id)
                .order_by(desc(TrustScoreEvent.created_at))
                .limit(limit)
            )
            events = events_result.scalars().all()

            total_result = await self.db.execute(
                select(func.count(TrustScoreEvent.id)).where(
                    TrustScoreEvent.user_id == user_id
                )
            )
            total = total_result.scalar_one()
        except SQLAlchemyError as e:
            raise DataAccessError(f"Could not read trust history for {user_id}") from e

        return TrustScoreHistoryResponse(
            user_id=user_id,
            events=[
                TrustScoreEventResponse(
                    id=event.id,
                    user_id=event.user_id,
                    event_type=event.event_type,
                    old_score=event.old_score,
                    new_score=event.new_score,
                    trust_tier=TrustTier(event.trust_tier),
                    metrics_snapshot=TrustMetrics.model_validate(
                        event.metrics_snapshot
                    ),
                    confidence=event.confidence_level,
                    created_at=as_utc(event.created_at),
                )
                for event in events
            ],
            total=total,
        )
