"""
Campaign moderation service: resolve content, moderate, persist and notify.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from horizon_risk.core.clock import as_utc, utc_now
from horizon_risk.core.config import settings
from horizon_risk.core.errors import (
    DataAccessError,
    InvalidInput,
    NotFound,
    PersistenceError,
    ScoringError,
)
from horizon_risk.core.logging import get_logger
from horizon_risk.models.sql_models import Campaign, CampaignModeration
from horizon_risk.schemas.moderation import (
    BatchModerationError,
    BatchModerationResponse,
    CampaignContent,
    ModerationDecision,
    ModerationDetails,
    ModerationHistoryResponse,
    ModerationRecord,
    ModerationResult,
    ModerationScores,
)
from horizon_risk.services.history import EventHistoryReader, SqlEventHistoryReader
from horizon_risk.services.notification_dispatcher import (
    NotificationDispatcher,
    notification_dispatcher,
)
from horizon_risk.services.scoring.moderation_scorer import ModerationScorer

logger = get_logger(__name__)


class CampaignModerationService:
    """Service for campaign moderation operations."""

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
        self.scorer = ModerationScorer()

    async def _resolve_content(
        self, campaign_id: str | None, campaign: CampaignContent | None
    ) -> tuple[str | None, CampaignContent]:
        """
        Pick the content to moderate.

        An identifier (argument or inline ``id``) must name a stored campaign;
        inline content, when given, replaces the stored content. Inline
        content without any identifier is moderated as a dry run.
        """
        campaign_id = campaign_id or (campaign.id if campaign else None)

        if campaign_id:
            stored = await self.reader.get_campaign_content(campaign_id)
            if stored is None:
                raise NotFound(f"Campaign {campaign_id} not found")
            if campaign is not None and campaign.has_content():
                return campaign_id, campaign.model_copy(update={"id": campaign_id})
            return campaign_id, stored

        if campaign is None or not campaign.has_content():
            raise InvalidInput("Either campaignId or campaign content is required")

        return None, campaign

    async def moderate(
        self, campaign_id: str | None = None, campaign: CampaignContent | None = None
    ) -> ModerationResult:
        """
        Moderate a campaign and record the outcome.

        Raises:
            InvalidInput: neither an identifier nor usable content was given
            NotFound: the identifier names no campaign
            DataAccessError: the campaign could not be read
            PersistenceError: the result could not be written
        """
        started = time.perf_counter()

        campaign_id, content = await self._resolve_content(campaign_id, campaign)
        computation = self.scorer.moderate(content)
        now = as_utc(self.clock())

        result = ModerationResult(
            campaign_id=campaign_id,
            scores=computation.scores,
            decision=computation.decision,
            flags=sorted(computation.flags),
            recommendations=list(computation.recommendations),
            details=computation.details,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            computed_at=now,
        )

        if campaign_id is None:
            logger.info(
                f"Dry-run moderation: {result.scores.overall} ({result.decision.value})"
            )
            return result

        owner_id, title = await self._store_result(result)

        if result.decision == ModerationDecision.REVIEW:
            await self.dispatcher.dispatch_review_notification(owner_id, title, result)

        logger.info(
            f"Moderated campaign {campaign_id}: "
            f"{result.scores.overall} ({result.decision.value})"
        )
        return result

    async def _store_result(self, result: ModerationResult) -> tuple[str, str]:
        """
        Append the moderation row and project the decision onto the campaign.

        Returns the campaign owner and title for notification.
        """
        try:
            query = (
                select(Campaign).where(Campaign.id == result.campaign_id).with_for_update()
            )
            campaign = (await self.db.execute(query)).scalar_one_or_none()
            if campaign is None:
                raise NotFound(f"Campaign {result.campaign_id} not found")

            self.db.add(
                CampaignModeration(
                    campaign_id=result.campaign_id,
                    moderation_score=result.scores.overall,
                    scores=result.scores.model_dump(),
                    decision=result.decision.value,
                    flags=result.flags,
                    recommendations=result.recommendations,
                    details=result.details.model_dump(mode="json"),
                    processing_time_ms=result.processing_time_ms,
                    moderated_at=result.computed_at,
                )
            )

            # Last write wins, by computation time
            if campaign.moderated_at is None or result.computed_at >= as_utc(
                campaign.moderated_at
            ):
                campaign.status = result.decision.campaign_status
                campaign.moderation_score = result.scores.overall
                campaign.moderated_at = result.computed_at
            else:
                logger.warning(
                    f"Skipping stale moderation projection for campaign "
                    f"{result.campaign_id}"
                )

            owner_id, title = campaign.recipient_id, campaign.title
            await self.db.commit()

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(
                f"Failed to store moderation for campaign {result.campaign_id}: {e}"
            )
            raise PersistenceError(
                f"Could not store moderation result for campaign {result.campaign_id}"
            ) from e

        return owner_id, title

    async def batch_moderate(self, campaign_ids: list[str]) -> BatchModerationResponse:
        """
        Moderate stored campaigns one by one.

        Each campaign gets its own scoring timeout; a failure or timeout is
        reported for that campaign and never aborts the batch.
        """
        results: list[ModerationResult] = []
        errors: list[BatchModerationError] = []

        for campaign_id in campaign_ids:
            try:
                results.append(
                    await asyncio.wait_for(
                        self.moderate(campaign_id=campaign_id),
                        timeout=settings.SCORING_TIMEOUT_SECONDS,
                    )
                )
            except asyncio.TimeoutError:
                logger.warning(f"Moderation of campaign {campaign_id} timed out")
                await self.db.rollback()
                errors.append(
                    BatchModerationError(
                        campaign_id=campaign_id,
                        error="timeout",
                        message=f"Moderation of campaign {campaign_id} timed out",
                    )
                )
            except ScoringError as e:
                errors.append(
                    BatchModerationError(
                        campaign_id=campaign_id, error=e.code, message=e.message
                    )
                )
            except Exception as e:
                logger.exception(f"Error moderating campaign {campaign_id}: {e}")
                errors.append(
                    BatchModerationError(
                        campaign_id=campaign_id,
                        error="internal_error",
                        message="Internal server error",
                    )
                )

        logger.info(
            f"Batch moderation: {len(results)} processed, {len(errors)} failed"
        )

        return BatchModerationResponse(
            processed=len(results),
            failed=len(errors),
            results=results,
            errors=errors,
        )

    async def get_history(
        self, campaign_id: str, limit: int = 20
    ) -> ModerationHistoryResponse:
        """Moderation runs of a campaign, newest first."""
        try:
            campaign = (
                await self.db.execute(select(Campaign.id).where(Campaign.id == campaign_id))
            ).scalar_one_or_none()
            if campaign is None:
                raise NotFound(f"Campaign {campaign_id} not found")

            runs_result = await self.db.execute(
                select(CampaignModeration)
                .where(CampaignModeration.campaign_id == campaign_id)
                .order_by(desc(CampaignModeration.moderated_at))
                .limit(limit)
            )
            runs = runs_result.scalars().all()

            total = (
                await self.db.execute(
                    select(func.count(CampaignModeration.id)).where(
                        CampaignModeration.campaign_id == campaign_id
                    )
                )
            ).scalar_one()
        except SQLAlchemyError as e:
            raise DataAccessError(
                f"Could not read moderation history for {campaign_id}"
            ) from e

        return ModerationHistoryResponse(
            campaign_id=campaign_id,
            runs=[
                ModerationRecord(
                    id=run.id,
                    campaign_id=run.campaign_id,
                    moderation_score=run.moderation_score,
                    scores=ModerationScores.model_validate(run.scores),
                    decision=ModerationDecision(run.decision),
                    flags=list(run.flags),
                    recommendations=list(run.recommendations),
                    details=ModerationDetails.model_validate(run.details),
                    processing_time_ms=run.processing_time_ms,
                    moderated_at=as_utc(run.moderated_at),
                )
                for run in runs
            ],
            total=total,
        )
