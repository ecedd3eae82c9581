"""
Read access to fundraiser history and campaign content.

The scoring engines only see the snapshot types from
``horizon_risk.schemas.history``; this module is where they come from.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from horizon_risk.core.errors import DataAccessError, NotFound
from horizon_risk.core.logging import get_logger
from horizon_risk.models.sql_models import (
    Campaign,
    CampaignComment,
    Donation,
    TrustScoreEvent,
    UserProfile,
)
from horizon_risk.schemas.history import (
    BehaviorEvent,
    CampaignSnapshot,
    FeedbackSnapshot,
    FundraiserHistory,
    ProfileSnapshot,
    UpdateSnapshot,
)
from horizon_risk.schemas.moderation import BudgetItem, CampaignContent
from horizon_risk.services.scoring.trust_scorer import NEGATIVE_EVENT_WINDOW

logger = get_logger(__name__)


class EventHistoryReader(Protocol):
    """Read interface over profiles, campaigns, feedback and trust events."""

    async def get_profile(self, user_id: str) -> ProfileSnapshot | None: ...

    async def get_campaigns(self, user_id: str) -> tuple[CampaignSnapshot, ...]: ...

    async def get_feedback(self, campaign_ids: list[str]) -> FeedbackSnapshot: ...

    async def get_recent_events(
        self, user_id: str, since: datetime
    ) -> tuple[BehaviorEvent, ...]: ...

    async def get_campaign_content(self, campaign_id: str) -> CampaignContent | None: ...


async def load_fundraiser_history(
    reader: EventHistoryReader, user_id: str, now: datetime
) -> FundraiserHistory:
    """
    Assemble everything the trust scorer needs for one fundraiser.

    Raises:
        NotFound: the user has no profile
        DataAccessError: any underlying read failed
    """
    profile = await reader.get_profile(user_id)
    if profile is None:
        raise NotFound(f"User profile {user_id} not found")

    campaigns = await reader.get_campaigns(user_id)
    feedback = await reader.get_feedback([c.campaign_id for c in campaigns])
    events = await reader.get_recent_events(user_id, now - NEGATIVE_EVENT_WINDOW)

    return FundraiserHistory(
        profile=profile,
        campaigns=campaigns,
        feedback=feedback,
        recent_events=events,
    )


class SqlEventHistoryReader:
    """EventHistoryReader backed by the platform's SQL store."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get_profile(self, user_id: str) -> ProfileSnapshot | None:
        try:
            result = await self.db.execute(
                select(UserProfile).where(UserProfile.id == user_id)
            )
            profile = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read profile {user_id}: {e}")
            raise DataAccessError(f"Could not read profile {user_id}") from e

        if profile is None:
            return None

        return ProfileSnapshot(
            user_id=profile.id,
            verification_status=profile.verification_status or "unverified",
            trust_score=profile.trust_score,
            created_at=profile.created_at,
        )

    async def get_campaigns(self, user_id: str) -> tuple[CampaignSnapshot, ...]:
        query = (
            select(Campaign)
            .options(selectinload(Campaign.updates))
            .where(Campaign.recipient_id == user_id)
            .order_by(Campaign.created_at)
        )
        try:
            result = await self.db.execute(query)
            campaigns = result.scalars().all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read campaigns for {user_id}: {e}")
            raise DataAccessError(f"Could not read campaigns for {user_id}") from e

        return tuple(
            CampaignSnapshot(
                campaign_id=campaign.id,
                need_type=campaign.need_type or "other",
                status=campaign.status,
                created_at=campaign.created_at,
                overdue_updates_count=campaign.overdue_updates_count or 0,
                updates=tuple(
                    UpdateSnapshot(
                        created_at=update.created_at,
                        update_type=update.update_type or "TEXT",
                        spend_amount_tagged=update.spend_amount_tagged,
                        payment_reference=update.payment_reference,
                    )
                    for update in campaign.updates
                ),
            )
            for campaign in campaigns
        )

    async def get_feedback(self, campaign_ids: list[str]) -> FeedbackSnapshot:
        if not campaign_ids:
            return FeedbackSnapshot()

        try:
            ratings_result = await self.db.execute(
                select(Donation.donor_feedback_rating).where(
                    Donation.campaign_id.in_(campaign_ids),
                    Donation.donor_feedback_rating.is_not(None),
                )
            )
            count_result = await self.db.execute(
                select(func.count(Donation.id)).where(
                    Donation.campaign_id.in_(campaign_ids)
                )
            )
            sentiment_result = await self.db.execute(
                select(CampaignComment.sentiment_score).where(
                    CampaignComment.campaign_id.in_(campaign_ids),
                    CampaignComment.sentiment_score.is_not(None),
                )
            )
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read donor feedback: {e}")
            raise DataAccessError("Could not read donor feedback") from e

        return FeedbackSnapshot(
            ratings=tuple(ratings_result.scalars().all()),
            comment_sentiments=tuple(sentiment_result.scalars().all()),
            donation_count=count_result.scalar_one(),
        )

    async def get_recent_events(
        self, user_id: str, since: datetime
    ) -> tuple[BehaviorEvent, ...]:
        query = select(TrustScoreEvent.event_type, TrustScoreEvent.created_at).where(
            TrustScoreEvent.user_id == user_id,
            TrustScoreEvent.created_at >= since,
        )
        try:
            result = await self.db.execute(query)
            rows = result.all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read trust events for {user_id}: {e}")
            raise DataAccessError(f"Could not read trust events for {user_id}") from e

        return tuple(
            BehaviorEvent(event_type=row.event_type, created_at=row.created_at)
            for row in rows
        )

    async def get_campaign_content(self, campaign_id: str) -> CampaignContent | None:
        try:
            result = await self.db.execute(
                select(Campaign).where(Campaign.id == campaign_id)
            )
            campaign = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read campaign {campaign_id}: {e}")
            raise DataAccessError(f"Could not read campaign {campaign_id}") from e

        if campaign is None:
            return None

        return campaign_content_from_row(campaign)


def campaign_content_from_row(campaign: Campaign) -> CampaignContent:
    """Moderation input from a stored campaign row."""
    budget = campaign.budget_breakdown
    return CampaignContent(
        id=campaign.id,
        title=campaign.title or "",
        story=campaign.story or "",
        description=campaign.description,
        need_type=campaign.need_type or "other",
        goal_amount=campaign.goal_amount or 0.0,
        budget_breakdown=(
            [BudgetItem.model_validate(line) for line in budget]
            if budget is not None
            else None
        ),
    )
