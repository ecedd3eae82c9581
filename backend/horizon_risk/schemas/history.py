"""
Read-only snapshots of fundraiser history.

These are what the trust scorer consumes; they are filled either from the SQL
store or from fixtures in tests.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from horizon_risk.schemas.base import FrozenApiModel


class ProfileSnapshot(FrozenApiModel):
    """Fundraiser profile fields relevant to scoring."""

    user_id: str
    verification_status: str = "unverified"
    trust_score: float | None = None
    created_at: datetime | None = None


class UpdateSnapshot(FrozenApiModel):
    """Campaign progress update."""

    created_at: datetime
    update_type: str = "TEXT"
    spend_amount_tagged: float | None = None
    payment_reference: str | None = None


class CampaignSnapshot(FrozenApiModel):
    """Campaign with its posted updates."""

    campaign_id: str
    need_type: str = "other"
    status: str
    created_at: datetime
    overdue_updates_count: int = Field(default=0, ge=0)
    updates: tuple[UpdateSnapshot, ...] = ()


class FeedbackSnapshot(FrozenApiModel):
    """Donor and commenter signals across all of a fundraiser's campaigns."""

    ratings: tuple[int, ...] = ()
    comment_sentiments: tuple[float, ...] = ()
    donation_count: int = Field(default=0, ge=0)


class BehaviorEvent(FrozenApiModel):
    """Logged trust event (trigger reason) used for anomaly detection."""

    event_type: str
    created_at: datetime


class FundraiserHistory(FrozenApiModel):
    """Everything the trust scorer needs for one fundraiser."""

    profile: ProfileSnapshot
    campaigns: tuple[CampaignSnapshot, ...] = ()
    feedback: FeedbackSnapshot = FeedbackSnapshot()
    recent_events: tuple[BehaviorEvent, ...] = ()
