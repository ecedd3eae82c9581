"""
SQLAlchemy models for the PostgreSQL database.

Only the tables the scoring core reads or writes are mapped here; the rest of
the platform schema is owned elsewhere.
"""

import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from horizon_risk.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class UserProfile(Base):
    """Fundraiser profile. Owns the latest trust result."""

    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    display_name = Column(String(255), nullable=True)
    verification_status = Column(String(50), nullable=False, default="unverified")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Latest TrustResult, superseded on every recalculation
    trust_score = Column(Float, nullable=True)  # 0-100, 2 dp
    trust_tier = Column(String(20), nullable=True)
    trust_confidence = Column(Float, nullable=True)
    trust_metrics = Column(JSON, nullable=True)
    trust_recommendations = Column(JSON, nullable=True)
    trust_score_last_updated = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    campaigns = relationship("Campaign", back_populates="recipient")
    trust_events = relationship("TrustScoreEvent", back_populates="user")


class Campaign(Base):
    """Fundraising campaign."""

    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True, default=_uuid)
    recipient_id = Column(
        String(36), ForeignKey("user_profiles.id"), nullable=False, index=True
    )
    title = Column(String(500), nullable=False)
    story = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    need_type = Column(String(50), nullable=False, default="other")
    goal_amount = Column(Float, nullable=False, default=0.0)
    budget_breakdown = Column(JSON, nullable=True)  # [{"item", "amount", "description"}]
    status = Column(String(30), nullable=False, default="draft", index=True)
    overdue_updates_count = Column(Integer, nullable=False, default=0)
    next_update_due = Column(DateTime(timezone=True), nullable=True)

    # Projection of the latest moderation row
    moderation_score = Column(Float, nullable=True)
    moderated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    recipient = relationship("UserProfile", back_populates="campaigns")
    updates = relationship("CampaignUpdate", back_populates="campaign")
    donations = relationship("Donation", back_populates="campaign")
    comments = relationship("CampaignComment", back_populates="campaign")
    moderation_runs = relationship("CampaignModeration", back_populates="campaign")


class CampaignUpdate(Base):
    """Progress update posted by the fundraiser."""

    __tablename__ = "campaign_updates"

    id = Column(String(36), primary_key=True, default=_uuid)
    campaign_id = Column(
        String(36), ForeignKey("campaigns.id"), nullable=False, index=True
    )
    update_type = Column(String(20), nullable=False, default="TEXT")
    content = Column(Text, nullable=True)
    spend_amount_tagged = Column(Float, nullable=True)
    payment_reference = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="updates")


class Donation(Base):
    """Donation received by a campaign, with optional donor feedback."""

    __tablename__ = "donations"

    id = Column(String(36), primary_key=True, default=_uuid)
    campaign_id = Column(
        String(36), ForeignKey("campaigns.id"), nullable=False, index=True
    )
    amount = Column(Float, nullable=False)
    donor_feedback_rating = Column(Integer, nullable=True)  # 1-5
    donor_feedback_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="donations")


class CampaignComment(Base):
    """Public comment on a campaign."""

    __tablename__ = "campaign_comments"

    id = Column(String(36), primary_key=True, default=_uuid)
    campaign_id = Column(
        String(36), ForeignKey("campaigns.id"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    sentiment_score = Column(Float, nullable=True)  # 0-100
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    campaign = relationship("Campaign", back_populates="comments")


class TrustScoreEvent(Base):
    """Append-only audit trail of trust score computations."""

    __tablename__ = "trust_score_events"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(
        String(36), ForeignKey("user_profiles.id"), nullable=False, index=True
    )
    event_type = Column(String(50), nullable=False)  # trigger reason
    old_score = Column(Float, nullable=True)
    new_score = Column(Float, nullable=False)
    trust_tier = Column(String(20), nullable=False)
    metrics_snapshot = Column(JSON, nullable=False)
    confidence_level = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    user = relationship("UserProfile", back_populates="trust_events")


class CampaignModeration(Base):
    """One row per moderation run."""

    __tablename__ = "campaign_moderation"

    id = Column(String(36), primary_key=True, default=_uuid)
    campaign_id = Column(
        String(36), ForeignKey("campaigns.id"), nullable=False, index=True
    )
    moderation_score = Column(Float, nullable=False)
    scores = Column(JSON, nullable=False)
    decision = Column(String(20), nullable=False)
    flags = Column(JSON, nullable=False)
    recommendations = Column(JSON, nullable=False)
    details = Column(JSON, nullable=False)
    processing_time_ms = Column(Integer, nullable=False)
    moderated_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    campaign = relationship("Campaign", back_populates="moderation_runs")
