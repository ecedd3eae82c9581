"""
Campaign moderation schemas.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

from horizon_risk.schemas.base import ApiModel, FrozenApiModel


class ModerationDecision(str, Enum):
    """Terminal classification of a campaign submission."""

    APPROVED = "approved"
    REVIEW = "review"
    REJECTED = "rejected"

    @property
    def campaign_status(self) -> str:
        """Campaign status projected from this decision."""
        return {
            ModerationDecision.APPROVED: "active",
            ModerationDecision.REVIEW: "under_review",
            ModerationDecision.REJECTED: "rejected",
        }[self]


class BudgetItem(ApiModel):
    """One line of a campaign's budget breakdown."""

    item: str = ""
    amount: float = Field(default=0.0, ge=0.0)
    description: str | None = None


class CampaignContent(ApiModel):
    """Campaign content submitted for moderation."""

    id: str | None = None
    title: str = Field(default="", max_length=500)
    story: str = ""
    description: str | None = None
    need_type: str = "other"
    goal_amount: float = Field(default=0.0, ge=0.0)
    budget_breakdown: list[BudgetItem] | None = None

    def has_content(self) -> bool:
        return bool(
            self.title.strip()
            or self.story.strip()
            or (self.description or "").strip()
            or self.budget_breakdown
        )


class ModerationSubScores(FrozenApiModel):
    """Outputs of the five sub-checks."""

    luxury: float = Field(..., ge=0.0, le=100.0)
    inappropriate: float = Field(..., ge=0.0, le=100.0)
    fraud: float = Field(..., ge=0.0, le=100.0)
    need_validation: float = Field(..., ge=0.0, le=100.0)
    trust: float = Field(..., ge=0.0, le=100.0)


class ModerationScores(ModerationSubScores):
    """Sub-scores plus the aggregated overall score."""

    overall: float = Field(..., ge=0.0, le=100.0)


class ModerationDetails(FrozenApiModel):
    """Evidence behind a moderation decision."""

    luxury_items: tuple[str, ...] = ()
    inappropriate_content: tuple[str, ...] = ()
    suspicious_patterns: tuple[str, ...] = ()
    trust_indicators: tuple[str, ...] = ()
    rules_version: str


class ModerationComputation(FrozenApiModel):
    """Output of the pure moderation pipeline."""

    scores: ModerationScores
    decision: ModerationDecision
    flags: frozenset[str]
    recommendations: tuple[str, ...]
    details: ModerationDetails


class ModerationResult(ApiModel):
    """Result of one moderation run."""

    campaign_id: str | None = None
    scores: ModerationScores
    decision: ModerationDecision
    flags: list[str]
    recommendations: list[str]
    details: ModerationDetails
    processing_time_ms: int = Field(..., ge=0)
    computed_at: datetime


class ModerateCampaignRequest(BaseModel):
    """Request schema for campaign moderation."""

    campaign_id: str | None = Field(
        None, validation_alias=AliasChoices("campaignId", "campaign_id")
    )
    campaign: CampaignContent | None = None


class BatchModerationRequest(BaseModel):
    """Request schema for moderating several stored campaigns."""

    campaign_ids: list[str] = Field(
        ...,
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("campaignIds", "campaign_ids"),
    )


class BatchModerationError(ApiModel):
    """Failure for one campaign of a batch."""

    campaign_id: str
    error: str
    message: str


class BatchModerationResponse(ApiModel):
    """Per-campaign outcomes of a batch run."""

    processed: int
    failed: int
    results: list[ModerationResult]
    errors: list[BatchModerationError]


class ModerationRecord(ApiModel):
    """Stored moderation row."""

    id: str
    campaign_id: str
    moderation_score: float
    scores: ModerationScores
    decision: ModerationDecision
    flags: list[str]
    recommendations: list[str]
    details: ModerationDetails
    processing_time_ms: int
    moderated_at: datetime


class ModerationHistoryResponse(ApiModel):
    """Moderation runs of a campaign, newest first."""

    campaign_id: str
    runs: list[ModerationRecord]
    total: int
