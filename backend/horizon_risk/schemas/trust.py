"""
Trust scoring schemas.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

from horizon_risk.schemas.base import ApiModel, FrozenApiModel


class TrustTier(str, Enum):
    """Reputation band, ordered from lowest to highest."""

    NEW = "NEW"
    RISING = "RISING"
    STEADY = "STEADY"
    TRUSTED = "TRUSTED"
    STAR = "STAR"

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if isinstance(other, TrustTier):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, TrustTier):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, TrustTier):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, TrustTier):
            return self.rank >= other.rank
        return NotImplemented


class TrustMetrics(FrozenApiModel):
    """The five weighted sub-metrics, each on a 0-100 scale."""

    update_timeliness: float = Field(..., ge=0.0, le=100.0)
    spend_proof_accuracy: float = Field(..., ge=0.0, le=100.0)
    donor_sentiment: float = Field(..., ge=0.0, le=100.0)
    kyc_depth: float = Field(..., ge=0.0, le=100.0)
    anomaly_score: float = Field(..., ge=0.0, le=100.0)


class TrustComputation(FrozenApiModel):
    """Output of the pure trust pipeline, before it is stamped and stored."""

    trust_score: float = Field(..., ge=0.0, le=100.0)
    trust_tier: TrustTier
    metrics: TrustMetrics
    confidence: float = Field(..., ge=0.0, le=100.0)
    recommendations: tuple[str, ...]


class TrustResult(ApiModel):
    """Persisted trust score of a fundraiser."""

    user_id: str
    trust_score: float = Field(..., ge=0.0, le=100.0, description="Trust score (0-100)")
    trust_tier: TrustTier
    metrics: TrustMetrics
    confidence: float = Field(
        ..., ge=0.0, le=100.0, description="Advisory confidence in the score"
    )
    recommendations: list[str]
    computed_at: datetime


class TrustScoreRequest(BaseModel):
    """Request schema for trust score calculation."""

    user_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("userId", "user_id", "recipient_id"),
    )
    trigger_event: str | None = Field(
        None,
        max_length=50,
        validation_alias=AliasChoices("trigger_event", "triggerEvent"),
    )


class TrustScoreEventResponse(ApiModel):
    """One row of the trust score audit trail."""

    id: str
    user_id: str
    event_type: str
    old_score: float | None = None
    new_score: float
    trust_tier: TrustTier
    metrics_snapshot: TrustMetrics
    confidence: float
    created_at: datetime


class TrustScoreHistoryResponse(ApiModel):
    """Audit trail for a fundraiser, newest first."""

    user_id: str
    events: list[TrustScoreEventResponse]
    total: int
