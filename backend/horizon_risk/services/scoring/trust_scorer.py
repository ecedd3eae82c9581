"""
Trust Scoring Engine

Computes a fundraiser's reputation from their campaign history. Five
sub-metrics (update timeliness, spend proof accuracy, donor sentiment, KYC
depth and behavioural anomalies) are combined with fixed weights into a 0-100
score, which maps to a tier. Confidence and recommendations are derived
alongside.

Everything in this module is pure: the same history and the same ``now``
always produce the same result.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from types import MappingProxyType

from horizon_risk.core.clock import as_utc
from horizon_risk.core.logging import get_logger
from horizon_risk.schemas.history import (
    BehaviorEvent,
    CampaignSnapshot,
    FeedbackSnapshot,
    FundraiserHistory,
    ProfileSnapshot,
)
from horizon_risk.schemas.trust import TrustComputation, TrustMetrics, TrustTier
from horizon_risk.services.scoring.aggregation import (
    clamp,
    classify_by_bands,
    mean,
    round_score,
    weighted_sum,
)

logger = get_logger(__name__)

TRUST_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "update_timeliness": 0.40,
        "spend_proof_accuracy": 0.30,
        "donor_sentiment": 0.15,
        "kyc_depth": 0.10,
        "anomaly_score": 0.05,
    }
)

TRUST_TIER_BANDS: tuple[tuple[float, TrustTier], ...] = (
    (0.0, TrustTier.NEW),
    (25.0, TrustTier.RISING),
    (50.0, TrustTier.STEADY),
    (75.0, TrustTier.TRUSTED),
    (90.0, TrustTier.STAR),
)

# Update timeliness
ACTIVE_FUNDING_STATUSES = frozenset({"active", "funded"})
EMERGENCY_UPDATE_INTERVAL_DAYS = 7
STANDARD_UPDATE_INTERVAL_DAYS = 14
NEUTRAL_TIMELINESS = 50.0
TIMELINESS_FLOOR = 10.0
MISSED_UPDATE_PENALTY = 15.0
OVERDUE_UPDATE_PENALTY = 20.0

# Spend proof
NO_SPEND_EVIDENCE_SCORE = 30.0
RECEIPT_UPDATE_TYPE = "receipt"

# Donor sentiment
SENTIMENT_PRIOR = 70.0
RATING_SCALE_FACTOR = 20.0

KYC_LEVELS: Mapping[str, float] = MappingProxyType(
    {
        "unverified": 0.0,
        "email_verified": 20.0,
        "phone_verified": 40.0,
        "id_verified": 70.0,
        "kyc_full": 100.0,
    }
)

# Anomalies
NEGATIVE_EVENT_TYPES = frozenset({"FUNDS_MISUSED", "NEGATIVE_REVIEW", "LATE_UPDATE"})
NEGATIVE_EVENT_WINDOW = timedelta(days=30)
NEGATIVE_EVENT_PENALTY = 15.0
MAX_ACTIVE_CAMPAIGNS = 3
EXCESS_CAMPAIGN_PENALTY = 10.0
CAMPAIGN_VELOCITY_WINDOW = timedelta(days=7)
MAX_RECENT_CAMPAIGNS = 2
CAMPAIGN_VELOCITY_PENALTY = 20.0

# Confidence
BASE_CONFIDENCE = 50.0

RECOMMENDATION_UPDATE_CADENCE = "Post regular updates to improve your timeliness score"
RECOMMENDATION_RECEIPTS = (
    "Include receipts and payment references in your spending updates"
)
RECOMMENDATION_VERIFICATION = "Complete your identity verification to increase trust"
RECOMMENDATION_ENGAGEMENT = (
    "Engage more with your donors and respond to their feedback"
)
RECOMMENDATION_TRANSPARENCY = (
    "Focus on consistent communication and transparency to build trust"
)
RECOMMENDATION_KEEP_GOING = "Great work! Keep maintaining your excellent trust score"


def _whole_days(later: datetime, earlier: datetime) -> int:
    return int((as_utc(later) - as_utc(earlier)).total_seconds() // 86400)


def update_interval_days(need_type: str) -> int:
    """Expected days between updates for a declared need."""
    if need_type.lower() == "emergency":
        return EMERGENCY_UPDATE_INTERVAL_DAYS
    return STANDARD_UPDATE_INTERVAL_DAYS


def campaign_timeliness(campaign: CampaignSnapshot, now: datetime) -> float:
    """Timeliness score of a single campaign."""
    interval = update_interval_days(campaign.need_type)
    expected_updates = max(1, _whole_days(now, campaign.created_at) // interval)
    actual_updates = len(campaign.updates)

    if actual_updates >= expected_updates:
        latest_update = max(as_utc(update.created_at) for update in campaign.updates)
        days_since_update = _whole_days(now, latest_update)
        if days_since_update <= interval:
            score = 90.0
        elif days_since_update <= interval * 1.5:
            score = 75.0
        else:
            score = 60.0
    else:
        shortfall = expected_updates - actual_updates
        score = max(TIMELINESS_FLOOR, 50.0 - MISSED_UPDATE_PENALTY * shortfall)

    if campaign.overdue_updates_count > 0:
        score = max(
            TIMELINESS_FLOOR,
            score - OVERDUE_UPDATE_PENALTY * campaign.overdue_updates_count,
        )

    return score


def update_timeliness(
    campaigns: Iterable[CampaignSnapshot], now: datetime
) -> float:
    """Average timeliness over campaigns in an active funding state."""
    scores = [
        campaign_timeliness(campaign, now)
        for campaign in campaigns
        if campaign.status.lower() in ACTIVE_FUNDING_STATUSES
    ]
    return mean(scores, default=NEUTRAL_TIMELINESS)


def spend_proof_accuracy(campaigns: Iterable[CampaignSnapshot]) -> float:
    """Share of tagged spend backed by a payment reference or a receipt."""
    tagged_total = 0.0
    proven_total = 0.0

    for campaign in campaigns:
        for update in campaign.updates:
            amount = update.spend_amount_tagged or 0.0
            if amount <= 0:
                continue
            tagged_total += amount
            if (
                update.payment_reference
                or update.update_type.lower() == RECEIPT_UPDATE_TYPE
            ):
                proven_total += amount

    if tagged_total <= 0:
        return NO_SPEND_EVIDENCE_SCORE

    return clamp(100.0 * proven_total / tagged_total)


def donor_sentiment(feedback: FeedbackSnapshot) -> float:
    """Pooled mean of scaled feedback ratings and comment sentiment."""
    signals = [clamp(rating, 1, 5) * RATING_SCALE_FACTOR for rating in feedback.ratings]
    signals.extend(clamp(sentiment) for sentiment in feedback.comment_sentiments)
    return mean(signals, default=SENTIMENT_PRIOR)


def kyc_depth(profile: ProfileSnapshot) -> float:
    """Verification level on a fixed point scale."""
    return KYC_LEVELS.get(profile.verification_status.lower(), 0.0)


def anomaly_score(
    campaigns: Iterable[CampaignSnapshot],
    events: Iterable[BehaviorEvent],
    now: datetime,
) -> float:
    """Start from 100 and subtract penalties for suspicious behaviour."""
    campaigns = list(campaigns)
    score = 100.0

    event_cutoff = as_utc(now) - NEGATIVE_EVENT_WINDOW
    negative_events = sum(
        1
        for event in events
        if event.event_type.upper() in NEGATIVE_EVENT_TYPES
        and as_utc(event.created_at) >= event_cutoff
    )
    score -= NEGATIVE_EVENT_PENALTY * negative_events

    active_campaigns = sum(
        1 for campaign in campaigns if campaign.status.lower() == "active"
    )
    score -= EXCESS_CAMPAIGN_PENALTY * max(0, active_campaigns - MAX_ACTIVE_CAMPAIGNS)

    velocity_cutoff = as_utc(now) - CAMPAIGN_VELOCITY_WINDOW
    recent_campaigns = sum(
        1 for campaign in campaigns if as_utc(campaign.created_at) > velocity_cutoff
    )
    if recent_campaigns > MAX_RECENT_CAMPAIGNS:
        score -= CAMPAIGN_VELOCITY_PENALTY

    return clamp(score)


def aggregate_trust_score(metrics: TrustMetrics) -> float:
    """Weighted trust score, clamped and rounded to 2 decimal places."""
    return round_score(weighted_sum(metrics.model_dump(), TRUST_WEIGHTS))


def trust_tier_for(score: float) -> TrustTier:
    """Tier band containing ``score``."""
    return classify_by_bands(score, TRUST_TIER_BANDS)


def trust_confidence(history: FundraiserHistory) -> float:
    """How much history backs the score. Does not affect the score itself."""
    campaign_count = len(history.campaigns)
    update_count = sum(len(campaign.updates) for campaign in history.campaigns)
    donation_count = history.feedback.donation_count

    confidence = BASE_CONFIDENCE
    confidence += min(30.0, campaign_count * 10.0)
    confidence += min(20.0, update_count * 2.0)
    confidence += min(20.0, donation_count * 1.0)
    return clamp(confidence)


def trust_recommendations(metrics: TrustMetrics, trust_score: float) -> tuple[str, ...]:
    """Ordered advice for the fundraiser, most important first."""
    recommendations = []

    if metrics.update_timeliness < 60:
        recommendations.append(RECOMMENDATION_UPDATE_CADENCE)
    if metrics.spend_proof_accuracy < 70:
        recommendations.append(RECOMMENDATION_RECEIPTS)
    if metrics.kyc_depth < 70:
        recommendations.append(RECOMMENDATION_VERIFICATION)
    if metrics.donor_sentiment < 60:
        recommendations.append(RECOMMENDATION_ENGAGEMENT)
    if trust_score < 50:
        recommendations.append(RECOMMENDATION_TRANSPARENCY)

    if not recommendations:
        recommendations.append(RECOMMENDATION_KEEP_GOING)

    return tuple(recommendations)


class TrustScorer:
    """
    Multi-signal trust scoring engine for fundraisers.

    Signals and weights:
    - Update timeliness (40%): cadence of progress updates
    - Spend proof accuracy (30%): receipts and payment references
    - Donor sentiment (15%): feedback ratings and comment sentiment
    - KYC depth (10%): verification level reached
    - Anomaly score (5%): negative events, campaign count and velocity abuse
    """

    def __init__(self):
        self.signal_weights = TRUST_WEIGHTS

    def calculate_metrics(
        self, history: FundraiserHistory, now: datetime
    ) -> TrustMetrics:
        """Compute the five sub-metrics from a history snapshot."""
        return TrustMetrics(
            update_timeliness=update_timeliness(history.campaigns, now),
            spend_proof_accuracy=spend_proof_accuracy(history.campaigns),
            donor_sentiment=donor_sentiment(history.feedback),
            kyc_depth=kyc_depth(history.profile),
            anomaly_score=anomaly_score(
                history.campaigns, history.recent_events, now
            ),
        )

    def calculate_score(
        self, history: FundraiserHistory, now: datetime
    ) -> TrustComputation:
        """
        Calculate the trust score for a fundraiser.

        Args:
            history: Snapshot of the fundraiser's profile, campaigns, feedback
                and recent trust events
            now: Reference time for every time-windowed rule

        Returns:
            TrustComputation with score, tier, metrics, confidence and
            recommendations
        """
        metrics = self.calculate_metrics(history, now)
        trust_score = aggregate_trust_score(metrics)
        trust_tier = trust_tier_for(trust_score)

        logger.debug(
            f"Trust score for {history.profile.user_id}: {trust_score} ({trust_tier.value})"
        )

        return TrustComputation(
            trust_score=trust_score,
            trust_tier=trust_tier,
            metrics=metrics,
            confidence=trust_confidence(history),
            recommendations=trust_recommendations(metrics, trust_score),
        )
