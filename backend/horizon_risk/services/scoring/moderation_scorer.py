"""
Campaign Moderation Engine

Screens campaign content with five rule-based sub-checks and routes it to
approved, review or rejected.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from horizon_risk.core.logging import get_logger
from horizon_risk.schemas.moderation import (
    BudgetItem,
    CampaignContent,
    ModerationComputation,
    ModerationDecision,
    ModerationDetails,
    ModerationScores,
    ModerationSubScores,
)
from horizon_risk.services.scoring.aggregation import clamp, round_score, weighted_sum
from horizon_risk.services.scoring.rules import (
    INAPPROPRIATE,
    LUXURY,
    NEED_TYPE_RULES,
    RULES_VERSION,
    SUSPICIOUS_FINANCIAL,
    TRUST_INDICATORS,
    URGENCY,
)

logger = get_logger(__name__)

# Penalty and bonus weights around a neutral baseline
MODERATION_BASELINE = 50.0
MODERATION_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "luxury": -0.25,
        "inappropriate": -0.35,
        "fraud": -0.30,
        "need_validation": 0.20,
        "trust": 0.20,
    }
)

APPROVAL_THRESHOLD = 70.0
REVIEW_THRESHOLD = 40.0

# Luxury
LUXURY_MATCH_POINTS = 15.0
COSTLY_LINE_AMOUNT = 1_000.0
COSTLY_LINE_POINTS = 20.0
VERY_COSTLY_LINE_AMOUNT = 5_000.0
VERY_COSTLY_LINE_POINTS = 30.0
LARGE_GOAL_AMOUNT = 50_000.0
LARGE_GOAL_POINTS = 25.0
VERY_LARGE_GOAL_AMOUNT = 100_000.0
VERY_LARGE_GOAL_POINTS = 35.0

INAPPROPRIATE_MATCH_POINTS = 25.0

# Fraud
FRAUD_MATCH_POINTS = 20.0
URGENCY_TERM_LIMIT = 2
URGENCY_POINTS = 15.0
MIN_NARRATIVE_LENGTH = 200
SHORT_NARRATIVE_POINTS = 10.0
MISSING_BUDGET_POINTS = 20.0
ROUND_BUDGET_MIN_LINES = 3
ROUND_BUDGET_POINTS = 15.0

# Need validation
NEED_VALIDATION_BASE = 100.0
MISSING_LEGITIMATE_VOCABULARY_PENALTY = 30.0
SUSPICIOUS_VOCABULARY_PENALTY = 40.0
MIN_EMERGENCY_NARRATIVE_LENGTH = 300
SHORT_EMERGENCY_NARRATIVE_PENALTY = 25.0

TRUST_BASE = 50.0

# Signal flags
LUXURY_FLAG_THRESHOLD = 50.0
FRAUD_FLAG_THRESHOLD = 40.0
NEED_VALIDATION_FLAG_THRESHOLD = 70.0

DECISION_FLAGS: Mapping[ModerationDecision, tuple[str, ...]] = MappingProxyType(
    {
        ModerationDecision.APPROVED: (),
        ModerationDecision.REVIEW: ("manual_review_required",),
        ModerationDecision.REJECTED: ("high_risk",),
    }
)

DECISION_RECOMMENDATIONS: Mapping[ModerationDecision, tuple[str, ...]] = MappingProxyType(
    {
        ModerationDecision.APPROVED: ("Campaign looks good for publication",),
        ModerationDecision.REVIEW: (
            "Campaign requires manual review",
            "Consider requesting additional documentation",
        ),
        ModerationDecision.REJECTED: (
            "Campaign does not meet platform guidelines",
            "Significant concerns detected",
        ),
    }
)


def extract_text_content(content: CampaignContent) -> str:
    """Lower-cased title, story, description and budget line text."""
    parts = [content.title, content.story, content.description or ""]
    for line in content.budget_breakdown or []:
        parts.append(line.item)
        parts.append(line.description or "")
    return " ".join(part for part in parts if part).lower()


def _budget_lines(content: CampaignContent) -> list[BudgetItem]:
    return list(content.budget_breakdown or [])


def check_luxury(content: CampaignContent, text: str) -> tuple[float, tuple[str, ...]]:
    """Luxury sub-score and the luxury phrases found."""
    score = LUXURY_MATCH_POINTS * LUXURY.count(text)
    is_medical = content.need_type.lower() == "medical"

    for line in _budget_lines(content):
        if line.amount > COSTLY_LINE_AMOUNT and not is_medical:
            score += COSTLY_LINE_POINTS
        if line.amount > VERY_COSTLY_LINE_AMOUNT:
            score += VERY_COSTLY_LINE_POINTS

    if content.goal_amount > LARGE_GOAL_AMOUNT:
        score += LARGE_GOAL_POINTS
    if content.goal_amount > VERY_LARGE_GOAL_AMOUNT:
        score += VERY_LARGE_GOAL_POINTS

    return round_score(score), LUXURY.matched_phrases(text)


def check_inappropriate(text: str) -> tuple[float, tuple[str, ...]]:
    """Inappropriate-content sub-score and the phrases found."""
    score = INAPPROPRIATE_MATCH_POINTS * INAPPROPRIATE.count(text)
    return round_score(score), INAPPROPRIATE.matched_phrases(text)


def check_fraud(content: CampaignContent, text: str) -> tuple[float, tuple[str, ...]]:
    """
    Fraud sub-score and the suspicious patterns behind it.

    Pattern matches are reported verbatim; structural findings (urgency,
    narrative length, budget shape) are reported by name.
    """
    score = FRAUD_MATCH_POINTS * SUSPICIOUS_FINANCIAL.count(text)
    patterns = list(SUSPICIOUS_FINANCIAL.matched_phrases(text))

    urgency_terms = {term.lower() for term in URGENCY.find_all(text)}
    if len(urgency_terms) > URGENCY_TERM_LIMIT:
        score += URGENCY_POINTS
        patterns.append("excessive_urgency")

    if content.story and len(content.story) < MIN_NARRATIVE_LENGTH:
        score += SHORT_NARRATIVE_POINTS
        patterns.append("short_narrative")

    lines = _budget_lines(content)
    if not lines:
        score += MISSING_BUDGET_POINTS
        patterns.append("missing_budget_breakdown")
    elif len(lines) >= ROUND_BUDGET_MIN_LINES and all(
        line.amount % 100 == 0 for line in lines
    ):
        score += ROUND_BUDGET_POINTS
        patterns.append("round_budget_amounts")

    return round_score(score), tuple(patterns)


def validate_need_type(content: CampaignContent, text: str) -> float:
    """How well the narrative supports the declared need. 100 is fully consistent."""
    need_type = content.need_type.lower()
    score = NEED_VALIDATION_BASE

    rules = NEED_TYPE_RULES.get(need_type)
    if rules is not None:
        if not rules.legitimate.any_match(text):
            score -= MISSING_LEGITIMATE_VOCABULARY_PENALTY
        if rules.suspicious.any_match(text):
            score -= SUSPICIOUS_VOCABULARY_PENALTY
    elif need_type == "emergency":
        if content.story and len(content.story) < MIN_EMERGENCY_NARRATIVE_LENGTH:
            score -= SHORT_EMERGENCY_NARRATIVE_PENALTY

    return round_score(score)


def calculate_trust_indicators(text: str) -> tuple[float, tuple[str, ...]]:
    """Trust sub-score. Points are earned once per matched rule family."""
    score = TRUST_BASE
    indicators: list[str] = []

    for rule_set, points in TRUST_INDICATORS:
        families = rule_set.matched_families(text)
        score += points * len(families)
        indicators.extend(f"{rule_set.name}:{family}" for family in families)

    return round_score(score), tuple(indicators)


def aggregate_overall(sub_scores: ModerationSubScores) -> float:
    """Overall moderation score, clamped and rounded to 2 decimal places."""
    return round_score(
        weighted_sum(
            sub_scores.model_dump(), MODERATION_WEIGHTS, baseline=MODERATION_BASELINE
        )
    )


def make_decision(overall: float) -> ModerationDecision:
    if overall >= APPROVAL_THRESHOLD:
        return ModerationDecision.APPROVED
    if overall >= REVIEW_THRESHOLD:
        return ModerationDecision.REVIEW
    return ModerationDecision.REJECTED


def signal_flags(sub_scores: ModerationSubScores, content: CampaignContent) -> set[str]:
    """Explanatory flags raised by individual sub-checks."""
    flags = set()
    if sub_scores.luxury >= LUXURY_FLAG_THRESHOLD:
        flags.add("luxury_content")
    if sub_scores.inappropriate > 0:
        flags.add("inappropriate_content")
    if sub_scores.fraud >= FRAUD_FLAG_THRESHOLD:
        flags.add("fraud_indicators")
    if not content.budget_breakdown:
        flags.add("missing_budget_breakdown")
    if sub_scores.need_validation < NEED_VALIDATION_FLAG_THRESHOLD:
        flags.add("need_validation_failed")
    return flags


class ModerationScorer:
    """
    Rule-based campaign moderation.

    Sub-checks and weights around a neutral 50:
    - Luxury (-0.25), inappropriate content (-0.35), fraud (-0.30)
    - Need validation (+0.20), trust indicators (+0.20)
    """

    def __init__(self):
        self.weights = MODERATION_WEIGHTS
        self.rules_version = RULES_VERSION

    def moderate(self, content: CampaignContent) -> ModerationComputation:
        """
        Moderate campaign content.

        Args:
            content: Campaign title, narrative, need type, goal and budget

        Returns:
            ModerationComputation with scores, decision, flags,
            recommendations and the evidence behind them
        """
        text = extract_text_content(content)

        luxury, luxury_items = check_luxury(content, text)
        inappropriate, inappropriate_content = check_inappropriate(text)
        fraud, suspicious_patterns = check_fraud(content, text)
        need_validation = validate_need_type(content, text)
        trust, trust_indicators = calculate_trust_indicators(text)

        sub_scores = ModerationSubScores(
            luxury=luxury,
            inappropriate=inappropriate,
            fraud=fraud,
            need_validation=need_validation,
            trust=trust,
        )
        overall = aggregate_overall(sub_scores)
        decision = make_decision(overall)

        flags = signal_flags(sub_scores, content)
        flags.update(DECISION_FLAGS[decision])

        logger.debug(
            f"Moderated campaign {content.id or '<inline>'}: {overall} ({decision.value})"
        )

        return ModerationComputation(
            scores=ModerationScores(**sub_scores.model_dump(), overall=overall),
            decision=decision,
            flags=frozenset(flags),
            recommendations=DECISION_RECOMMENDATIONS[decision],
            details=ModerationDetails(
                luxury_items=luxury_items,
                inappropriate_content=inappropriate_content,
                suspicious_patterns=suspicious_patterns,
                trust_indicators=trust_indicators,
                rules_version=self.rules_version,
            ),
        )
