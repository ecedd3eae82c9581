"""
Unit tests for ModerationScorer service.

Tests the five moderation sub-checks, aggregation, decision boundaries and
flags.
"""

from decimal import Decimal

import pytest

from horizon_risk.schemas.moderation import (
    BudgetItem,
    CampaignContent,
    ModerationDecision,
    ModerationSubScores,
)
from horizon_risk.services.scoring.moderation_scorer import (
    MODERATION_WEIGHTS,
    ModerationScorer,
    aggregate_overall,
    calculate_trust_indicators,
    check_fraud,
    check_inappropriate,
    check_luxury,
    extract_text_content,
    make_decision,
    validate_need_type,
)
from horizon_risk.services.scoring.rules import RULES_VERSION

MEDICAL_STORY = (
    "My father was diagnosed with kidney disease last year and his doctor at the "
    "regional hospital has recommended surgery this autumn. We are raising funds to "
    "cover the operation, the hospital stay and the medication he will need during "
    "recovery. We will share every invoice and receipt with our donors."
)

pytestmark = pytest.mark.unit


def medical_budget():
    return [
        BudgetItem(item="Surgery", amount=4250, description="Kidney operation fee"),
        BudgetItem(item="Hospital stay", amount=1180.50, description="Five nights"),
        BudgetItem(item="Medication", amount=345, description="Post-operative prescriptions"),
    ]


def make_content(**overrides):
    values = {
        "title": "Kidney surgery for my father",
        "story": MEDICAL_STORY,
        "need_type": "medical",
        "goal_amount": 5775.50,
        "budget_breakdown": medical_budget(),
    }
    values.update(overrides)
    return CampaignContent(**values)


def make_sub_scores(**overrides):
    values = {
        "luxury": 0.0,
        "inappropriate": 0.0,
        "fraud": 0.0,
        "need_validation": 100.0,
        "trust": 50.0,
    }
    values.update(overrides)
    return ModerationSubScores(**values)


class TestModerationScorer:
    """Test cases for ModerationScorer class."""

    @pytest.fixture
    def scorer(self):
        """Create ModerationScorer instance for testing."""
        return ModerationScorer()

    def test_clean_medical_campaign_is_approved(self, scorer):
        result = scorer.moderate(make_content())

        assert result.scores.luxury == 0.0
        assert result.scores.inappropriate == 0.0
        assert result.scores.fraud == 0.0
        assert result.scores.need_validation == 100.0
        assert result.scores.trust >= 50.0
        assert result.scores.overall >= 70.0
        assert result.decision == ModerationDecision.APPROVED
        assert result.flags == frozenset()
        assert result.recommendations == ("Campaign looks good for publication",)
        assert result.details.rules_version == RULES_VERSION

    def test_luxury_campaign_scenario(self, scorer):
        """Luxury brands and a very large goal with no budget."""
        content = CampaignContent(
            title="Help buy a new Rolex and Mercedes",
            need_type="other",
            goal_amount=200_000,
        )
        result = scorer.moderate(content)

        assert result.scores.luxury == 90.0
        assert result.scores.fraud == 20.0
        assert result.scores.need_validation == 100.0
        assert result.scores.overall == 52.3
        assert result.details.suspicious_patterns == ("missing_budget_breakdown",)
        assert "missing_budget_breakdown" in result.flags
        assert "luxury_content" in result.flags
        assert set(result.details.luxury_items) == {"rolex", "mercedes"}
        assert result.decision != ModerationDecision.APPROVED
        assert result.decision == ModerationDecision.REVIEW
        assert "manual_review_required" in result.flags
        assert result.recommendations == (
            "Campaign requires manual review",
            "Consider requesting additional documentation",
        )

    def test_luxury_campaign_with_fraud_signals_is_rejected(self, scorer):
        content = CampaignContent(
            title="Help buy a new Rolex and Mercedes",
            story=(
                "I need urgent money via wire transfer or western union. "
                "Send bitcoin for this luxury penthouse vacation."
            ),
            need_type="other",
            goal_amount=200_000,
        )
        result = scorer.moderate(content)

        assert result.scores.luxury == 100.0
        assert result.scores.fraud == 100.0
        assert result.scores.overall < 40.0
        assert result.decision == ModerationDecision.REJECTED
        assert {"high_risk", "luxury_content", "fraud_indicators"} <= result.flags
        assert result.recommendations == (
            "Campaign does not meet platform guidelines",
            "Significant concerns detected",
        )

    def test_moderation_is_deterministic(self, scorer):
        assert scorer.moderate(make_content()) == scorer.moderate(make_content())

    def test_overall_matches_weights(self, scorer):
        result = scorer.moderate(make_content(title="Rolex for grandpa"))
        scores = result.scores

        expected = round(
            50
            - 0.25 * scores.luxury
            - 0.35 * scores.inappropriate
            - 0.30 * scores.fraud
            + 0.20 * scores.need_validation
            + 0.20 * scores.trust,
            2,
        )
        assert scores.overall == pytest.approx(expected)

    def test_scores_in_range(self, scorer):
        content = make_content(
            story="scam fraud fake hoax drugs guns hate porn " * 5,
            goal_amount=10_000_000,
        )
        result = scorer.moderate(content)

        for value in result.scores.model_dump().values():
            assert 0.0 <= value <= 100.0


class TestTextExtraction:
    """Test text extraction for rule matching."""

    def test_concatenates_all_fields_lower_cased(self):
        content = make_content(
            title="TITLE",
            story="Story",
            description="Desc",
            budget_breakdown=[BudgetItem(item="Bed", amount=100, description="Hospital BED")],
        )
        assert extract_text_content(content) == "title story desc bed hospital bed"

    def test_missing_fields(self):
        assert extract_text_content(CampaignContent(title="Only title")) == "only title"


class TestLuxuryCheck:
    """Test luxury detection."""

    def test_each_occurrence_counts(self):
        content = CampaignContent(title="Rolex")
        score, _ = check_luxury(content, "rolex and another rolex")
        assert score == 30.0

    def test_costly_lines_outside_medical(self):
        content = CampaignContent(
            need_type="education",
            budget_breakdown=[
                BudgetItem(item="Laptop", amount=1500),
                BudgetItem(item="Fees", amount=6000),
            ],
        )
        score, _ = check_luxury(content, "")
        # +20 +20 for lines over 1,000 and +30 for the line over 5,000
        assert score == 70.0

    def test_medical_lines_only_flagged_when_very_costly(self):
        content = CampaignContent(
            need_type="medical",
            budget_breakdown=[
                BudgetItem(item="Scan", amount=1500),
                BudgetItem(item="Surgery", amount=6000),
            ],
        )
        score, _ = check_luxury(content, "")
        assert score == 30.0

    @pytest.mark.parametrize(
        "goal,expected",
        [(50_000, 0.0), (50_001, 25.0), (100_000, 25.0), (100_001, 60.0)],
    )
    def test_goal_thresholds(self, goal, expected):
        score, _ = check_luxury(CampaignContent(goal_amount=goal), "")
        assert score == expected

    def test_clamped(self):
        score, _ = check_luxury(CampaignContent(), "rolex " * 20)
        assert score == 100.0


class TestInappropriateCheck:
    """Test inappropriate content detection."""

    def test_clean_text(self):
        assert check_inappropriate(MEDICAL_STORY.lower()) == (0.0, ())

    def test_each_match_scores(self):
        score, phrases = check_inappropriate("this is not a scam, no drugs involved")
        assert score == 50.0
        assert phrases == ("scam", "drugs")

    def test_whole_words_only(self):
        # "scampi" is not a match for "scam"
        score, _ = check_inappropriate("scampi dinner")
        assert score == 0.0


class TestFraudCheck:
    """Test fraud pattern detection."""

    def test_clean_content(self):
        content = make_content()
        score, patterns = check_fraud(content, extract_text_content(content))
        assert score == 0.0
        assert patterns == ()

    def test_short_narrative(self):
        content = make_content(story="Please help.")
        score, patterns = check_fraud(content, extract_text_content(content))
        assert score == 10.0
        assert "short_narrative" in patterns

    def test_missing_narrative_not_penalised(self):
        content = make_content(story="")
        score, patterns = check_fraud(content, extract_text_content(content))
        assert score == 0.0
        assert "short_narrative" not in patterns

    def test_narrative_length_is_not_stripped(self):
        content = make_content(story=" " * 200)
        score, _ = check_fraud(content, extract_text_content(content))
        assert score == 0.0

    def test_missing_budget(self):
        content = make_content(budget_breakdown=None)
        score, patterns = check_fraud(content, extract_text_content(content))
        assert score == 20.0
        assert "missing_budget_breakdown" in patterns

    def test_empty_budget(self):
        content = make_content(budget_breakdown=[])
        score, _ = check_fraud(content, extract_text_content(content))
        assert score == 20.0

    def test_round_budget_amounts(self):
        round_lines = [
            BudgetItem(item="Rent", amount=1000),
            BudgetItem(item="Food", amount=500),
            BudgetItem(item="Transport", amount=200),
        ]
        content = make_content(budget_breakdown=round_lines)
        score, patterns = check_fraud(content, extract_text_content(content))
        assert score == 15.0
        assert "round_budget_amounts" in patterns

    def test_two_round_lines_allowed(self):
        content = make_content(
            budget_breakdown=[
                BudgetItem(item="Rent", amount=1000),
                BudgetItem(item="Food", amount=500),
            ]
        )
        score, _ = check_fraud(content, extract_text_content(content))
        assert score == 0.0

    def test_financial_patterns(self):
        content = make_content(story=MEDICAL_STORY + " Pay by wire transfer or bitcoin.")
        score, patterns = check_fraud(content, extract_text_content(content))
        assert score == 40.0
        assert "wire transfer" in patterns
        assert "bitcoin" in patterns

    def test_large_amounts(self):
        content = make_content(story=MEDICAL_STORY + " We need $250000 or 1000000 dollars.")
        score, _ = check_fraud(content, extract_text_content(content))
        assert score == 40.0

    def test_urgency_needs_more_than_two_distinct_terms(self):
        two = make_content(story=MEDICAL_STORY + " Urgent, urgent, this is critical.")
        three = make_content(story=MEDICAL_STORY + " Urgent, this is critical, act immediately.")

        two_score, _ = check_fraud(two, extract_text_content(two))
        three_score, three_patterns = check_fraud(three, extract_text_content(three))

        assert two_score == 0.0
        assert three_score == 15.0
        assert "excessive_urgency" in three_patterns


class TestNeedValidation:
    """Test need type consistency."""

    def test_supported_medical_need(self):
        content = make_content()
        assert validate_need_type(content, extract_text_content(content)) == 100.0

    def test_medical_without_medical_vocabulary(self):
        content = make_content(title="Help", story="Please donate.", budget_breakdown=None)
        assert validate_need_type(content, extract_text_content(content)) == 70.0

    def test_medical_with_suspicious_vocabulary(self):
        content = make_content(story=MEDICAL_STORY + " A miracle cure awaits abroad.")
        assert validate_need_type(content, extract_text_content(content)) == 60.0

    def test_education_need(self):
        content = CampaignContent(
            need_type="education",
            story="Tuition for my final semester at the state university.",
        )
        assert validate_need_type(content, extract_text_content(content)) == 100.0

    def test_education_both_penalties(self):
        content = CampaignContent(need_type="Education", story="Pay for grades now.")
        assert validate_need_type(content, extract_text_content(content)) == 30.0

    def test_short_emergency_narrative(self):
        content = CampaignContent(need_type="emergency", story="Fire destroyed our home.")
        assert validate_need_type(content, extract_text_content(content)) == 75.0

    def test_emergency_without_narrative(self):
        content = CampaignContent(need_type="emergency", title="House fire")
        assert validate_need_type(content, extract_text_content(content)) == 100.0

    def test_other_needs_unchecked(self):
        content = CampaignContent(need_type="other", story="")
        assert validate_need_type(content, "") == 100.0


class TestTrustIndicators:
    """Test trust indicator scoring."""

    def test_baseline(self):
        assert calculate_trust_indicators("") == (50.0, ())

    def test_points_per_family(self):
        score, indicators = calculate_trust_indicators(
            "receipt and invoice, a detailed breakdown, our church and local community"
        )
        # transparency: proof + itemization (2 x 5), faith: congregation (3),
        # community: kinship + locality (2 x 4)
        assert score == 71.0
        assert "transparency:proof" in indicators
        assert "faith:congregation" in indicators

    def test_repeated_terms_count_once(self):
        score, _ = calculate_trust_indicators("receipt receipt receipt receipt")
        assert score == 55.0


class TestDecision:
    """Test aggregation and decision boundaries."""

    def test_weights(self):
        assert dict(MODERATION_WEIGHTS) == {
            "luxury": -0.25,
            "inappropriate": -0.35,
            "fraud": -0.30,
            "need_validation": 0.20,
            "trust": 0.20,
        }
        penalties = sum(Decimal(str(w)) for w in MODERATION_WEIGHTS.values() if w < 0)
        assert penalties == Decimal("-0.90")

    def test_neutral_content(self):
        assert aggregate_overall(make_sub_scores()) == 80.0

    def test_overall_clamped(self):
        worst = make_sub_scores(
            luxury=100.0, inappropriate=100.0, fraud=100.0, need_validation=0.0, trust=0.0
        )
        assert aggregate_overall(worst) == 0.0

    @pytest.mark.parametrize("penalty", ["luxury", "inappropriate", "fraud"])
    def test_overall_never_rises_with_a_penalty(self, penalty):
        overall = [
            aggregate_overall(make_sub_scores(**{penalty: float(value)}))
            for value in range(0, 101, 5)
        ]
        assert all(later <= earlier for earlier, later in zip(overall, overall[1:]))
        assert overall[-1] < overall[0]

    @pytest.mark.parametrize(
        "overall,decision",
        [
            (100.0, ModerationDecision.APPROVED),
            (70.0, ModerationDecision.APPROVED),
            (69.99, ModerationDecision.REVIEW),
            (40.0, ModerationDecision.REVIEW),
            (39.99, ModerationDecision.REJECTED),
            (0.0, ModerationDecision.REJECTED),
        ],
    )
    def test_decision_boundaries(self, overall, decision):
        assert make_decision(overall) == decision

    @pytest.mark.parametrize(
        "decision,status",
        [
            (ModerationDecision.APPROVED, "active"),
            (ModerationDecision.REVIEW, "under_review"),
            (ModerationDecision.REJECTED, "rejected"),
        ],
    )
    def test_campaign_status_projection(self, decision, status):
        assert decision.campaign_status == status
