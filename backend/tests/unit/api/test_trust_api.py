"""
Unit tests for Trust Score API endpoints.

Tests the REST API for calculating and reading fundraiser trust scores.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from horizon_risk.core.config import settings
from horizon_risk.core.errors import DataAccessError, NotFound, PersistenceError
from horizon_risk.schemas.trust import (
    TrustMetrics,
    TrustResult,
    TrustScoreEventResponse,
    TrustScoreHistoryResponse,
    TrustTier,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def test_user_id():
    """Generate a test user UUID."""
    return str(uuid.uuid4())


@pytest.fixture
def sample_trust_result(test_user_id):
    """Create sample trust result."""
    return TrustResult(
        user_id=test_user_id,
        trust_score=44.5,
        trust_tier=TrustTier.RISING,
        metrics=TrustMetrics(
            update_timeliness=50.0,
            spend_proof_accuracy=30.0,
            donor_sentiment=70.0,
            kyc_depth=0.0,
            anomaly_score=100.0,
        ),
        confidence=50.0,
        recommendations=["Complete your identity verification to increase trust"],
        computed_at=datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc),
    )


class TestCalculateTrustScore:
    """Test POST /trust-score endpoint."""

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_calculate_trust_score_success(
        self, mock_trust_service_class, client, test_user_id, sample_trust_result
    ):
        """Test successful trust score calculation."""
        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.return_value = sample_trust_result
        mock_trust_service_class.return_value = mock_trust_service

        response = client.post("/api/v1/trust-score", json={"userId": test_user_id})

        assert response.status_code == 200
        data = response.json()

        assert data["userId"] == test_user_id
        assert data["trustScore"] == 44.5
        assert data["trustTier"] == "RISING"
        assert data["confidence"] == 50.0
        assert data["metrics"]["spendProofAccuracy"] == 30.0
        assert data["recommendations"] == sample_trust_result.recommendations
        assert "computedAt" in data

        mock_trust_service.compute_trust_score.assert_awaited_once_with(
            test_user_id, None
        )

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_trigger_event_passed_through(
        self, mock_trust_service_class, client, test_user_id, sample_trust_result
    ):
        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.return_value = sample_trust_result
        mock_trust_service_class.return_value = mock_trust_service

        response = client.post(
            "/api/v1/trust-score",
            json={"user_id": test_user_id, "trigger_event": "DONATION_RECEIVED"},
        )

        assert response.status_code == 200
        mock_trust_service.compute_trust_score.assert_awaited_once_with(
            test_user_id, "DONATION_RECEIVED"
        )

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_user_not_found(self, mock_trust_service_class, client):
        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.side_effect = NotFound(
            "User profile missing-user not found"
        )
        mock_trust_service_class.return_value = mock_trust_service

        response = client.post("/api/v1/trust-score", json={"userId": "missing-user"})

        assert response.status_code == 404
        assert response.json()["detail"] == {
            "error": "not_found",
            "message": "User profile missing-user not found",
        }

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_data_access_error_is_retryable(
        self, mock_trust_service_class, client, test_user_id
    ):
        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.side_effect = DataAccessError(
            "Could not read campaigns"
        )
        mock_trust_service_class.return_value = mock_trust_service

        response = client.post("/api/v1/trust-score", json={"userId": test_user_id})

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "data_access_error"

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_persistence_error(self, mock_trust_service_class, client, test_user_id):
        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.side_effect = PersistenceError(
            "Could not store trust score"
        )
        mock_trust_service_class.return_value = mock_trust_service

        response = client.post("/api/v1/trust-score", json={"userId": test_user_id})

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "persistence_error"

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_unexpected_error(self, mock_trust_service_class, client, test_user_id):
        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.side_effect = RuntimeError("boom")
        mock_trust_service_class.return_value = mock_trust_service

        response = client.post("/api/v1/trust-score", json={"userId": test_user_id})

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_timeout(self, mock_trust_service_class, client, test_user_id):
        async def slow_calculation(*args, **kwargs):
            await asyncio.sleep(1)

        mock_trust_service = AsyncMock()
        mock_trust_service.compute_trust_score.side_effect = slow_calculation
        mock_trust_service_class.return_value = mock_trust_service

        with patch.object(settings, "SCORING_TIMEOUT_SECONDS", 0.01):
            response = client.post("/api/v1/trust-score", json={"userId": test_user_id})

        assert response.status_code == 504
        assert response.json()["detail"]["error"] == "timeout"

    def test_invalid_request(self, client):
        """Test trust score calculation with invalid request data."""
        # Missing userId
        response = client.post("/api/v1/trust-score", json={})
        assert response.status_code == 422

        # Empty userId
        response = client.post("/api/v1/trust-score", json={"userId": ""})
        assert response.status_code == 422


class TestGetTrustScore:
    """Test GET /trust-score/{user_id} endpoints."""

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_get_current_score(
        self, mock_trust_service_class, client, test_user_id, sample_trust_result
    ):
        mock_trust_service = AsyncMock()
        mock_trust_service.get_current_result.return_value = sample_trust_result
        mock_trust_service_class.return_value = mock_trust_service

        response = client.get(f"/api/v1/trust-score/{test_user_id}")

        assert response.status_code == 200
        assert response.json()["trustScore"] == 44.5
        mock_trust_service.get_current_result.assert_awaited_once_with(test_user_id)

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_score_never_calculated(self, mock_trust_service_class, client):
        mock_trust_service = AsyncMock()
        mock_trust_service.get_current_result.side_effect = NotFound(
            "No trust score has been calculated for user u1"
        )
        mock_trust_service_class.return_value = mock_trust_service

        response = client.get("/api/v1/trust-score/u1")

        assert response.status_code == 404

    @patch("horizon_risk.api.v1.endpoints.trust.TrustScoreService")
    def test_get_history(
        self, mock_trust_service_class, client, test_user_id, sample_trust_result
    ):
        event = TrustScoreEventResponse(
            id=str(uuid.uuid4()),
            user_id=test_user_id,
            event_type="CALCULATION",
            old_score=None,
            new_score=44.5,
            trust_tier=TrustTier.RISING,
            metrics_snapshot=sample_trust_result.metrics,
            confidence=50.0,
            created_at=sample_trust_result.computed_at,
        )
        mock_trust_service = AsyncMock()
        mock_trust_service.get_history.return_value = TrustScoreHistoryResponse(
            user_id=test_user_id, events=[event], total=1
        )
        mock_trust_service_class.return_value = mock_trust_service

        response = client.get(f"/api/v1/trust-score/{test_user_id}/history?limit=5")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["events"][0]["eventType"] == "CALCULATION"
        assert data["events"][0]["oldScore"] is None
        mock_trust_service.get_history.assert_awaited_once_with(test_user_id, limit=5)

    def test_history_limit_validated(self, client):
        response = client.get("/api/v1/trust-score/u1/history?limit=0")
        assert response.status_code == 422


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "horizon-risk"}
