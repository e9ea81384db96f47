"""Integration tests for /health, /healthz, /metrics and / endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from itinerary_backend.app.main import app
from itinerary_backend.app.utils.metrics import PrometheusTripMetrics


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("itinerary_backend.app.api.routes.health.check_db")
    def test_healthz_returns_200_when_db_ok(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 200 when the database answers."""
        mock_check_db.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["db"] == "ok"

    @patch("itinerary_backend.app.api.routes.health.check_db")
    def test_healthz_returns_503_when_db_fails(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "error: OperationalError")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "error: OperationalError"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_exposes_trip_metrics(self, client: TestClient) -> None:
        """Recorded batches show up in the Prometheus exposition."""
        metrics = PrometheusTripMetrics()
        metrics.record_batch("applied", 12.5)
        metrics.inc_action("CREATE_DAY")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        body = response.text
        assert 'trip_action_batches_total{outcome="applied"}' in body
        assert 'trip_actions_applied_total{action_type="CREATE_DAY"}' in body
        assert "trip_apply_latency_ms_bucket" in body


def test_root_banner(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Itinerary Draft API"
