"""Tests for health check endpoint"""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from deepwiki_mcp.main import app


client = TestClient(app)


def test_health_check_healthy():
    """Test health check when the database is reachable"""
    with patch('deepwiki_mcp.api.v1.health.check_database', new_callable=AsyncMock, return_value=True):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"database": True}
        assert data["background"]["usage_log_writer"] is False


def test_health_check_unhealthy():
    """Test health check when the database is down"""
    with patch('deepwiki_mcp.api.v1.health.check_database', new_callable=AsyncMock, return_value=False):
        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["database"] is False


def test_health_reports_background_workers():
    """Test that the usage log writer and aggregator are reported"""
    writer = MagicMock(is_running=True, pending=3)
    aggregator = MagicMock(is_running=True)
    app.state.usage_log_writer = writer
    app.state.statistics_aggregator = aggregator
    try:
        with patch('deepwiki_mcp.api.v1.health.check_database', new_callable=AsyncMock, return_value=True):
            response = client.get("/health")
    finally:
        del app.state.usage_log_writer
        del app.state.statistics_aggregator

    background = response.json()["background"]
    assert background == {
        "usage_log_writer": True,
        "usage_log_queue": 3,
        "statistics_aggregator": True,
    }


def test_metrics_endpoint():
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_root_endpoint():
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["mcp"] == "/api/mcp/{owner}/{repo}"
