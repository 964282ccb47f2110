"""
Tests for health, readiness, and metrics endpoints.

These tests verify the observability endpoints work correctly:
- /health: Liveness probe
- /ready: Readiness probe with a database check
- /metrics: Prometheus-format metrics
- /: Root endpoint with API info
"""
import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routers import health_router
from core.logging_config import JSONFormatter, clear_request_id, set_request_id
from core.middleware import LoggingMiddleware, MetricsCollector, RequestMetrics
from core.datetime_utils import utc_now


# =============================================================================
# ROOT ENDPOINT TESTS
# =============================================================================

def test_root_endpoint(client):
    """Test the root endpoint returns API info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Glucose Insight Service"
    assert data["version"] == "1.0.0"
    assert "health" in data
    assert "ready" in data
    assert "metrics" in data


# =============================================================================
# HEALTH ENDPOINT TESTS (LIVENESS)
# =============================================================================

def test_health_endpoint(client):
    """Test the /health liveness endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["timestamp"].endswith("Z")


# =============================================================================
# READINESS ENDPOINT TESTS
# =============================================================================

def test_ready_endpoint(client):
    """Test the /ready readiness endpoint against the test database."""
    response = client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert [d["name"] for d in data["dependencies"]] == ["database"]
    assert data["dependencies"][0]["status"] == "ok"


def test_ready_endpoint_database_down(test_app, temp_db):
    """A database path that cannot be opened makes the service not ready."""
    temp_db.db_path = "/nonexistent-dir/glucose.db"
    response = TestClient(test_app).get("/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["dependencies"][0]["status"] == "unavailable"


# =============================================================================
# METRICS ENDPOINT TESTS
# =============================================================================

def test_metrics_endpoint(client):
    """Test the /metrics Prometheus endpoint."""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers.get("content-type", "")
    content = response.text
    assert "http_requests_total" in content
    assert "http_request_duration_ms" in content
    assert 'analysis_runs_total{result="success"}' in content


def test_metrics_json_endpoint(client):
    """Test the /metrics/json endpoint."""
    response = client.get("/metrics/json")
    assert response.status_code == 200
    data = response.json()
    assert "http_requests_total" in data
    assert "http_request_duration_ms_p95" in data
    assert "analysis_runs_success_total" in data
    assert "analysis_runs_failure_total" in data


def test_metrics_collector_counts_by_status():
    collector = MetricsCollector()
    for status_code in (200, 201, 404, 503):
        collector.record_request(RequestMetrics(
            timestamp=utc_now(),
            method="GET",
            path="/api/readings",
            status_code=status_code,
            duration_ms=5.0,
            request_id="abc"
        ))
    collector.record_analysis_result(success=False)

    summary = collector.get_summary()
    assert summary["http_requests_total"] == 4
    assert summary["http_requests_2xx_total"] == 2
    assert summary["http_requests_4xx_total"] == 1
    assert summary["http_requests_5xx_total"] == 1
    assert summary["http_request_duration_ms_p50"] == 5.0
    assert summary["analysis_runs_failure_total"] == 1


# =============================================================================
# MIDDLEWARE & LOGGING
# =============================================================================

def test_logging_middleware_adds_request_id(temp_db):
    from core import dependencies as deps

    app = FastAPI()
    app.add_middleware(LoggingMiddleware)
    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.include_router(health_router)

    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 8


def test_json_formatter_includes_request_id_and_extra():
    record = logging.LogRecord(
        name="services.analysis_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Analysis complete",
        args=(),
        exc_info=None
    )
    record.patient_id = "p1"

    set_request_id("req12345")
    try:
        payload = json.loads(JSONFormatter().format(record))
    finally:
        clear_request_id()

    assert payload["message"] == "Analysis complete"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req12345"
    assert payload["extra"] == {"patient_id": "p1"}
