"""Tests for health check endpoints."""

from datetime import datetime

from tests.consts import API_BASE
from tests.consts import PERSONS_API_BASE_URL


def test_health_check(client):
    """Test basic health check endpoint."""
    response = client.get(f"{API_BASE}/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "healthy"
    assert data["service"] == "Persons Console"
    assert data["version"] == "v1"
    assert data["persons_api_base_url"] == PERSONS_API_BASE_URL

    # Verify timestamp is a valid ISO format
    datetime.fromisoformat(data["timestamp"])


def test_liveness_check(client):
    """Test liveness check endpoint."""
    response = client.get(f"{API_BASE}/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_health_does_not_call_persons_api(client, persons_backend):
    """Test the health check is served without reaching the persons API."""
    calls = len(persons_backend.calls)

    client.get(f"{API_BASE}/health")

    assert len(persons_backend.calls) == calls


def test_request_id_echoed(client):
    """Test the request id header is propagated to the response."""
    response = client.get(f"{API_BASE}/health/live", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_generated(client):
    """Test a request id is generated when the caller sends none."""
    response = client.get(f"{API_BASE}/health/live")

    assert len(response.headers["X-Request-ID"]) == 36


def test_openapi(client):
    """Test the OpenAPI schema uses tag-prefixed operation ids."""
    response = client.get("/openapi.json")

    assert response.status_code == 200
    operation_ids = {
        operation["operationId"] for path in response.json()["paths"].values() for operation in path.values()
    }
    assert "Health-health_check" in operation_ids
    assert "List View-get_view" in operation_ids
