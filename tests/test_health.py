from fastapi import status
from fastapi.testclient import TestClient

from hrms.database import Database
from hrms.main import create_app


def test_health_check(client):
    """Test the /health endpoint returns 200 and up status."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "up"
    assert "version" in data
    assert "timestamp" in data


def test_readiness_check(client):
    """Test the /readiness endpoint returns 200 and database status."""
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ready"
    assert data["components"]["database"] == "connected"


def test_readiness_before_connect():
    """A database handle that was never connected is reported as not ready."""
    client = TestClient(create_app(Database("sqlite://")))
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json() == {"status": "error", "message": "Service not ready"}


def test_lifespan_connects_and_disconnects():
    """Startup connects the handle and emits the schema; shutdown disposes it."""
    database = Database("sqlite://")
    with TestClient(create_app(database)) as client:
        assert database.is_connected
        assert client.get("/readiness").status_code == status.HTTP_200_OK
    assert not database.is_connected


def test_root_endpoint(client):
    """Test the API root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "HRMS Leave API" in response.json()["message"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in response.headers


def test_request_id_is_generated(client):
    response = client.get("/health")
    assert response.headers.get("X-Request-ID")


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["status"] == "error"
