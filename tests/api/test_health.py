"""
Tests for health and readiness endpoints.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from webhook_relay import __version__
from webhook_relay.api.main import app, create_app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def mock_broker():
    broker = MagicMock()
    broker.running = True
    broker.registry.names = ("orders",)
    broker.supervisor.restarts = 0
    app.state.broker = broker
    yield broker
    del app.state.broker


class TestHealthEndpoints:

    def test_ping(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.text == "."

    def test_health_returns_200(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "webhook-relay"
        assert data["version"] == __version__

    def test_root_lists_endpoints(self, client):
        data = client.get("/").json()

        assert data["service"] == "webhook-relay"
        assert "/v1/queues/{queue_name}/messages (POST)" in data["endpoints"].values()


class TestReadinessEndpoint:

    def test_ready_when_dispatcher_running(self, client, mock_broker):
        response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["queues"] == ["orders"]

    def test_not_ready_when_dispatcher_stopped(self, client, mock_broker):
        mock_broker.running = False

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_not_ready_before_startup(self, client):
        response = client.get("/ready")

        assert response.status_code == 503

    def test_ready_with_lifespan(self, make_settings, recorder):
        with TestClient(create_app(make_settings(), http_client=recorder.client())) as client:
            response = client.get("/ready")

        assert response.status_code == 200


class TestRequestLogging:

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]
