"""
Tests for metrics endpoints.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from webhook_relay.api.main import app
from webhook_relay.message_queue import QueueStats
from webhook_relay.utils.metrics import metrics


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def mock_broker():
    """Broker with realistic stats."""
    broker = MagicMock()
    broker.get_stats.return_value = [
        QueueStats(name="orders", depth=3, capacity=10, subscribers=2, max_subscribers=5),
        QueueStats(name="events", depth=0, capacity=10, subscribers=0, max_subscribers=5),
    ]
    broker.running = True
    broker.supervisor.restarts = 1
    broker.supervisor.dispatcher.drained = 7
    broker.pool.size = 4
    broker.pool.pending = 0
    broker.pool.completed = 42
    broker.pool.errors = 0
    app.state.broker = broker
    yield broker
    del app.state.broker


class TestPrometheusMetricsEndpoint:
    """Tests for /metrics Prometheus endpoint."""

    def test_returns_prometheus_format(self, client, mock_broker):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "# HELP" in response.text
        assert "# TYPE" in response.text

    def test_includes_queue_gauges(self, client, mock_broker):
        content = client.get("/metrics").text

        assert 'relay_queue_depth{queue="orders"} 3' in content
        assert 'relay_queue_subscribers{queue="orders"} 2' in content
        assert 'relay_queue_depth{queue="events"} 0' in content

    def test_counts_requests(self, client, mock_broker):
        client.get("/health")

        content = client.get("/metrics").text

        assert 'relay_requests_total{status="200"}' in content
        assert metrics.request_duration.count(endpoint="/health") == 1


class TestQueueMetricsEndpoint:
    """Tests for /metrics/queues JSON endpoint."""

    def test_returns_queue_stats(self, client, mock_broker):
        response = client.get("/metrics/queues")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["queues"][0] == {
            "name": "orders",
            "depth": 3,
            "capacity": 10,
            "subscribers": 2,
            "max_subscribers": 5,
            "closed": False,
        }
        assert data["dispatcher"] == {"running": True, "restarts": 1, "drained": 7}
        assert data["delivery_pool"]["completed"] == 42
