from unittest.mock import MagicMock, patch

from django.db import DatabaseError

from modules.core.models import EventStatus, OutboxEvent


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_outbox_backlog(self, client):
        OutboxEvent.objects.create(
            event_type="OrderCreated", aggregate_id="a-1", payload={}, topic="orders"
        )
        OutboxEvent.objects.create(
            event_type="OrderCreated",
            aggregate_id="a-2",
            topic="orders",
            payload={},
            status=EventStatus.PUBLISHED,
        )

        outbox = client.get("/health").json()["services"]["outbox"]

        assert outbox["pending"] == 1
        assert outbox["oldest_age_s"] is not None

    def test_empty_outbox(self, client):
        outbox = client.get("/health").json()["services"]["outbox"]
        assert outbox == {"pending": 0, "oldest_age_s": None}

    def test_health_check_reports_database_down(self, client):
        broken = MagicMock()
        broken.__getitem__.side_effect = DatabaseError("connection refused")
        with patch("modules.core.views.connections", broken):
            response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"] == {"database": {"status": "down"}}
