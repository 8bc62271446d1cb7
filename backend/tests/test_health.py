"""
Tests for health and root endpoints.
"""
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from ielts_mock.core import settings


class TestHealth:
    async def test_health(self, async_client):
        response = await async_client.get("/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["service"] == "IELTS Mock API"
        assert data["environment"] == settings.ENV
        assert "timestamp" in data

    async def test_health_degraded_when_database_unreachable(
        self, async_client, async_db_session
    ):
        with patch.object(
            async_db_session,
            "execute",
            side_effect=OperationalError("SELECT 1", {}, Exception("refused")),
        ):
            response = await async_client.get("/v1/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["database"] == "unavailable"

    async def test_ping(self, async_client):
        response = await async_client.get("/v1/ping")
        assert response.json() == {"message": "pong"}

    async def test_root(self, async_client):
        response = await async_client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/v1/docs"
