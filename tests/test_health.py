"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authsession import __version__
from authsession.api import health


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_basic_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__

    @pytest.mark.asyncio
    async def test_liveness_probe(self, client: AsyncClient):
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    @pytest.mark.asyncio
    async def test_readiness_probe(
        self, client: AsyncClient, db_engine, mock_redis, monkeypatch: pytest.MonkeyPatch
    ):
        """Readiness reports each backing service."""
        monkeypatch.setattr(
            health,
            "async_session_maker",
            async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False),
        )

        async def fake_get_redis():
            return mock_redis

        monkeypatch.setattr(health, "get_redis", fake_get_redis)

        response = await client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["redis"] == "healthy"

    @pytest.mark.asyncio
    async def test_readiness_probe_redis_down(
        self, client: AsyncClient, db_engine, mock_redis, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(
            health,
            "async_session_maker",
            async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False),
        )
        mock_redis.ping.side_effect = ConnectionError("refused")

        async def fake_get_redis():
            return mock_redis

        monkeypatch.setattr(health, "get_redis", fake_get_redis)

        response = await client.get("/health/ready")

        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["database"] == "healthy"
        assert data["redis"] == "unhealthy: ConnectionError"

    @pytest.mark.asyncio
    async def test_root_endpoint(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "name" in data
        assert data["version"] == __version__
        assert data["health"] == "/health"

    @pytest.mark.asyncio
    async def test_readiness_without_redis_client(
        self, client: AsyncClient, db_engine, monkeypatch: pytest.MonkeyPatch
    ):
        """No client could be built, so there is nothing to ping."""
        monkeypatch.setattr(
            health,
            "async_session_maker",
            async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False),
        )

        async def no_redis():
            return None

        monkeypatch.setattr(health, "get_redis", no_redis)

        response = await client.get("/health/ready")

        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["redis"] == "unhealthy: unavailable"
