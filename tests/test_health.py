"""Tests for health, root and metrics endpoints."""

import pytest
from httpx import AsyncClient

from clinic_portal.api.v1.endpoints import health


async def _up() -> bool:
    return True


async def _down() -> bool:
    return False


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_ping(client: AsyncClient):
    response = await client.get("/api/v1/ping")

    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert "message" in response.json()


@pytest.mark.asyncio
async def test_detailed_health_cache_disabled(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(health, "check_database_connection", _up)
    monkeypatch.setattr(health.settings, "cache_enabled", False)

    response = await client.get("/api/v1/health/detailed")

    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["cache"] == "disabled"


@pytest.mark.asyncio
async def test_detailed_health_cache_down_degrades(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(health, "check_database_connection", _up)
    monkeypatch.setattr(health, "check_redis_connection", _down)
    monkeypatch.setattr(health.settings, "cache_enabled", True)

    data = (await client.get("/api/v1/health/detailed")).json()

    assert data["status"] == "degraded"
    assert data["cache"] == "unhealthy"


@pytest.mark.asyncio
async def test_detailed_health_database_down(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(health, "check_database_connection", _down)
    monkeypatch.setattr(health.settings, "cache_enabled", False)

    data = (await client.get("/api/v1/health/detailed")).json()

    assert data["status"] == "unhealthy"
    assert data["database"] == "unhealthy"


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    await client.get("/api/v1/ping")

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text
