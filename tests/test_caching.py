"""Tests for the Redis identity cache."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import redis
from httpx import AsyncClient

from clinic_portal.core import redis_client
from clinic_portal.core.redis_client import CacheManager, get_cache_manager
from clinic_portal.core.security import Role
from clinic_portal.main import app
from clinic_portal.services.authorization import Subject
from clinic_portal.services.identity_service import IdentityService


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    result = cache_manager.get_json("test_key")
    assert result is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"id": "abc", "is_verified": true}'
    result = cache_manager.get_json("test_key")
    assert result == {"id": "abc", "is_verified": True}
    mock_redis.get.assert_called_once_with("test_key")


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    test_data = {"id": "abc", "role": "patient"}

    # Test without TTL
    result = cache_manager.set_json("test_key", test_data)
    assert result is True
    mock_redis.set.assert_called_once()

    # Test with TTL
    mock_redis.reset_mock()
    result = cache_manager.set_json("test_key", test_data, ttl=300)
    assert result is True
    mock_redis.setex.assert_called_once()


def test_cache_manager_delete():
    """Test CacheManager delete method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    result = cache_manager.delete("test_key")
    assert result is True
    mock_redis.delete.assert_called_once_with("test_key")


def test_cache_failures_degrade_to_miss():
    """A broken Redis never breaks the request path."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("down")
    mock_redis.setex.side_effect = redis.ConnectionError("down")
    mock_redis.delete.side_effect = redis.ConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("test_key") is None
    assert cache_manager.set_json("test_key", {"a": 1}, ttl=10) is False
    assert cache_manager.delete("test_key") is False


def test_get_cache_manager_disabled(monkeypatch):
    monkeypatch.setattr(redis_client.settings, "cache_enabled", False)
    assert get_cache_manager() is None


def test_get_cache_manager_enabled(monkeypatch):
    fake_client = MagicMock()
    monkeypatch.setattr(redis_client.settings, "cache_enabled", True)
    monkeypatch.setattr(redis_client, "get_redis_client", lambda: fake_client)

    cache_manager = get_cache_manager()

    assert isinstance(cache_manager, CacheManager)
    assert cache_manager.redis is fake_client


@pytest.fixture
def memory_cache() -> CacheManager:
    """CacheManager over a dict-backed Redis double."""
    store: dict[str, str] = {}
    mock_redis = MagicMock()
    mock_redis.get.side_effect = store.get
    mock_redis.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)
    mock_redis.set.side_effect = store.__setitem__
    mock_redis.delete.side_effect = lambda key: store.pop(key, None)
    cache_manager = CacheManager(redis_client=mock_redis)
    cache_manager.store = store  # type: ignore[attr-defined]
    return cache_manager


@pytest.mark.asyncio
async def test_identity_lookup_is_cached(db_session, patient, memory_cache):
    """Second lookup is served from the cache."""
    service = IdentityService(memory_cache)

    first = await service.get_active_identity(db_session, Role.PATIENT, patient["id"])
    second = await service.get_active_identity(db_session, Role.PATIENT, patient["id"])

    assert first == second
    assert first == {"id": str(patient["id"]), "role": "patient", "is_verified": True}
    assert f"identity:patient:{patient['id']}" in memory_cache.store
    memory_cache.redis.setex.assert_called_once()


@pytest.mark.asyncio
async def test_identity_cache_invalidated_on_delete(db_session, patient, admin, memory_cache):
    """Soft-deleting an identity drops its cached session entry."""
    service = IdentityService(memory_cache)
    await service.get_active_identity(db_session, Role.PATIENT, patient["id"])
    assert f"identity:patient:{patient['id']}" in memory_cache.store

    await service.soft_delete_identity(
        db_session,
        Subject(id=admin["id"], role=Role.ADMIN),
        Role.PATIENT,
        patient["id"],
        datetime(2025, 3, 2, tzinfo=UTC),
    )

    assert f"identity:patient:{patient['id']}" not in memory_cache.store
    assert await service.get_active_identity(db_session, Role.PATIENT, patient["id"]) is None


@pytest.mark.asyncio
async def test_deleted_identity_session_rejected_through_cache(
    client: AsyncClient,
    patient,
    patient_headers,
    admin_headers,
    memory_cache,
):
    """A session cached before deletion stops working once the identity is deleted."""
    app.dependency_overrides[get_cache_manager] = lambda: memory_cache

    response = await client.get("/api/v1/appointments", headers=patient_headers)
    assert response.status_code == 200

    response = await client.delete(f"/api/v1/patients/{patient['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/appointments", headers=patient_headers)
    assert response.status_code == 401
