"""Tests for the cache administration endpoints and health check."""

from httpx import ASGITransport, AsyncClient

from launchcache.services.cache_store import CacheStore


def _client():
    from launchcache.main import app

    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def test_clear_removes_cache_directory(mock_settings):
    store = CacheStore(mock_settings.cache_dir)
    await store.set("projects", [1, 2])

    async with _client() as client:
        response = await client.delete("/api/launchcache/cache")

    assert response.status_code == 200
    assert response.json() == {"status": "cleared"}
    assert not mock_settings.cache_dir.exists()


async def test_clear_when_nothing_cached(mock_settings):
    async with _client() as client:
        response = await client.delete("/api/launchcache/cache")
    assert response.status_code == 200


async def test_clear_failure_returns_500(mock_settings, mocker):
    mocker.patch.object(CacheStore, "clear", side_effect=PermissionError("denied"))

    async with _client() as client:
        response = await client.delete("/api/launchcache/cache")

    assert response.status_code == 500
    assert response.json()["detail"] == "Could not clear cache"


async def test_get_entry(mock_settings):
    store = CacheStore(mock_settings.cache_dir)
    await store.set("todos", [{"id": 1}])

    async with _client() as client:
        response = await client.get("/api/launchcache/cache/todos")

    assert response.status_code == 200
    data = response.json()
    assert data["key"] == "todos"
    assert data["payload"] == [{"id": 1}]
    assert data["freshness"] == "fresh"
    assert data["age_seconds"] >= 0


async def test_get_missing_entry_returns_404(mock_settings):
    async with _client() as client:
        response = await client.get("/api/launchcache/cache/nothing")
    assert response.status_code == 404


async def test_health_ok(mock_settings):
    async with _client() as client:
        response = await client.get("/api/launchcache/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"] == {"cache_dir": "ok"}


async def test_health_degraded_when_cache_dir_unusable(mock_settings):
    mock_settings.support_path.parent.mkdir(parents=True, exist_ok=True)
    mock_settings.support_path.write_text("not a directory", encoding="utf-8")

    async with _client() as client:
        response = await client.get("/api/launchcache/health")

    assert response.json()["status"] == "degraded"
