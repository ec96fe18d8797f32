"""Shared fixtures for launchcache tests."""

import pytest

from launchcache.services.cache_store import CacheStore


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons between tests."""
    yield

    # 1. Settings LRU cache
    from launchcache.config import get_settings

    get_settings.cache_clear()

    # 2. HTTP client singleton
    import launchcache.services.http_client as http_mod

    http_mod._client = None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    return CacheStore(tmp_path / "cache", clock=clock)


@pytest.fixture
def mock_settings(monkeypatch, tmp_path):
    """Provide a Settings object with safe test defaults."""
    from launchcache.config import Settings, get_settings

    test_settings = Settings(
        support_path=tmp_path / "support",
        api_base_url="https://api.test/v4",
        api_token="test-token",
        refetch_seconds=300,
        invalid_seconds=259200,
    )

    get_settings.cache_clear()
    monkeypatch.setattr("launchcache.config.get_settings", lambda: test_settings)

    # Patch get_settings in all modules that import it directly
    for mod_path in [
        "launchcache.services.cache_store",
        "launchcache.services.http_client",
        "launchcache.services.subscription",
        "launchcache.routers.cache",
        "launchcache.main",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings
