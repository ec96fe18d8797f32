"""Application configuration via environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from launchcache.services.freshness import (
    DEFAULT_INVALID_SECONDS,
    DEFAULT_REFETCH_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Host support storage; the cache lives in <support_path>/cache
    support_path: Path = Path.home() / ".local" / "share" / "launchcache"

    # Freshness thresholds (seconds)
    refetch_seconds: int = DEFAULT_REFETCH_SECONDS
    invalid_seconds: int = DEFAULT_INVALID_SECONDS

    # Remote API used by the bundled fetchers
    api_base_url: str = ""
    api_token: str = ""
    http_timeout: float = 15.0

    model_config = SettingsConfigDict(
        env_prefix="LAUNCHCACHE_", env_file=".env", extra="ignore"
    )

    @property
    def cache_dir(self) -> Path:
        return self.support_path / "cache"


@lru_cache
def get_settings() -> Settings:
    return Settings()
