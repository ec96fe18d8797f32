"""Cache inspection and administration models."""

from typing import Any, Literal

from pydantic import BaseModel


class CacheEntryInfo(BaseModel):
    """A cached entry as seen through the admin API."""

    key: str
    age_seconds: int
    freshness: Literal["fresh", "stale", "expired"]
    payload: Any = None


class ClearResult(BaseModel):
    """Response after clearing the cache."""

    status: str = "cleared"
