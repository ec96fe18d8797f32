"""Cache administration endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from launchcache.config import get_settings
from launchcache.models.cache import CacheEntryInfo, ClearResult
from launchcache.services.cache_store import CacheStore, default_store
from launchcache.services.freshness import classify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


def get_store() -> CacheStore:
    return default_store()


@router.delete("", response_model=ClearResult)
async def clear_cache(store: CacheStore = Depends(get_store)):
    """Delete the entire cache directory."""
    try:
        await store.clear()
    except OSError as e:
        logger.error("Failed to clear cache at %s: %s", store.cache_dir, e)
        raise HTTPException(status_code=500, detail="Could not clear cache") from e
    return ClearResult()


@router.get("/{key}", response_model=CacheEntryInfo)
async def get_cache_entry(key: str, store: CacheStore = Depends(get_store)):
    """Inspect a single cache entry and its freshness."""
    hit = await store.get(key)
    if hit is None:
        raise HTTPException(status_code=404, detail="Cache entry not found")
    settings = get_settings()
    freshness = classify(
        hit.age_seconds, settings.refetch_seconds, settings.invalid_seconds
    )
    return CacheEntryInfo(
        key=key,
        age_seconds=hit.age_seconds,
        freshness=freshness.name.lower(),
        payload=hit.payload,
    )
