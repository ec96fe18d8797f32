"""Disk-backed JSON cache store.

One file per key at ``<cache_dir>/<key>.json`` holding
``{"timestamp": <epoch seconds>, "payload": <value>}``.  Every read goes to
disk, so removing the directory from outside the process is observed on the
next call.

Reads are best-effort: a missing, unreadable or malformed file is a miss.
Writes are best-effort too: failures are logged and swallowed so that a
successful remote fetch never turns into an error because persistence failed.
"""

import asyncio
import json
import logging
import shutil
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from launchcache.config import get_settings
from launchcache.services.keys import is_safe_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedValue:
    """A payload read from the store together with its age."""

    payload: Any
    age_seconds: int


class CacheStore:
    """Durable key -> entry storage in a single directory.

    Usage::

        store = CacheStore(tmp_path / "cache")
        await store.set("projects", [...])
        hit = await store.get("projects")  # CachedValue or None
    """

    def __init__(
        self, cache_dir: Path | str, *, clock: Callable[[], float] = time.time
    ) -> None:
        self._cache_dir = Path(cache_dir)
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def path_for(self, key: str) -> Path:
        return self._cache_dir / f"{key}.json"

    def _now(self) -> int:
        return int(self._clock())

    # -- reads -------------------------------------------------------------

    def _read(self, key: str) -> CachedValue | None:
        if not is_safe_key(key):
            logger.debug("Refusing to read unsafe cache key %r", key)
            return None
        path = self.path_for(key)
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.debug("Cache miss for '%s' (%s)", key, path)
            return None

        if not isinstance(document, dict):
            logger.debug("Cache file for '%s' is not an object", key)
            return None
        timestamp = document.get("timestamp")
        # bool is an int subclass but never a valid timestamp
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            logger.debug("Cache file for '%s' has no valid timestamp", key)
            return None

        age = max(0, self._now() - timestamp)
        return CachedValue(payload=document.get("payload"), age_seconds=age)

    async def get(self, key: str) -> CachedValue | None:
        """Return the cached payload and its age, or None on any miss."""
        return await asyncio.to_thread(self._read, key)

    async def get_fresh(self, key: str, max_age_seconds: float) -> Any | None:
        """Return the payload only if it is at most *max_age_seconds* old."""
        hit = await self.get(key)
        if hit is None or hit.age_seconds > max_age_seconds:
            return None
        return hit.payload

    # -- writes ------------------------------------------------------------

    def _write(self, key: str, payload: Any) -> bool:
        if not is_safe_key(key):
            logger.warning("Refusing to write unsafe cache key %r", key)
            return False
        path = self.path_for(key)
        try:
            text = json.dumps({"timestamp": self._now(), "payload": payload})
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not write cache file '%s': %s", path, e)
            return False
        logger.debug("Stored cache entry '%s'", key)
        return True

    async def set(self, key: str, payload: Any) -> bool:
        """Persist *payload* under *key*, replacing any prior entry.

        Returns whether the write landed; failures are never raised.
        """
        return await asyncio.to_thread(self._write, key, payload)

    def _remove_tree(self) -> None:
        if self._cache_dir.exists():
            shutil.rmtree(self._cache_dir)
            logger.info("Cleared cache directory %s", self._cache_dir)

    async def clear(self) -> None:
        """Remove the whole cache directory.

        Unlike reads and writes this propagates errors: it backs the
        user-invoked clear action, which must report failure.
        """
        await asyncio.to_thread(self._remove_tree)

    # -- read-through ------------------------------------------------------

    async def receive(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        max_age_seconds: float = 5 * 60,
    ) -> Any:
        """Return the cached payload if fresh enough, else fetch and store it.

        Fetch errors propagate to the caller; write errors do not.
        """
        cached = await self.get_fresh(key, max_age_seconds)
        if cached is not None:
            logger.debug("Using cached data for '%s'", key)
            return cached
        data = await fetcher()
        await self.set(key, data)
        return data


def default_store() -> CacheStore:
    """Build a store rooted at the configured cache directory."""
    return CacheStore(get_settings().cache_dir)
