"""Cache-backed subscription controller (stale-while-revalidate).

A ``CacheSubscription`` ties one consumer to the result of an async fetch,
backed by the disk cache:

- no entry / expired entry: fetch synchronously, persist, expose
- fresh entry: expose the cached payload, no fetch
- stale entry: expose the cached payload, refresh in the background

Each activation gets its own token.  Deactivating (or re-activating) marks
the previous token torn down; any work still in flight for it runs to
completion and still writes to the store, but no longer touches the exposed
state.  Errors never escape: they end up in ``state.error``.

There is deliberately no single-flight deduplication: overlapping
activations for the same key each fetch and write, last completed write wins.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from launchcache.config import get_settings
from launchcache.services.cache_store import CacheStore
from launchcache.services.filters import Filter, apply_filter
from launchcache.services.freshness import Freshness, classify
from launchcache.services.http_client import Fetcher

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SERVING_FRESH = "serving_fresh"
    SERVING_STALE_REFRESHING = "serving_stale_refreshing"
    ERROR = "error"
    TORN_DOWN = "torn_down"


@dataclass(frozen=True)
class SubscriptionConfig:
    """What to subscribe to.  Immutable for the lifetime of one activation.

    Thresholds left as None fall back to ``Settings.refetch_seconds`` and
    ``Settings.invalid_seconds``, read when the activation runs.
    """

    key: str
    fetcher: Fetcher
    filter: Filter | None = None
    refetch_threshold_seconds: float | None = None
    invalid_threshold_seconds: float | None = None

    def thresholds(self) -> tuple[float, float]:
        """Return (refetch, invalid) seconds with Settings filling the gaps."""
        settings = get_settings()
        refetch = self.refetch_threshold_seconds
        invalid = self.invalid_threshold_seconds
        return (
            settings.refetch_seconds if refetch is None else refetch,
            settings.invalid_seconds if invalid is None else invalid,
        )


@dataclass(frozen=True)
class SubscriptionState:
    """Snapshot of what the consumer sees."""

    data: Any = None
    error: str | None = None
    is_loading: bool = False
    phase: Phase = Phase.IDLE


Listener = Callable[[SubscriptionState], None]


class _Activation:
    """Cancellation token for one activation."""

    __slots__ = ("config", "force", "torn_down")

    def __init__(self, config: SubscriptionConfig, force: bool) -> None:
        self.config = config
        self.force = force
        self.torn_down = False


def error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class CacheSubscription:
    """Drive one consumer's view of cache-backed data.

    Usage::

        sub = CacheSubscription(store, SubscriptionConfig("projects", fetch))
        unlisten = sub.listen(render)
        await sub.activate()
        ...
        await sub.force_refetch()
        sub.deactivate()
    """

    def __init__(
        self,
        store: CacheStore,
        config: SubscriptionConfig,
        *,
        deps: Sequence[Any] = (),
    ) -> None:
        self._store = store
        self._config = config
        self._deps = tuple(deps)
        self._state = SubscriptionState()
        self._current: _Activation | None = None
        self._force_next = False
        self._listeners: list[Listener] = []
        # Strong references so background refreshes are not garbage collected
        self._background: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def config(self) -> SubscriptionConfig:
        return self._config

    @property
    def deps(self) -> tuple[Any, ...]:
        return self._deps

    @property
    def is_active(self) -> bool:
        return self._current is not None

    def listen(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for state snapshots; returns an unsubscribe."""
        self._listeners.append(listener)

        def _unlisten() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unlisten

    # -- lifecycle ---------------------------------------------------------

    async def activate(self) -> SubscriptionState:
        """Run one activation and return the state once it has settled.

        For stale entries this returns while the background refresh is still
        running; use ``wait_background`` to wait for it.
        """
        if self._current is not None:
            self._current.torn_down = True
        activation = _Activation(self._config, force=self._force_next)
        self._force_next = False
        self._current = activation
        await self._run(activation)
        return self._state

    async def update(
        self, deps: Sequence[Any], config: SubscriptionConfig | None = None
    ) -> bool:
        """Re-activate if *deps* changed since the last activation.

        A new *config* is always recorded but only takes effect on the next
        activation.  Returns whether an activation ran.
        """
        if config is not None:
            self._config = config
        deps = tuple(deps)
        if self._current is not None and deps == self._deps:
            return False
        self._deps = deps
        await self.activate()
        return True

    async def force_refetch(self) -> SubscriptionState:
        """Re-activate, scheduling a refresh regardless of entry age."""
        self._force_next = True
        return await self.activate()

    def deactivate(self) -> None:
        """Stop exposing state.  In-flight fetches and writes still complete.

        Listeners stay registered, so a later ``activate`` notifies them again;
        use the callable returned by ``listen`` to unsubscribe.
        """
        if self._current is not None:
            self._current.torn_down = True
            self._current = None
        self._state = replace(self._state, is_loading=False, phase=Phase.TORN_DOWN)

    async def wait_background(self) -> None:
        """Wait until every background refresh started so far has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -- internals ---------------------------------------------------------

    def _expose(self, activation: _Activation, **changes: Any) -> bool:
        if activation.torn_down:
            return False
        self._state = replace(self._state, **changes)
        snapshot = self._state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Subscription listener failed")
        return True

    async def _run(self, activation: _Activation) -> None:
        cfg = activation.config
        self._expose(activation, error=None, phase=Phase.LOADING)

        try:
            cached = await self._store.get(cfg.key)
            refetch_seconds, invalid_seconds = cfg.thresholds()
            freshness = classify(
                cached.age_seconds if cached is not None else None,
                refetch_seconds,
                invalid_seconds,
                force_refetch=activation.force,
            )
            if activation.force:
                logger.debug("Force refetch for '%s'", cfg.key)

            if cached is None or freshness is Freshness.EXPIRED:
                logger.debug("No usable cache data for '%s', fetching", cfg.key)
                self._expose(activation, is_loading=True)
                data = await cfg.fetcher()
                await self._store.set(cfg.key, data)
                filtered = await apply_filter(cfg.filter, data)
                self._expose(
                    activation,
                    data=filtered,
                    is_loading=False,
                    phase=Phase.SERVING_FRESH,
                )
                return

            filtered = await apply_filter(cfg.filter, cached.payload)
            if freshness is Freshness.FRESH:
                self._expose(
                    activation,
                    data=filtered,
                    is_loading=False,
                    phase=Phase.SERVING_FRESH,
                )
                return

            logger.debug(
                "Cache for '%s' is %ds old, refreshing in background",
                cfg.key,
                cached.age_seconds,
            )
            if self._expose(
                activation,
                data=filtered,
                is_loading=False,
                phase=Phase.SERVING_STALE_REFRESHING,
            ):
                self._spawn_refresh(activation)
        except Exception as e:
            logger.warning("Fetching '%s' failed: %s", cfg.key, e)
            self._expose(
                activation,
                error=error_message(e),
                is_loading=False,
                phase=Phase.ERROR,
            )

    def _spawn_refresh(self, activation: _Activation) -> None:
        task = asyncio.create_task(self._refresh(activation))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh(self, activation: _Activation) -> None:
        cfg = activation.config
        try:
            data = await cfg.fetcher()
            await self._store.set(cfg.key, data)
            filtered = await apply_filter(cfg.filter, data)
        except Exception as e:
            logger.warning("Background refresh of '%s' failed: %s", cfg.key, e)
            # Keep the stale data on screen
            self._expose(activation, error=error_message(e), phase=Phase.ERROR)
            return
        self._expose(activation, data=filtered, phase=Phase.SERVING_FRESH)
