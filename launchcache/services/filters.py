"""Payload filters applied to cached and freshly fetched data alike."""

import inspect
from collections.abc import Callable
from difflib import SequenceMatcher
from typing import Any, TypeVar

T = TypeVar("T")

# Returns the transformed value, or an awaitable resolving to it
Filter = Callable[[Any], Any]


async def apply_filter(filter_fn: Filter | None, value: T) -> T:
    """Run *filter_fn* on *value*, awaiting it if it is asynchronous."""
    if filter_fn is None:
        return value
    result = filter_fn(value)
    if inspect.isawaitable(result):
        result = await result
    return result


def chain(*filters: Filter | None) -> Filter:
    """Compose filters left to right; ``None`` entries are skipped."""

    async def _chained(value: Any) -> Any:
        for f in filters:
            value = await apply_filter(f, value)
        return value

    return _chained


def _lookup(item: Any, dotted_key: str) -> Any:
    value = item
    for part in dotted_key.split("."):
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
        if value is None:
            return None
    return value


def _haystack(item: Any, keys: list[str]) -> str:
    parts = (_lookup(item, k) for k in keys)
    return " ".join(str(p) for p in parts if p is not None).lower()


def search_filter(
    search: str | None, keys: list[str], *, limit: int = 50
) -> Callable[[list[Any]], list[Any]]:
    """Build a list filter matching *search* against the given item keys.

    Every whitespace-separated term must appear (case-insensitive) in the
    joined values of *keys*.  Matches are ranked by similarity between the
    search text and the item, best first.  An empty search keeps the original
    order.  At most *limit* items are returned.
    """
    needle = (search or "").strip().lower()
    terms = needle.split()

    def _filter(items: list[Any]) -> list[Any]:
        if not terms:
            return list(items)[:limit]

        scored: list[tuple[float, int, Any]] = []
        for index, item in enumerate(items):
            text = _haystack(item, keys)
            if not all(term in text for term in terms):
                continue
            score = SequenceMatcher(None, needle, text).ratio()
            scored.append((score, index, item))

        # Stable on ties: earlier items first
        scored.sort(key=lambda s: (-s[0], s[1]))
        return [item for _, _, item in scored[:limit]]

    return _filter
