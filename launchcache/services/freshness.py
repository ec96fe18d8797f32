"""Freshness classification for cached entries.

Given an entry's age and two thresholds, decide whether the cached payload
can be served as-is, served while a background refresh runs, or must not be
served at all.
"""

from enum import IntEnum

DEFAULT_REFETCH_SECONDS = 5 * 60
DEFAULT_INVALID_SECONDS = 3 * 24 * 60 * 60


class Freshness(IntEnum):
    """Classification ordered by severity (higher = older)."""

    FRESH = 0
    STALE = 1
    EXPIRED = 2


def classify(
    age_seconds: float | None,
    refetch_threshold_seconds: float = DEFAULT_REFETCH_SECONDS,
    invalid_threshold_seconds: float = DEFAULT_INVALID_SECONDS,
    *,
    force_refetch: bool = False,
) -> Freshness:
    """Classify an entry age against the refetch and invalid thresholds.

    ``age_seconds=None`` means there is no entry, which is handled like an
    expired one.  ``force_refetch`` treats the refetch threshold as 0 so any
    servable entry is at least STALE.
    """
    if age_seconds is None or age_seconds >= invalid_threshold_seconds:
        return Freshness.EXPIRED
    refetch = 0 if force_refetch else refetch_threshold_seconds
    if age_seconds >= refetch:
        return Freshness.STALE
    return Freshness.FRESH
