"""Cache key derivation."""

import hashlib
import json
from typing import Any


def hash_record(record: Any, prefix: str) -> str:
    """Derive a cache key from a namespace and a request's parameter set.

    The record is serialized as canonical JSON (sorted keys, compact
    separators) so that logically identical parameter sets produce the same
    key regardless of dict ordering.  Values JSON cannot represent (sets,
    Decimals, datetimes) raise TypeError; convert them to JSON types first.
    """
    canonical = json.dumps(record, sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{prefix}_{digest}"


def is_safe_key(key: str) -> bool:
    """Return True if *key* can be used as a file name inside the cache dir."""
    if not key or key in (".", ".."):
        return False
    return "/" not in key and "\\" not in key and "\x00" not in key
