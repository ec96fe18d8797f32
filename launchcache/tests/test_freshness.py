"""Tests for freshness classification: pure logic, no mocks needed."""

import pytest

from launchcache.services.freshness import (
    DEFAULT_INVALID_SECONDS,
    DEFAULT_REFETCH_SECONDS,
    Freshness,
    classify,
)


def test_defaults():
    assert DEFAULT_REFETCH_SECONDS == 300
    assert DEFAULT_INVALID_SECONDS == 259200


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (0, Freshness.FRESH),
        (299, Freshness.FRESH),
        (300, Freshness.STALE),
        (400, Freshness.STALE),
        (259199, Freshness.STALE),
        (259200, Freshness.EXPIRED),
        (300000, Freshness.EXPIRED),
    ],
)
def test_threshold_boundaries(age, expected):
    assert classify(age, 300, 259200) is expected


def test_missing_entry_is_expired():
    assert classify(None, 300, 259200) is Freshness.EXPIRED


def test_severity_never_decreases_with_age():
    previous = Freshness.FRESH
    for age in range(0, 1000, 7):
        current = classify(age, 100, 500)
        assert current >= previous
        previous = current


def test_force_refetch_makes_fresh_entry_stale():
    assert classify(10, 300, 259200, force_refetch=True) is Freshness.STALE
    assert classify(0, 300, 259200, force_refetch=True) is Freshness.STALE


def test_force_refetch_does_not_revive_expired_entry():
    assert classify(300000, 300, 259200, force_refetch=True) is Freshness.EXPIRED
