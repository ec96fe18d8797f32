"""Tests for cache key derivation."""

from decimal import Decimal

import pytest

from launchcache.services.keys import hash_record, is_safe_key


def test_same_record_same_key():
    assert hash_record({"a": 1, "b": True}, "projects") == hash_record(
        {"b": True, "a": 1}, "projects"
    )


def test_different_records_different_keys():
    assert hash_record({"starred": True}, "projects") != hash_record(
        {"starred": False}, "projects"
    )


def test_namespace_prefix():
    key = hash_record({"membership": True}, "projects")
    assert key.startswith("projects_")
    assert len(key) == len("projects_") + 64


def test_different_namespaces_do_not_collide():
    assert hash_record({}, "projects") != hash_record({}, "todos")


def test_derived_keys_are_safe():
    assert is_safe_key(hash_record({"path": "a/b"}, "files"))


def test_unsafe_keys():
    assert not is_safe_key("")
    assert not is_safe_key("..")
    assert not is_safe_key("a/b")
    assert not is_safe_key("a\\b")


def test_non_json_value_raises():
    with pytest.raises(TypeError):
        hash_record({"id": Decimal("1")}, "projects")


def test_set_value_raises():
    with pytest.raises(TypeError):
        hash_record({"labels": {"bug", "ui"}}, "issues")


def test_string_and_number_do_not_collide():
    assert hash_record({"id": 1}, "projects") != hash_record({"id": "1"}, "projects")
