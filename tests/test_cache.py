# tests/test_cache.py

"""
Tests for the data access layer's read cache.
"""

import pytest
from core.cache import CachePolicy, DataCache, DEFAULT_CACHE_DURATION_MS


@pytest.fixture
def cache(fake_clock):
    return DataCache(CachePolicy(duration_ms=DEFAULT_CACHE_DURATION_MS, clock=fake_clock))


def test_default_duration_is_five_minutes():
    assert DEFAULT_CACHE_DURATION_MS == 300_000
    assert CachePolicy().duration_ms == 300_000


def test_set_and_get(cache):
    cache.set("requests", [{"id": "r1"}])
    assert cache.get("requests") == [{"id": "r1"}]
    assert cache.is_valid("requests")


def test_empty_slot_is_invalid(cache):
    assert cache.get("categories") is None
    assert not cache.is_valid("categories")
    assert cache.last_fetch("categories") is None


def test_entry_expires_at_duration(cache, fake_clock):
    cache.set("users", ["u1"])

    fake_clock.advance(DEFAULT_CACHE_DURATION_MS - 1)
    assert cache.get("users") == ["u1"]

    # valid only while now - last_fetch < duration
    fake_clock.advance(1)
    assert cache.get("users") is None


def test_set_refreshes_timestamp(cache, fake_clock):
    cache.set("requests", [])
    fake_clock.advance(200_000)
    cache.set("requests", ["fresh"])
    fake_clock.advance(200_000)

    assert cache.get("requests") == ["fresh"]
    assert cache.last_fetch("requests") == 200_000


def test_clear_single_key(cache):
    cache.set("requests", ["r"])
    cache.set("categories", ["c"])

    cache.clear("requests")

    assert cache.get("requests") is None
    assert cache.get("categories") == ["c"]


def test_clear_all(cache):
    cache.set("requests", ["r"])
    cache.set("shortlists", ["s"])

    cache.clear()

    assert cache.get("requests") is None
    assert cache.get("shortlists") is None


def test_unknown_key_rejected(cache):
    with pytest.raises(KeyError):
        cache.set("buildings", [])
    with pytest.raises(KeyError):
        cache.get("buildings")


def test_empty_list_is_a_hit(cache):
    cache.set("shortlists", [])
    assert cache.get("shortlists") == []


def test_callers_cannot_reshape_the_cached_list(cache):
    fetched = [{"id": "r1"}]
    cache.set("requests", fetched)
    fetched.append({"id": "r2"})

    hit = cache.get("requests")
    hit.clear()

    assert cache.get("requests") == [{"id": "r1"}]
