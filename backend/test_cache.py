"""
Tests for db/cache.py and db/redis_client.py

Redis is never contacted; RedisCache gets a MagicMock client.
"""
import json
from unittest.mock import MagicMock

import redis

from db.cache import RedisCache, TTLCache, cache_key
from db.redis_client import prefixed


def test_cache_key_is_order_independent():
    assert cache_key("hotels", a=1, b="x") == cache_key("hotels", b="x", a=1)
    assert cache_key("hotels", a=1).startswith("hotels:")
    assert cache_key("hotels", a=1) != cache_key("attractions", a=1)


def test_ttl_cache_hit_then_expiry(fake_clock):
    cache = TTLCache(ttl_seconds=300, clock=fake_clock)
    cache.set("k", {"v": 1})

    fake_clock.advance(299)
    assert cache.get("k") == {"v": 1}

    fake_clock.advance(1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_ttl_cache_per_entry_ttl(fake_clock):
    cache = TTLCache(ttl_seconds=300, clock=fake_clock)
    cache.set("short", 1, ttl_seconds=10)
    cache.set("long", 2)

    fake_clock.advance(11)
    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_ttl_cache_sweep_and_clear(fake_clock):
    cache = TTLCache(ttl_seconds=5, clock=fake_clock)
    cache.set("a", 1)
    cache.set("b", 2, ttl_seconds=60)

    fake_clock.advance(6)
    assert cache.sweep() == 1
    assert len(cache) == 1

    cache.clear()
    assert cache.get("b") is None


def test_ttl_cache_writes_purge_entries_nobody_reads(fake_clock):
    cache = TTLCache(ttl_seconds=300, clock=fake_clock)
    for i in range(1000):
        cache.set(f"hotels:{i}", i)
        fake_clock.advance(10)

    # live window is 30 keys; one TTL of writes may pile up before the next pass
    assert len(cache) <= 60
    assert cache.get("hotels:999") == 999
    assert cache.get("hotels:0") is None


def test_ttl_cache_write_inside_window_does_not_sweep(fake_clock):
    cache = TTLCache(ttl_seconds=300, clock=fake_clock)
    cache.set("a", 1, ttl_seconds=5)
    fake_clock.advance(10)
    cache.set("b", 2)
    assert len(cache) == 2

    fake_clock.advance(300)
    cache.set("c", 3)
    assert len(cache) == 1


def test_ttl_cache_delete_missing_key_is_noop(fake_clock):
    cache = TTLCache(clock=fake_clock)
    cache.delete("nope")
    assert cache.get("nope") is None


def test_redis_cache_round_trip_uses_setex():
    client = MagicMock()
    cache = RedisCache(client=client, ttl_seconds=120)

    cache.set("hotels:x", {"hotels": []})
    key, ttl, payload = client.setex.call_args.args
    assert key == prefixed("hotels:x")
    assert ttl == 120
    assert json.loads(payload) == {"hotels": []}

    client.get.return_value = payload
    assert cache.get("hotels:x") == {"hotels": []}


def test_redis_cache_miss():
    client = MagicMock()
    client.get.return_value = None
    assert RedisCache(client=client).get("k") is None


def test_redis_errors_are_misses():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.setex.side_effect = redis.ConnectionError("down")
    cache = RedisCache(client=client)

    cache.set("k", 1)
    assert cache.get("k") is None
    assert cache.sweep() == 0

