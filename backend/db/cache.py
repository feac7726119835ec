"""
db/cache.py
-----------
Short-lived response cache for external lookups (hotel searches).

Two interchangeable backends, picked by config.CACHE_BACKEND:

  in_memory  TTLCache   : dict of key → (value, expires_at); expiry is
                          checked lazily on read, and set() purges in bulk
                          once per TTL window (sweep() on demand)
  redis      RedisCache : JSON values written with SETEX

The cache is an explicit object handed to the tools (FastAPI dependency
get_cache() in production, a fresh TTLCache in tests); nothing reads a
module global.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable, Optional

import redis

import config
from db.redis_client import get_redis, prefixed

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def cache_key(namespace: str, **params: Any) -> str:
    """Stable key: namespace + JSON of the params with sorted keys."""
    return f"{namespace}:{json.dumps(params, sort_keys=True, default=str, separators=(',', ':'))}"


class TTLCache:
    """
    Thread-safe in-process cache with per-entry expiry.

    clock is injectable so tests can move time forward without sleeping.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = config.CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        with self._lock:
            # at most one full pass per TTL window
            if now - self._last_sweep >= self.ttl_seconds:
                self._drop_expired(now)
            self._entries[key] = (value, now + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop expired entries.  Returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._drop_expired(now)

    def _drop_expired(self, now: float) -> int:
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]
        self._last_sweep = now
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """
    Same interface as TTLCache, backed by Redis.

    Values must be JSON-serialisable.  Redis errors are logged and treated
    as a cache miss, so an unavailable Redis only costs the cache.
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: Optional[float] = None) -> None:
        self._client = client
        self.ttl_seconds = config.CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = get_redis()
        return self._client

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(prefixed(key))
        except redis.RedisError as exc:
            logger.warning("[RedisCache] get failed: %s", exc)
            return None
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = int(self.ttl_seconds if ttl_seconds is None else ttl_seconds)
        try:
            self.client.setex(prefixed(key), ttl, json.dumps(value, default=str))
        except redis.RedisError as exc:
            logger.warning("[RedisCache] set failed: %s", exc)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(prefixed(key))
        except redis.RedisError as exc:
            logger.warning("[RedisCache] delete failed: %s", exc)

    def sweep(self) -> int:
        # Redis expires keys itself
        return 0


_cache: Optional[TTLCache | RedisCache] = None


def get_cache() -> TTLCache | RedisCache:
    """Process-wide cache for the configured backend (FastAPI dependency)."""
    global _cache
    if _cache is None:
        if config.CACHE_BACKEND == "redis":
            _cache = RedisCache()
        else:
            if config.CACHE_BACKEND != "in_memory":
                logger.warning("[cache] unknown CACHE_BACKEND %r, using in_memory", config.CACHE_BACKEND)
            _cache = TTLCache()
    return _cache
