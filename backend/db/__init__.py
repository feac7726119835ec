"""
db/
----
Caching layer for the trip planner backend.

Nothing is persisted.  External lookups are cached for CACHE_TTL_SECONDS:
  in_memory  db.cache.TTLCache    (default)
  redis      db.cache.RedisCache  {REDIS_KEY_PREFIX}:{namespace}:{query}

Public exports:
    from db import get_cache, cache_key, TTLCache, RedisCache, get_redis
"""

from db.cache import RedisCache, TTLCache, cache_key, get_cache
from db.redis_client import get_redis

__all__ = ["RedisCache", "TTLCache", "cache_key", "get_cache", "get_redis"]
