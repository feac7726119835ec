"""
db/redis_client.py
-------------------
redis-py client singleton used by db.cache.RedisCache.

Key schema:

  {REDIS_KEY_PREFIX}:{namespace}:{serialized query}
       Type : String (JSON)
       TTL  : CACHE_TTL_SECONDS (default 300 s)

Environment variables (set in config.py):
    REDIS_HOST        default: localhost
    REDIS_PORT        default: 6379
    REDIS_DB          default: 0
    REDIS_PASSWORD    default: ""  (empty = no auth)
    REDIS_KEY_PREFIX  default: tripcache
"""

from __future__ import annotations

from typing import Any

import redis

import config

# Module-level singleton; initialised lazily on first call to get_redis()
_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Return the singleton Redis client, creating it on first call."""
    global _client
    if _client is None:
        kwargs: dict[str, Any] = {
            "host":             config.REDIS_HOST,
            "port":             config.REDIS_PORT,
            "db":               config.REDIS_DB,
            "decode_responses": True,
            "socket_timeout":   config.EXTERNAL_API_TIMEOUT_S,
        }
        if config.REDIS_PASSWORD:
            kwargs["password"] = config.REDIS_PASSWORD
        _client = redis.Redis(**kwargs)
    return _client


def prefixed(key: str) -> str:
    return f"{config.REDIS_KEY_PREFIX}:{key}"
