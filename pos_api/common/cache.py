"""
Redis-backed JSON cache.

Used for external market quotes, which are slow and rate limited. The cache is
optional: without a reachable Redis server every lookup is a miss and every
write is skipped.
"""
import json
import os
from typing import Any, Dict, Optional

import redis

from pos_api.common.logging import get_logger

logger = get_logger(__name__)

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
DEFAULT_CACHE_TTL = int(os.environ.get("CACHE_TTL", 600))

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Shared Redis client, or None when the server cannot be reached."""
    global _redis_client
    if _redis_client is not None:
        return _redis_client

    client = redis.Redis.from_url(
        REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True
    )
    try:
        client.ping()
    except redis.exceptions.RedisError as e:
        logger.warning("redis_unavailable", url=REDIS_URL, error=str(e))
        return None

    _redis_client = client
    return _redis_client


async def get_cache(key: str) -> Optional[Any]:
    """Decoded value stored under `key`; None on a miss or any cache failure."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        payload = client.get(key)
    except redis.exceptions.RedisError as e:
        logger.warning("cache_get_failed", key=key, error=str(e))
        return None

    if not payload:
        return None
    try:
        return json.loads(payload)
    except ValueError:
        logger.warning("cache_payload_invalid", key=key)
        return None


async def set_cache(key: str, value: Any, ttl: int = DEFAULT_CACHE_TTL) -> bool:
    """Store a JSON-serializable value for `ttl` seconds. Returns whether it was stored."""
    client = get_redis_client()
    if client is None:
        return False

    try:
        return bool(client.set(key, json.dumps(value), ex=ttl))
    except (redis.exceptions.RedisError, TypeError) as e:
        logger.warning("cache_set_failed", key=key, error=str(e))
        return False


def generate_cache_key(prefix: str, params: Dict[str, Any]) -> str:
    """
    Build a stable key such as ``quote:ticker=AAPL``.

    Params are sorted by name and None values are left out.
    """
    parts = [f"{name}={value}" for name, value in sorted(params.items()) if value is not None]
    return ":".join([prefix] + parts)
