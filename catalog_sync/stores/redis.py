"""Redis store for the import lock and short-lived caches.

Handles:
- Single-run exclusion for imports (SET NX EX, owner-checked release)
- JSON cache with TTL

TTL policies:
- Import lock: IMPORT_LOCK_TTL (default 6 hours)
- Webservice connection test: 5 minutes
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from catalog_sync.settings import get_settings

# TTL constants (in seconds)
TTL_CONNECTION_TEST = 300  # 5 minutes

# Key prefixes
PREFIX_LOCK = "lock:"
PREFIX_CONNECTION_TEST = "webservice:user_info:"

# Lock names
IMPORT_LOCK = "import"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


async def ping_redis() -> None:
    """PING the server. Raises when Redis is unreachable or not initialized."""
    await _get_redis().ping()


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache."""
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL (seconds)."""
    await _get_redis().set(key, value, ex=ttl)


async def cache_delete(key: str) -> None:
    """Delete key from cache."""
    await _get_redis().delete(key)


async def cache_get_json(key: str) -> dict[str, Any] | None:
    """Get a JSON object from cache, or None when missing or unparsable."""
    raw = await cache_get(key)
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding unparsable cache entry {key}")
        return None
    return value if isinstance(value, dict) else None


async def cache_set_json(key: str, value: dict[str, Any], ttl: int) -> None:
    """Store a JSON object in cache."""
    await cache_set(key, json.dumps(value, ensure_ascii=False), ttl)


# ============================================================
# Import run exclusion
# ============================================================


# Delete the lock only while it still holds the caller's value.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


async def acquire_lock(key: str, ttl: int, owner: str) -> bool:
    """Acquire a distributed lock.

    Args:
        key: Lock key (e.g. IMPORT_LOCK).
        ttl: Lock timeout in seconds.
        owner: Unique value stored under the lock. Shown by lock_owner() and
            required by release_lock().

    Returns:
        True if lock acquired, False if already locked.
    """
    result = await _get_redis().set(f"{PREFIX_LOCK}{key}", owner, nx=True, ex=ttl)
    return result is not None


async def release_lock(key: str, owner: str) -> bool:
    """Release a lock held by owner.

    A lock that expired and was taken by another run is left alone.

    Returns:
        True if the lock was deleted.
    """
    deleted = await _get_redis().eval(_RELEASE_SCRIPT, 1, f"{PREFIX_LOCK}{key}", owner)
    if not deleted:
        logger.warning(f"Lock {key} is no longer held by {owner}; not releasing")
    return bool(deleted)


async def lock_owner(key: str) -> str | None:
    """Return the value stored under a held lock, or None if it is free."""
    return await cache_get(f"{PREFIX_LOCK}{key}")
