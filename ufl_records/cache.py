"""Fallback snapshot cache backed by Redis with an in-process tier.

The cache holds the last known state of the three record collections under a
fixed set of keys.  Every write lands in the in-process tier unconditionally and
in Redis when a connection is available, so a Redis outage never loses the most
recent snapshot for the running process.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from redis.asyncio import Redis as RedisClient
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ufl_records.settings import get_settings

logger = logging.getLogger(__name__)

_SNAPSHOT_PREFIX = "ufl:snapshot"

FIGHTERS_KEY = f"{_SNAPSHOT_PREFIX}:fighters"
FIGHTS_KEY = f"{_SNAPSHOT_PREFIX}:fights"
CHAMPIONS_KEY = f"{_SNAPSHOT_PREFIX}:champions"
SNAPSHOT_KEYS = (FIGHTERS_KEY, FIGHTS_KEY, CHAMPIONS_KEY)

_local_cache: dict[str, Any] = {}
_local_cache_lock = asyncio.Lock()

_redis_client: RedisClient | None = None
_client_lock = asyncio.Lock()
_redis_disabled_until: float = 0.0


async def local_cache_get(key: str) -> Any | None:
    """Return a value from the in-process fallback cache."""

    async with _local_cache_lock:
        return _local_cache.get(key)


async def local_cache_set(key: str, value: Any) -> None:
    """Persist ``value`` in the in-process cache. Entries never expire."""

    async with _local_cache_lock:
        _local_cache[key] = value


async def local_cache_clear_all() -> None:
    """Remove every entry from the in-process cache.

    Primarily intended for test isolation.
    """

    async with _local_cache_lock:
        _local_cache.clear()


def _is_redis_connection_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` represents a Redis connection failure."""

    return isinstance(exc, (RedisConnectionError, RedisTimeoutError, OSError))


def _redis_factory() -> type[RedisClient]:
    return RedisClient


async def get_redis() -> RedisClient | None:
    """Get the shared Redis client, returning None while the connection is unavailable.

    A failed connection attempt disables Redis for
    ``REDIS_RETRY_BACKOFF_SECONDS``; the next call after the cool-down tries again.
    """
    global _redis_client, _redis_disabled_until

    if _redis_client is not None:
        return _redis_client

    if time.monotonic() < _redis_disabled_until:
        logger.debug("Redis connection in cool-down after previous failure; skipping attempt.")
        return None

    async with _client_lock:
        # Double-check inside the lock so concurrent callers share one client.
        if _redis_client is not None:
            return _redis_client

        settings = get_settings()
        client = _redis_factory().from_url(
            settings.redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except Exception as exc:
            if not _is_redis_connection_error(exc):
                raise
            logger.warning(
                "Redis connection failed: %s. Snapshot cache will use process memory "
                "for the next %.0fs.",
                exc,
                settings.redis_retry_backoff_seconds,
            )
            _redis_disabled_until = time.monotonic() + settings.redis_retry_backoff_seconds
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


async def close_redis() -> None:
    """Close the global Redis connection gracefully and reset the cool-down."""
    global _redis_client, _redis_disabled_until
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled_until = 0.0


class CacheClient:
    """JSON get/set wrapper that tolerates Redis connection failures."""

    def __init__(self, redis: RedisClient | None) -> None:
        self._redis = redis

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except Exception as exc:
            if _is_redis_connection_error(exc):
                logger.debug("Redis get failed for key %s: %s", key, exc)
                return None
            raise
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache payload for key %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` as JSON. ``ttl=None`` keeps the key until overwritten."""
        if self._redis is None:
            return
        encoded = json.dumps(value, default=str)
        try:
            await self._redis.set(key, encoded, ex=ttl)
        except Exception as exc:
            if _is_redis_connection_error(exc):
                logger.debug("Redis set failed for key %s: %s", key, exc)
                return
            raise


class SnapshotCache:
    """Two-tier key/value store for the fighters, fights and champions snapshot.

    Reads consult the in-process tier first, since it always holds this
    process's latest write, and use Redis only when that tier is empty; writes
    go to both.  Values are plain JSON-compatible structures, leaving
    (de)serialisation of the record models to the caller.

    Pass ``resolve_client`` (normally :func:`get_cache_client`) instead of a
    fixed ``client`` to pick Redis back up once its cool-down has expired.
    """

    def __init__(
        self,
        client: CacheClient | None = None,
        *,
        resolve_client: Callable[[], Awaitable[CacheClient]] | None = None,
    ) -> None:
        self._client = client
        self._resolve_client = resolve_client

    async def _current_client(self) -> CacheClient | None:
        if self._resolve_client is not None:
            return await self._resolve_client()
        return self._client

    async def get(self, key: str) -> Any | None:
        if key not in SNAPSHOT_KEYS:
            raise KeyError(f"Unknown snapshot key: {key}")
        cached = await local_cache_get(key)
        if cached is not None:
            return cached
        client = await self._current_client()
        if client is None:
            return None
        return await client.get_json(key)

    async def set(self, key: str, value: Any) -> None:
        if key not in SNAPSHOT_KEYS:
            raise KeyError(f"Unknown snapshot key: {key}")
        await local_cache_set(key, value)
        client = await self._current_client()
        if client is not None:
            await client.set_json(key, value)


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def get_snapshot_cache() -> SnapshotCache:
    return SnapshotCache(resolve_client=get_cache_client)


__all__ = [
    "CHAMPIONS_KEY",
    "CacheClient",
    "FIGHTERS_KEY",
    "FIGHTS_KEY",
    "SNAPSHOT_KEYS",
    "SnapshotCache",
    "close_redis",
    "get_cache_client",
    "get_redis",
    "get_snapshot_cache",
    "local_cache_clear_all",
    "local_cache_get",
    "local_cache_set",
]
