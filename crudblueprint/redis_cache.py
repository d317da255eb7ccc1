"""Distributed second-level cache storing JSON values in Redis."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import redis
import redis.asyncio

from crudblueprint.config import EnvConfig

logger = logging.getLogger(__name__)

KEY_PREFIX = "blueprint:"
DEFAULT_TTL_SECONDS = 60
_SCAN_COUNT = 100

_FAILURES = (redis.RedisError, OSError, asyncio.TimeoutError)


def serialize(value: Any) -> str:
    """Compact JSON text for storage."""
    return json.dumps(value, separators=(",", ":"))


def deserialize(text: str) -> Any | None:
    """Parse stored JSON text; ``None`` when it is not valid JSON."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("RedisCache: JSON parse failed: %s", exc)
        return None


def create_client(config: EnvConfig) -> redis.asyncio.Redis | None:
    """A Redis client built from ``REDIS_*`` settings, or ``None`` if no host is set."""
    host = config.get("REDIS_HOST", "")
    if not host:
        return None
    password = config.get("REDIS_PASSWORD", "") or None
    return redis.asyncio.Redis(
        host=host,
        port=config.get_int("REDIS_PORT", 6379),
        password=password,
        db=config.get_int("REDIS_DB", 0),
        decode_responses=True,
    )


class RedisCache:
    """Redis-backed JSON cache that degrades to a no-op when Redis is absent or failing."""

    def __init__(self, enabled: bool = False, client: Any = None) -> None:
        self._enabled = enabled
        self._client = client

    @classmethod
    def from_config(cls, config: EnvConfig) -> RedisCache:
        """Enabled when ``REDIS_HOST`` is set; the client is attached later by ``mark_registered``."""
        host = config.get("REDIS_HOST", "")
        if host:
            logger.info(
                "RedisCache: L2 cache enabled (host=%s, port=%d)",
                host,
                config.get_int("REDIS_PORT", 6379),
            )
            return cls(enabled=True)
        logger.warning("RedisCache: REDIS_HOST not set, L2 cache disabled")
        return cls(enabled=False)

    def is_enabled(self) -> bool:
        return self._enabled

    def mark_registered(self, client: Any) -> None:
        """Attach the client that was successfully created for this cache."""
        self._client = client

    def _active_client(self) -> Any | None:
        if not self._enabled:
            return None
        return self._client

    async def get(self, key: str) -> Any | None:
        """The cached value, or ``None`` on a miss, bad data or Redis failure."""
        client = self._active_client()
        if client is None:
            return None
        try:
            raw = await client.get(key)
        except _FAILURES as exc:
            logger.warning("RedisCache: GET failed for key '%s': %s", key, exc)
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        parsed = deserialize(raw)
        if parsed is not None:
            logger.debug("RedisCache: HIT %s", key)
        return parsed

    async def put(self, key: str, value: Any, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        """Store a value with an expiry in seconds."""
        client = self._active_client()
        if client is None:
            return
        try:
            await client.set(key, serialize(value), ex=ttl_seconds)
            logger.debug("RedisCache: SET %s (TTL=%ds)", key, ttl_seconds)
        except _FAILURES as exc:
            logger.warning("RedisCache: SET failed for key '%s': %s", key, exc)

    async def invalidate(self, key: str) -> None:
        client = self._active_client()
        if client is None:
            return
        try:
            await client.delete(key)
            logger.debug("RedisCache: DEL %s", key)
        except _FAILURES as exc:
            logger.warning("RedisCache: DEL failed for key '%s': %s", key, exc)

    async def invalidate_by_pattern(self, pattern: str) -> None:
        """Delete every key matching a Redis glob pattern, walking the keyspace with SCAN."""
        client = self._active_client()
        if client is None:
            return
        deleted = 0
        try:
            cursor: Any = 0
            while True:
                cursor, keys = await client.scan(cursor=cursor, match=pattern, count=_SCAN_COUNT)
                for key in keys:
                    await client.delete(key)
                    deleted += 1
                if int(cursor) == 0:
                    break
        except _FAILURES as exc:
            logger.warning("RedisCache: pattern invalidation failed for '%s': %s", pattern, exc)
            return
        if deleted:
            logger.debug("RedisCache: invalidated %d keys matching '%s'", deleted, pattern)

    async def invalidate_table(self, table_name: str) -> None:
        """Delete every cached key of one table."""
        await self.invalidate_by_pattern(f"{KEY_PREFIX}{table_name}:*")