"""Two-tier cache: the in-process response cache in front of Redis."""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from crudblueprint.redis_cache import KEY_PREFIX, RedisCache
from crudblueprint.response_cache import ResponseCache
from crudblueprint.responses import Request, method_label

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60
_API_PREFIX = "/api/v1/"


def extract_table_name(path: str) -> str:
    """The table in ``/api/v1/{table}[/...]``, or an empty string if the path does not match."""
    if len(path) <= len(_API_PREFIX) or not path.startswith(_API_PREFIX):
        return ""
    remainder = path[len(_API_PREFIX):]
    return remainder.partition("/")[0]


def hash_string(text: str) -> str:
    """A stable 16-digit hexadecimal digest of ``text``."""
    return hashlib.blake2b(text.encode("utf-8"), digest_size=8).hexdigest()


def build_cache_key(request: Request) -> str:
    """The Redis key of a request: ``blueprint:{table}:{METHOD}:{hash of path?query}``."""
    table = extract_table_name(request.path) or "unknown"
    digest = hash_string(f"{request.path}?{request.query}")
    return f"{KEY_PREFIX}{table}:{method_label(request.method)}:{digest}"


def _is_get(request: Request) -> bool:
    return method_label(request.method) == "GET"


class CacheManager:
    """Looks up L1 then L2, writes through to both and invalidates both."""

    def __init__(self, l1: ResponseCache | None = None, l2: RedisCache | None = None) -> None:
        self.l1 = ResponseCache() if l1 is None else l1
        self.l2 = RedisCache() if l2 is None else l2

    async def get(self, request: Request) -> Any | None:
        """The cached body of a GET request; an L2 hit is copied back into L1."""
        if not _is_get(request):
            return None
        hit = self.l1.get(request)
        if hit is not None:
            logger.debug("CacheManager: L1 HIT")
            return hit
        if self.l2.is_enabled():
            hit = await self.l2.get(build_cache_key(request))
            if hit is not None:
                logger.debug("CacheManager: L2 HIT, back-filling L1")
                self.l1.put(request, hit)
                return hit
        logger.debug("CacheManager: MISS (L1 + L2)")
        return None

    async def put(self, request: Request, data: Any, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        """Store a GET response in both tiers; other methods are ignored."""
        if not _is_get(request):
            return
        self.l1.put(request, data, ttl_seconds)
        if self.l2.is_enabled():
            await self.l2.put(build_cache_key(request), data, ttl_seconds)

    async def invalidate_table(self, table_name: str) -> None:
        """Drop every cached entry of a table from both tiers."""
        self.l1.invalidate_table(table_name)
        if self.l2.is_enabled():
            await self.l2.invalidate_table(table_name)