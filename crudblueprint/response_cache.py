"""In-process response cache for GET requests, keyed by method, path and query."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from crudblueprint.lru import LruCache, Seconds
from crudblueprint.responses import Request, method_label

DEFAULT_MAX_SIZE = 10000
DEFAULT_TTL = 60.0

_TABLE_PREFIX = "GET:/api/v1/"


def build_key(request: Request) -> str:
    """The cache key of a request: ``{METHOD}:{path}:{querystring}``."""
    return f"{method_label(request.method)}:{request.path}:{request.query}"


def _is_get(request: Request) -> bool:
    return method_label(request.method) == "GET"


class ResponseCache:
    """Caches JSON response bodies of GET requests in an LRU cache with TTL."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl: Seconds = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: LruCache[str, Any] = LruCache(max_size, default_ttl, clock)

    def get(self, request: Request) -> Any | None:
        """The cached body for a GET request, or ``None`` on a miss or other methods."""
        if not _is_get(request):
            return None
        return self._cache.get(build_key(request))

    def put(self, request: Request, response: Any, ttl: Seconds = DEFAULT_TTL) -> None:
        """Store a response body; requests other than GET are ignored."""
        if not _is_get(request):
            return
        self._cache.put(build_key(request), response, ttl)

    def invalidate_table(self, table_name: str) -> None:
        """Drop every entry whose key starts with ``GET:/api/v1/{table_name}``."""
        self._cache.invalidate_by_prefix(_TABLE_PREFIX + table_name)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)