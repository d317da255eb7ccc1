"""Thread-safe least-recently-used cache with per-entry time-to-live."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Seconds = float | int | timedelta


def _seconds(value: Seconds) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class LruCache(Generic[K, V]):
    """LRU cache; expired entries are dropped lazily on access or by ``evict_expired``."""

    def __init__(
        self,
        max_size: int,
        default_ttl: Seconds = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._default_ttl = _seconds(default_ttl)
        self._clock = clock
        self._lock = threading.Lock()
        # Last item is the most recently used.
        self._entries: OrderedDict[K, _Entry[V]] = OrderedDict()

    def put(self, key: K, value: V, ttl: Seconds | None = None) -> None:
        """Insert or replace an entry, evicting the least recently used one when full."""
        lifetime = self._default_ttl if ttl is None else _seconds(ttl)
        with self._lock:
            expires_at = self._clock() + lifetime
            if key in self._entries:
                self._entries.move_to_end(key)
                self._entries[key] = _Entry(value, expires_at)
                return
            if len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)
            self._entries[key] = _Entry(value, expires_at)

    def get(self, key: K) -> V | None:
        """Return the value, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def invalidate(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_by_prefix(self, prefix: str) -> None:
        """Remove every entry whose string key starts with ``prefix``."""
        with self._lock:
            doomed = [key for key in self._entries if str(key).startswith(prefix)]
            for key in doomed:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of stored entries, including ones that may have expired."""
        with self._lock:
            return len(self._entries)

    def evict_expired(self) -> None:
        """Remove every expired entry at once."""
        with self._lock:
            now = self._clock()
            doomed = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in doomed:
                del self._entries[key]