"""Per-client sliding-window rate limiting."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable
from http import HTTPStatus

from crudblueprint.config import EnvConfig
from crudblueprint.responses import Request, Response

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_SECONDS = 60
PURGE_INTERVAL_SECONDS = 300.0


def client_ip(request: Request) -> str:
    """The client address, preferring the first entry of ``X-Forwarded-For``."""
    forwarded = request.header("X-Forwarded-For")
    if forwarded:
        first, sep, _ = forwarded.partition(",")
        if sep:
            trimmed = first.strip(" \t")
            if trimmed:
                return trimmed
        return forwarded
    return request.peer_addr


def reject_rate_limited(retry_after: int) -> Response:
    """A 429 response with a ``Retry-After`` header and the error envelope."""
    body = {
        "error": {
            "message": "Too many requests. Please try again later.",
            "status": int(HTTPStatus.TOO_MANY_REQUESTS),
            "retry_after": retry_after,
        }
    }
    return Response(
        HTTPStatus.TOO_MANY_REQUESTS,
        body,
        headers={"Retry-After": str(retry_after)},
    )


class RateLimitFilter:
    """Allows at most ``RATE_LIMIT_MAX`` requests per client in any ``RATE_LIMIT_WINDOW`` seconds."""

    def __init__(self, config: EnvConfig, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_requests = config.get_int("RATE_LIMIT_MAX", DEFAULT_MAX_REQUESTS)
        self.window_seconds = config.get_int("RATE_LIMIT_WINDOW", DEFAULT_WINDOW_SECONDS)
        self._clock = clock
        self._lock = threading.Lock()
        self._clients: dict[str, deque[float]] = {}
        self._last_purge = clock()
        logger.info(
            "RateLimitFilter initialized: max=%d requests per %ds window",
            self.max_requests,
            self.window_seconds,
        )

    def _prune(self, timestamps: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while timestamps and timestamps[0] < cutoff:
            timestamps.popleft()

    def _purge_stale_clients(self) -> None:
        # The lock must already be held.
        now = self._clock()
        if now - self._last_purge < PURGE_INTERVAL_SECONDS:
            return
        self._last_purge = now
        stale = []
        for ip, timestamps in self._clients.items():
            self._prune(timestamps, now)
            if not timestamps:
                stale.append(ip)
        for ip in stale:
            del self._clients[ip]
        if stale:
            logger.debug(
                "RateLimitFilter purged %d stale client entries, %d remaining",
                len(stale),
                len(self._clients),
            )

    def tracked_clients(self) -> int:
        """Number of client addresses currently tracked."""
        with self._lock:
            return len(self._clients)

    def filter(self, request: Request) -> Response | None:
        """A 429 response when the client is over its limit, otherwise ``None``."""
        ip = client_ip(request)
        now = self._clock()
        with self._lock:
            self._purge_stale_clients()
            timestamps = self._clients.setdefault(ip, deque())
            self._prune(timestamps, now)

            if len(timestamps) >= self.max_requests:
                unblock = timestamps[0] + self.window_seconds if timestamps else now
                retry_after = math.trunc(unblock - now)
                if retry_after <= 0:
                    retry_after = 1
                logger.warning(
                    "Rate limit exceeded for %s on %s (%d/%d in %ds)",
                    ip,
                    request.path,
                    len(timestamps),
                    self.max_requests,
                    self.window_seconds,
                )
                return reject_rate_limited(retry_after)

            timestamps.append(now)
            return None