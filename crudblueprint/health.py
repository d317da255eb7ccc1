"""Health report of every registered database with its query latency."""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from http import HTTPStatus
from typing import Any

from crudblueprint.responses import Response

_PROBE_SQL = "SELECT 1"


async def check(clients: Mapping[str, Any], names: Iterable[str]) -> Response:
    """Probe each named database; 200 when all are healthy, 503 otherwise.

    A client offers ``has_available_connections()`` and ``async execute(sql)``.
    """
    databases: dict[str, dict[str, Any]] = {}
    all_healthy = True

    for name in names:
        entry: dict[str, Any] = {}
        client = clients.get(name)
        if client is None:
            entry["status"] = "not_configured"
            entry["connected"] = False
            all_healthy = False
            databases[name] = entry
            continue
        try:
            connected = bool(client.has_available_connections())
            entry["connected"] = connected
            if connected:
                start = time.perf_counter()
                await client.execute(_PROBE_SQL)
                elapsed = time.perf_counter() - start
                entry["status"] = "healthy"
                entry["latency_ms"] = int(elapsed * 1000)
            else:
                entry["status"] = "unhealthy"
                all_healthy = False
        except Exception as exc:  # a failing driver marks the database as errored
            entry["status"] = "error"
            entry["error"] = str(exc)
            entry["connected"] = False
            all_healthy = False
        databases[name] = entry

    body = {
        "status": "ok" if all_healthy else "degraded",
        "databases": databases or None,
    }
    status = HTTPStatus.OK if all_healthy else HTTPStatus.SERVICE_UNAVAILABLE
    return Response(status, body)