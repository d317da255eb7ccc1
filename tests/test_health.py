from http import HTTPStatus

import pytest

from crudblueprint.health import check


class _Client:
    def __init__(self, connected=True, error=None):
        self.connected = connected
        self.error = error
        self.queries = []

    def has_available_connections(self):
        return self.connected

    async def execute(self, sql):
        self.queries.append(sql)
        if self.error is not None:
            raise self.error


@pytest.mark.asyncio
async def test_all_healthy():
    client = _Client()
    resp = await check({"default": client}, ["default"])
    assert resp.status == HTTPStatus.OK
    assert resp.body["status"] == "ok"
    entry = resp.body["databases"]["default"]
    assert entry["status"] == "healthy"
    assert entry["connected"] is True
    assert entry["latency_ms"] >= 0
    assert client.queries == ["SELECT 1"]


@pytest.mark.asyncio
async def test_no_connections_is_degraded():
    client = _Client(connected=False)
    resp = await check({"default": client}, ["default"])
    assert resp.status == HTTPStatus.SERVICE_UNAVAILABLE
    assert resp.body["status"] == "degraded"
    assert resp.body["databases"]["default"] == {"connected": False, "status": "unhealthy"}
    assert client.queries == []


@pytest.mark.asyncio
async def test_missing_client_is_not_configured():
    resp = await check({"default": _Client()}, ["default", "analytics"])
    assert resp.status == HTTPStatus.SERVICE_UNAVAILABLE
    assert resp.body["databases"]["analytics"] == {"status": "not_configured", "connected": False}
    assert resp.body["databases"]["default"]["status"] == "healthy"


@pytest.mark.asyncio
async def test_query_failure_reports_error():
    resp = await check({"default": _Client(error=RuntimeError("boom"))}, ["default"])
    assert resp.status == HTTPStatus.SERVICE_UNAVAILABLE
    entry = resp.body["databases"]["default"]
    assert entry["status"] == "error"
    assert entry["error"] == "boom"
    assert entry["connected"] is False
    assert "latency_ms" not in entry


@pytest.mark.asyncio
async def test_no_databases_is_ok():
    resp = await check({}, [])
    assert resp.status == HTTPStatus.OK
    assert resp.body == {"status": "ok", "databases": None}