from http import HTTPStatus

import pytest

from crudblueprint.config import EnvConfig
from crudblueprint.rate_limit import (
    PURGE_INTERVAL_SECONDS,
    RateLimitFilter,
    client_ip,
    reject_rate_limited,
)
from crudblueprint.responses import Request


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_limiter(max_requests=2, window=10):
    clock = FakeClock()
    config = EnvConfig(
        environ={"RATE_LIMIT_MAX": str(max_requests), "RATE_LIMIT_WINDOW": str(window)}
    )
    return RateLimitFilter(config, clock=clock), clock


def from_ip(ip):
    return Request(path="/api/v1/users", peer_addr=ip)


def test_defaults_from_empty_config():
    limiter = RateLimitFilter(EnvConfig(environ={}))
    assert limiter.max_requests == 100
    assert limiter.window_seconds == 60


@pytest.mark.parametrize(
    "headers, peer, expected",
    [
        ({}, "10.0.0.1", "10.0.0.1"),
        ({"X-Forwarded-For": "1.2.3.4"}, "10.0.0.1", "1.2.3.4"),
        ({"X-Forwarded-For": " 1.2.3.4 , 5.6.7.8"}, "10.0.0.1", "1.2.3.4"),
        ({"X-Forwarded-For": " , 5.6.7.8"}, "10.0.0.1", " , 5.6.7.8"),
    ],
)
def test_client_ip(headers, peer, expected):
    assert client_ip(Request(headers=headers, peer_addr=peer)) == expected


def test_reject_rate_limited_response():
    response = reject_rate_limited(7)
    assert response.status == HTTPStatus.TOO_MANY_REQUESTS
    assert response.headers == {"Retry-After": "7"}
    assert response.body["error"]["status"] == 429
    assert response.body["error"]["retry_after"] == 7
    assert response.body["error"]["message"] == "Too many requests. Please try again later."


def test_allows_up_to_limit_then_rejects():
    limiter, clock = make_limiter(max_requests=2, window=10)
    assert limiter.filter(from_ip("a")) is None
    assert limiter.filter(from_ip("a")) is None
    clock.now = 3.0
    response = limiter.filter(from_ip("a"))
    assert response.status == HTTPStatus.TOO_MANY_REQUESTS
    retry = response.body["error"]["retry_after"]
    assert 1 <= retry <= limiter.window_seconds
    assert response.headers["Retry-After"] == str(retry)


def test_clients_are_limited_independently():
    limiter, _ = make_limiter(max_requests=1)
    assert limiter.filter(from_ip("a")) is None
    assert limiter.filter(from_ip("a")).status == HTTPStatus.TOO_MANY_REQUESTS
    assert limiter.filter(from_ip("b")) is None


def test_timestamp_at_window_edge_still_counts_and_retry_is_at_least_one():
    limiter, clock = make_limiter(max_requests=1, window=10)
    assert limiter.filter(from_ip("a")) is None
    clock.now = 10.0
    response = limiter.filter(from_ip("a"))
    assert response.status == HTTPStatus.TOO_MANY_REQUESTS
    assert response.body["error"]["retry_after"] == 1


def test_requests_allowed_again_after_window():
    limiter, clock = make_limiter(max_requests=1, window=10)
    assert limiter.filter(from_ip("a")) is None
    clock.now = 10.5
    assert limiter.filter(from_ip("a")) is None


def test_rejected_requests_are_not_recorded():
    limiter, clock = make_limiter(max_requests=1, window=10)
    assert limiter.filter(from_ip("a")) is None
    clock.now = 5.0
    assert limiter.filter(from_ip("a")) is not None
    clock.now = 10.5
    assert limiter.filter(from_ip("a")) is None


def test_stale_clients_are_purged_after_interval():
    limiter, clock = make_limiter(max_requests=5, window=10)
    for ip in ("a", "b", "c"):
        limiter.filter(from_ip(ip))
    assert limiter.tracked_clients() == 3
    clock.now = PURGE_INTERVAL_SECONDS + 1
    limiter.filter(from_ip("d"))
    assert limiter.tracked_clients() == 1