"""HTTP request and response values and the JSON envelope helpers for the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

_METHOD_LABELS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})


def method_label(method: str) -> str:
    """Canonical upper-case label of an HTTP method; anything unusual becomes ``OTHER``."""
    label = method.upper()
    return label if label in _METHOD_LABELS else "OTHER"


@dataclass
class Request:
    """An incoming HTTP request as seen by caches, filters and handlers."""

    method: str = "GET"
    path: str = "/"
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    json: Any = None
    peer_addr: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    def header(self, name: str) -> str:
        """Case-insensitive header lookup; missing headers read as an empty string."""
        return self.headers.get(name.lower(), "")


@dataclass
class Response:
    """An outgoing HTTP response with an optional JSON body."""

    status: HTTPStatus
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


def ok(data: Any) -> Response:
    return Response(HTTPStatus.OK, data)


def created(data: Any) -> Response:
    return Response(HTTPStatus.CREATED, data)


def no_content() -> Response:
    return Response(HTTPStatus.NO_CONTENT)


def paginated(data: Any, total: int, limit: int, offset: int) -> Response:
    """A 200 response wrapping ``data`` with pagination metadata."""
    body = {
        "data": data,
        "meta": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + limit < total,
        },
    }
    return Response(HTTPStatus.OK, body)


def error(status: int, message: str, details: Any = None) -> Response:
    """An error envelope; ``details`` is included only when not ``None``."""
    status = HTTPStatus(status)
    payload: dict[str, Any] = {"message": message, "status": int(status)}
    if details is not None:
        payload["details"] = details
    return Response(status, {"error": payload})


def bad_request(message: str, details: Any = None) -> Response:
    return error(HTTPStatus.BAD_REQUEST, message, details)


def not_found(message: str) -> Response:
    return error(HTTPStatus.NOT_FOUND, message)


def conflict(message: str) -> Response:
    return error(HTTPStatus.CONFLICT, message)


def internal_error(message: str) -> Response:
    return error(HTTPStatus.INTERNAL_SERVER_ERROR, message)


def validation_error(errors: Any) -> Response:
    return error(HTTPStatus.UNPROCESSABLE_ENTITY, "Validation failed", errors)