"""Cross-origin request filter: preflight answers and origin allow-listing."""

from __future__ import annotations

from collections.abc import Iterable
from http import HTTPStatus

from crudblueprint.config import EnvConfig
from crudblueprint.responses import Request, Response

_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
    "Access-Control-Max-Age": "86400",
    "Access-Control-Allow-Credentials": "true",
}


def allowed_origins(config: EnvConfig) -> list[str]:
    """Origins from ``CORS_ORIGINS``; with none set, every origin in development."""
    origins = config.get_list("CORS_ORIGINS")
    if not origins and config.get("ENVIRONMENT", "development") == "development":
        return ["*"]
    return origins


def is_origin_allowed(origin: str, allowed: Iterable[str]) -> bool:
    return any(entry == "*" or entry == origin for entry in allowed)


class CorsFilter:
    """Answers preflight requests and rejects requests from origins not allowed."""

    def __init__(self, config: EnvConfig) -> None:
        self._config = config

    def filter(self, request: Request) -> Response | None:
        """A response that ends the request, or ``None`` to let it through.

        An allowed origin is recorded in ``request.attributes["cors_origin"]``.
        """
        origin = request.header("Origin")
        if origin and not is_origin_allowed(origin, allowed_origins(self._config)):
            return Response(HTTPStatus.FORBIDDEN)

        if request.method == "OPTIONS":
            headers: dict[str, str] = {}
            if origin:
                headers = {"Access-Control-Allow-Origin": origin, **_PREFLIGHT_HEADERS}
            return Response(HTTPStatus.NO_CONTENT, headers=headers)

        if origin:
            request.attributes["cors_origin"] = origin
        return None