"""Bearer-token authentication filter using HS256-signed JSON Web Tokens."""

from __future__ import annotations

import logging
from http import HTTPStatus

import jwt

from crudblueprint.config import EnvConfig
from crudblueprint.responses import Request, Response

logger = logging.getLogger(__name__)

ISSUER = "drogon-blueprint"
ALGORITHM = "HS256"
SKIP_PATHS = frozenset(
    {
        "/health",
        "/api/v1/auth/login",
        "/api/v1/auth/register",
    }
)
_BEARER_PREFIX = "Bearer "
_FORWARDED_CLAIMS = ("user_id", "role")


def should_skip_auth(path: str) -> bool:
    """True for paths that are reachable without a token."""
    return path in SKIP_PATHS


def reject_unauthorized(message: str) -> Response:
    """A 401 response carrying the standard error envelope."""
    body = {"error": {"message": message, "status": int(HTTPStatus.UNAUTHORIZED)}}
    return Response(HTTPStatus.UNAUTHORIZED, body)


class JwtFilter:
    """Verifies the bearer token of a request and records its ``user_id`` and ``role`` claims."""

    def __init__(self, config: EnvConfig) -> None:
        self._config = config

    def filter(self, request: Request) -> Response | None:
        """A 401 response that ends the request, or ``None`` to let it through.

        On success the ``user_id`` and ``role`` claims, when present, are stored
        in ``request.attributes``.
        """
        path = request.path
        if should_skip_auth(path):
            return None

        secret = self._config.get("JWT_SECRET", "")
        if not secret:
            logger.error("JWT_SECRET is not configured. Rejecting request to %s", path)
            return reject_unauthorized("Server authentication is not configured")

        auth_header = request.header("Authorization")
        if not auth_header:
            logger.warning("Missing Authorization header for %s", path)
            return reject_unauthorized("Authorization header is required")

        if len(auth_header) <= len(_BEARER_PREFIX) or not auth_header.startswith(_BEARER_PREFIX):
            logger.warning("Malformed Authorization header for %s", path)
            return reject_unauthorized("Authorization header must use Bearer scheme")

        encoded = auth_header[len(_BEARER_PREFIX):]

        try:
            claims = jwt.decode(
                encoded,
                secret,
                algorithms=[ALGORITHM],
                issuer=ISSUER,
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            logger.warning("JWT signature mismatch for %s: %s", path, exc)
            return reject_unauthorized("Invalid token signature")
        except jwt.DecodeError as exc:
            logger.error("JWT processing error for %s: %s", path, exc)
            return reject_unauthorized("Token processing failed")
        except jwt.InvalidTokenError as exc:
            logger.warning("JWT verification failed for %s: %s", path, exc)
            return reject_unauthorized("Invalid or expired token")

        for name in _FORWARDED_CLAIMS:
            if name not in claims:
                continue
            value = claims[name]
            if not isinstance(value, str):
                logger.error("JWT processing error for %s: claim '%s' is not a string", path, name)
                return reject_unauthorized("Token processing failed")
            request.attributes[name] = value

        logger.debug("JWT authenticated user for %s", path)
        return None