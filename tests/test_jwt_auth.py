import time
from http import HTTPStatus

import jwt
import pytest

from crudblueprint.config import EnvConfig
from crudblueprint.jwt_auth import (
    ISSUER,
    JwtFilter,
    reject_unauthorized,
    should_skip_auth,
)
from crudblueprint.responses import Request

SIGNING_KEY = "secret"


def make_filter(secret_value=SIGNING_KEY):
    environ = {}
    if secret_value:
        environ["JWT_SECRET"] = secret_value
    return JwtFilter(EnvConfig(environ=environ))


def encode(payload, signing_key=SIGNING_KEY, algorithm="HS256"):
    return jwt.encode(payload, signing_key, algorithm=algorithm)


def bearer_request(encoded, path="/api/v1/users"):
    return Request(path=path, headers={"Authorization": f"Bearer {encoded}"})


def error_message(response):
    return response.body["error"]["message"]


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/health", True),
        ("/api/v1/auth/login", True),
        ("/api/v1/auth/register", True),
        ("/api/v1/users", False),
        ("/health/", False),
    ],
)
def test_should_skip_auth(path, expected):
    assert should_skip_auth(path) is expected


def test_reject_unauthorized_envelope():
    response = reject_unauthorized("nope")
    assert response.status == HTTPStatus.UNAUTHORIZED
    assert response.body == {"error": {"message": "nope", "status": 401}}


def test_skipped_path_passes_without_secret_or_header():
    assert make_filter(secret_value="").filter(Request(path="/health")) is None


def test_missing_secret_rejects():
    response = make_filter(secret_value="").filter(Request(path="/api/v1/users"))
    assert response.status == HTTPStatus.UNAUTHORIZED
    assert error_message(response) == "Server authentication is not configured"


def test_missing_header_rejects():
    response = make_filter().filter(Request(path="/api/v1/users"))
    assert error_message(response) == "Authorization header is required"


@pytest.mark.parametrize("header", ["Basic token", "Bearer ", "bearer token"])
def test_non_bearer_scheme_rejects(header):
    request = Request(path="/api/v1/users", headers={"Authorization": header})
    response = make_filter().filter(request)
    assert error_message(response) == "Authorization header must use Bearer scheme"


def test_valid_token_passes_and_records_claims():
    encoded = encode({"iss": ISSUER, "user_id": "u-1", "role": "admin"})
    request = bearer_request(encoded)
    assert make_filter().filter(request) is None
    assert request.attributes == {"user_id": "u-1", "role": "admin"}


def test_valid_token_without_claims_leaves_attributes_empty():
    request = bearer_request(encode({"iss": ISSUER}))
    assert make_filter().filter(request) is None
    assert request.attributes == {}


def test_wrong_signing_key_rejects_signature():
    request = bearer_request(encode({"iss": ISSUER}, signing_key="placeholder"))
    response = make_filter().filter(request)
    assert error_message(response) == "Invalid token signature"
    assert request.attributes == {}


def test_wrong_issuer_rejects():
    request = bearer_request(encode({"iss": "someone-else"}))
    assert error_message(make_filter().filter(request)) == "Invalid or expired token"


def test_missing_issuer_rejects():
    request = bearer_request(encode({"user_id": "u-1"}))
    assert error_message(make_filter().filter(request)) == "Invalid or expired token"


def test_expired_token_rejects():
    past = int(time.time()) - 3600
    request = bearer_request(encode({"iss": ISSUER, "exp": past}))
    assert error_message(make_filter().filter(request)) == "Invalid or expired token"


def test_garbage_token_fails_processing():
    request = Request(path="/api/v1/users", headers={"Authorization": "Bearer token"})
    assert error_message(make_filter().filter(request)) == "Token processing failed"


def test_non_string_claim_fails_processing():
    request = bearer_request(encode({"iss": ISSUER, "user_id": 42}))
    assert error_message(make_filter().filter(request)) == "Token processing failed"