import asyncio

import httpx
import pytest

from src.core.http_client import HTTPClientConfig, bounded_call, create_client
from src.core.service.backend.errors import BackendError, BackendErrorKind, classify_error


class AuthApiError(Exception):
    """Shape of the auth client's API errors"""

    def __init__(self, message, status, code=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class APIError(Exception):
    """Shape of the REST client's query errors"""

    def __init__(self, message, code):
        super().__init__(message)
        self.message = message
        self.code = code


@pytest.mark.parametrize("exc", [
    AuthApiError("Invalid Refresh Token: Refresh Token Not Found", 400),
    AuthApiError("Session from session_id claim in JWT does not exist", 403, code="session_not_found"),
    AuthApiError("Refresh token revoked", 400, code="refresh_token_already_used"),
    Exception("Invalid Refresh Token: Already Used"),
])
def test_refresh_token_failures_are_session_expired(exc):
    error = classify_error(exc, "get_session")

    assert error.kind == BackendErrorKind.REFRESH_TOKEN_INVALID
    assert error.is_session_expired
    assert error.operation == "get_session"


def test_invalid_credentials_are_auth_errors():
    error = classify_error(AuthApiError("Invalid login credentials", 400, code="invalid_credentials"))

    assert error.kind == BackendErrorKind.AUTH
    assert error.message == "Invalid login credentials"
    assert error.code == "invalid_credentials"
    assert not error.is_session_expired


def test_auth_status_without_code_is_auth_error():
    error = classify_error(AuthApiError("Email rate limit exceeded", 422))

    assert error.kind == BackendErrorKind.AUTH


def test_no_rows_is_not_found():
    error = classify_error(APIError("JSON object requested, multiple (or no) rows returned", "PGRST116"))

    assert error.kind == BackendErrorKind.NOT_FOUND


@pytest.mark.parametrize("exc, kind", [
    (asyncio.TimeoutError(), BackendErrorKind.TIMEOUT),
    (httpx.ReadTimeout("read timed out"), BackendErrorKind.TIMEOUT),
    (httpx.ConnectError("name resolution failed"), BackendErrorKind.NETWORK),
    (ConnectionResetError("reset by peer"), BackendErrorKind.NETWORK),
    (ValueError("unexpected payload"), BackendErrorKind.UNKNOWN),
])
def test_transport_failures(exc, kind):
    assert classify_error(exc, "fetch_wallet").kind == kind


def test_generic_message_mentioning_refresh_is_not_session_expired():
    error = classify_error(Exception("refresh failed for leaderboard"))

    assert error.kind == BackendErrorKind.UNKNOWN


def test_backend_errors_pass_through_unchanged():
    original = BackendError(BackendErrorKind.AUTH, "nope", operation="sign_up")

    assert classify_error(original, "other") is original


def test_error_without_message_uses_class_name():
    error = classify_error(ValueError())

    assert error.message == "ValueError"
    assert error.to_dict()["kind"] == "unknown"


@pytest.mark.asyncio
async def test_bounded_call_returns_result():
    async def quick():
        return 42

    assert await bounded_call(quick(), "quick", timeout=1) == 42


@pytest.mark.asyncio
async def test_bounded_call_times_out():
    with pytest.raises(BackendError) as exc_info:
        await bounded_call(asyncio.sleep(5), "fetch_wallet", timeout=0.01)

    assert exc_info.value.kind == BackendErrorKind.TIMEOUT
    assert exc_info.value.operation == "fetch_wallet"


def test_service_timeouts_come_from_settings():
    assert HTTPClientConfig.get_timeout("supabase") > 0
    assert HTTPClientConfig.get_timeout("webhook") > 0
    assert HTTPClientConfig.get_timeout("unknown") == HTTPClientConfig.get_timeout("default")


@pytest.mark.asyncio
async def test_created_client_carries_base_headers():
    client = create_client("webhook")
    try:
        assert client.headers["Accept"] == "application/json"
        assert "YowxMods" in client.headers["User-Agent"]
    finally:
        await client.aclose()
