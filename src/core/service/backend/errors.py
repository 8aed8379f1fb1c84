"""
Structured errors raised by the hosted backend boundary.
Raw platform exceptions are classified once, here, so services can branch on kind.
"""

import asyncio
from enum import Enum
from typing import Optional

import httpx


class BackendErrorKind(str, Enum):
    """Kinds of backend failures services can react to"""
    REFRESH_TOKEN_INVALID = "refresh_token_invalid"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UNKNOWN = "unknown"


class BackendError(Exception):
    """Failure of a single call into the hosted backend"""

    def __init__(
        self,
        kind: BackendErrorKind,
        message: str,
        operation: Optional[str] = None,
        code: Optional[str] = None
    ):
        self.kind = kind
        self.message = message
        self.operation = operation
        self.code = code
        super().__init__(message)

    @property
    def is_session_expired(self) -> bool:
        return self.kind == BackendErrorKind.REFRESH_TOKEN_INVALID

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "operation": self.operation,
            "code": self.code,
        }


# Auth API error codes meaning the stored refresh token can no longer be used
REFRESH_TOKEN_CODES = frozenset({
    "refresh_token_not_found",
    "refresh_token_already_used",
    "session_not_found",
    "session_expired",
})

# Older auth servers only report these in the message text
REFRESH_TOKEN_MESSAGES = ("Invalid Refresh Token", "Refresh Token Not Found")

AUTH_CODES = frozenset({
    "invalid_credentials",
    "email_not_confirmed",
    "user_already_exists",
    "email_exists",
    "weak_password",
    "bad_jwt",
    "no_authorization",
})


def classify_error(exc: BaseException, operation: Optional[str] = None) -> BackendError:
    """
    Map a raw platform exception to a BackendError.

    Args:
        exc: Exception raised by the platform client
        operation: Name of the backend call that failed

    Returns:
        BackendError with the matching kind
    """
    if isinstance(exc, BackendError):
        return exc

    code = getattr(exc, "code", None)
    code = str(code) if code is not None else None
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    status = getattr(exc, "status", None)

    if code in REFRESH_TOKEN_CODES or any(marker in message for marker in REFRESH_TOKEN_MESSAGES):
        kind = BackendErrorKind.REFRESH_TOKEN_INVALID
    elif code in AUTH_CODES or (status in (400, 401, 403, 422) and type(exc).__name__.startswith("Auth")):
        kind = BackendErrorKind.AUTH
    elif code == "PGRST116":
        kind = BackendErrorKind.NOT_FOUND
    elif isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        kind = BackendErrorKind.TIMEOUT
    elif isinstance(exc, (ConnectionError, OSError, httpx.TransportError)):
        kind = BackendErrorKind.NETWORK
    else:
        kind = BackendErrorKind.UNKNOWN

    return BackendError(kind, message, operation=operation, code=code)
