"""
Centralized error handling.
Provides consistent error responses, logging, and HTTP status codes across all services.
"""

import traceback
from typing import Dict, Any, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime

from src.core.logger.logger import get_logger
from src.core.service.backend.errors import BackendError, BackendErrorKind
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class ServiceErrorCode:
    """Standard error codes for services"""

    # Validation
    INVALID_INPUT = "INVALID_INPUT"

    # Authentication
    AUTH_FAILED = "AUTH_FAILED"
    SIGNUP_FAILED = "SIGNUP_FAILED"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"

    # Business Logic
    BALANCE_UPDATE_FAILED = "BALANCE_UPDATE_FAILED"
    NOT_FOUND = "NOT_FOUND"

    # System
    BACKEND_ERROR = "BACKEND_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class ServiceError(Exception):
    """
    Standardized service error for internal use.
    Gets converted to proper HTTP response by error handler.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.context = context or {}
        super().__init__(message)


# HTTP status and error code for backend failures that reach a route
BACKEND_ERROR_RESPONSES = {
    BackendErrorKind.REFRESH_TOKEN_INVALID: (401, ServiceErrorCode.SESSION_EXPIRED),
    BackendErrorKind.AUTH: (401, ServiceErrorCode.AUTH_FAILED),
    BackendErrorKind.NOT_FOUND: (404, ServiceErrorCode.NOT_FOUND),
    BackendErrorKind.TIMEOUT: (504, ServiceErrorCode.TIMEOUT),
    BackendErrorKind.NETWORK: (502, ServiceErrorCode.BACKEND_ERROR),
    BackendErrorKind.UNKNOWN: (502, ServiceErrorCode.BACKEND_ERROR),
}


def build_error_response(
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """Error envelope shared by every failing endpoint"""
    error: Dict[str, Any] = {
        "code": error_code,
        "message": message,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    if details:
        error["details"] = details
    if request_id:
        error["request_id"] = request_id

    return {"success": False, "error": error}


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_id": request.headers.get("X-Request-ID", "unknown"),
        "path": request.url.path,
        "method": request.method,
    }


def _respond(request: Request, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
    return JSONResponse(
        status_code=status_code,
        content=build_error_response(
            error_code=code,
            message=message,
            details=details,
            request_id=request.headers.get("X-Request-ID", "unknown")
        )
    )


class GlobalErrorHandler:
    """Exception handlers registered on the application"""

    @staticmethod
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Service error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "context": exc.context,
                **_request_context(request)
            }
        )
        return _respond(request, exc.status_code, exc.code, exc.message, exc.details)

    @staticmethod
    async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
        """Backend failures no service turned into a ServiceError"""
        status_code, code = BACKEND_ERROR_RESPONSES.get(exc.kind, (502, ServiceErrorCode.BACKEND_ERROR))
        logger.error(
            f"Unhandled backend error: {exc.kind.value}",
            extra={"backend_error": exc.to_dict(), **_request_context(request)}
        )
        return _respond(request, status_code, code, exc.message, {"kind": exc.kind.value})

    @staticmethod
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        validation_errors = [
            {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        logger.warning(
            f"Validation error: {len(validation_errors)} errors",
            extra={"validation_errors": validation_errors, **_request_context(request)}
        )
        return _respond(
            request,
            422,
            ServiceErrorCode.INVALID_INPUT,
            "Validation failed",
            {"validation_errors": validation_errors}
        )

    @staticmethod
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unexpected error: {type(exc).__name__}",
            extra={"error_type": type(exc).__name__, "error_message": str(exc), **_request_context(request)},
            exc_info=True
        )

        # Never expose internal errors in production
        if settings.DEBUG:
            message = f"Internal error: {str(exc)}"
            details = {"traceback": traceback.format_exc()}
        else:
            message = "An unexpected error occurred. Please try again."
            details = {}

        return _respond(request, 500, ServiceErrorCode.INTERNAL_ERROR, message, details)
