import time
import json
from datetime import datetime
from typing import Optional
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.core.logger.logger import logger

# Polled by the UI; logged at debug level only
QUIET_PATHS = ("/api/v1/health", "/api/v1/auth/state", "/api/v1/notices")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()

        # Get or generate correlation ID
        correlation_id = request.headers.get("X-Request-ID", str(uuid4()))

        log_context = {
            "request_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
            "timestamp": datetime.utcnow().isoformat() + "Z"
        }

        response: Optional[Response] = None
        try:
            response = await call_next(request)

            duration_ms = round((time.time() - start_time) * 1000, 2)
            log_context.update({
                "status_code": response.status_code,
                "duration_ms": duration_ms
            })

            response.headers["X-Request-ID"] = correlation_id

            context = getattr(request.app.state, "context", None)
            if context is not None and context.store.user is not None:
                log_context["user_id"] = context.store.user.id

            if request.url.path in QUIET_PATHS and response.status_code < 400:
                logger.debug(json.dumps(log_context))
            else:
                logger.info(json.dumps(log_context))

            return response

        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            log_context.update({
                "error": str(e),
                "error_type": e.__class__.__name__,
                "duration_ms": duration_ms
            })
            logger.error(json.dumps(log_context), exc_info=True)
            raise
