"""
HTTP client configuration and timeout-bounded call helper.
NO RETRY mechanisms - every outbound call fails fast.
NO GLOBAL instances - each service manages its own lifecycle.
"""

import asyncio
import httpx
from typing import Any, Awaitable, Dict, Optional, TypeVar

from src.core.service.backend.errors import BackendError, BackendErrorKind
from src.infra.config.settings import get_settings

settings = get_settings()

T = TypeVar("T")


class HTTPClientConfig:
    """HTTP client configuration shared by outbound services"""

    @classmethod
    def get_timeout(cls, service: str) -> float:
        """Get timeout for specific service"""
        timeout_map = {
            "default": settings.HTTP_DEFAULT_TIMEOUT,
            "supabase": settings.HTTP_SUPABASE_TIMEOUT,
            "webhook": settings.HTTP_WEBHOOK_TIMEOUT,
        }
        return timeout_map.get(service, settings.HTTP_DEFAULT_TIMEOUT)

    @classmethod
    def get_base_headers(cls) -> Dict[str, str]:
        """Get base headers for HTTP requests"""
        return {
            "User-Agent": f"{settings.APP_NAME}-Client/{settings.APP_VERSION}",
            "Accept": "application/json",
        }

    @classmethod
    def create_client_config(cls, service: str = "default", timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Create HTTP client configuration (NOT the client itself).
        Each service should create its own client instance using this config.

        Args:
            service: Service name for timeout configuration
            timeout: Override timeout (optional)

        Returns:
            Dict with client configuration
        """
        client_timeout = timeout or cls.get_timeout(service)

        return {
            "timeout": client_timeout,
            "limits": httpx.Limits(
                max_connections=settings.HTTP_MAX_CONNECTIONS,
                max_keepalive_connections=settings.HTTP_MAX_KEEPALIVE_CONNECTIONS
            ),
            "headers": cls.get_base_headers(),
            "follow_redirects": False,  # Explicit control
        }


def create_client(service: str = "default", **kwargs) -> httpx.AsyncClient:
    """
    Create an HTTP client for a long-lived service.
    WARNING: The owner must close the client on shutdown!

    Args:
        service: Service name for configuration
        **kwargs: Additional httpx.AsyncClient arguments

    Returns:
        httpx.AsyncClient: Configured client (must be closed!)
    """
    config = HTTPClientConfig.create_client_config(service)
    config.update(kwargs)
    return httpx.AsyncClient(**config)


async def bounded_call(
    awaitable: Awaitable[T],
    operation: str,
    service: str = "supabase",
    timeout: Optional[float] = None
) -> T:
    """
    Await a remote call with an upper time bound.

    Cancelling the awaiting task cancels the in-flight call as well.

    Raises:
        BackendError: with kind TIMEOUT when the bound is exceeded
    """
    limit = timeout or HTTPClientConfig.get_timeout(service)
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError:
        raise BackendError(
            BackendErrorKind.TIMEOUT,
            f"{operation} timed out after {limit} seconds",
            operation=operation
        )
