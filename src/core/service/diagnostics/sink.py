"""
Diagnostics forwarding to an external notification channel.

Delivery is fire-and-forget: `record` schedules the send and returns at once,
and a failed delivery is dropped.
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Set

import httpx

from src.core.http_client import create_client
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

# Discord rejects message content longer than this
DISCORD_CONTENT_LIMIT = 2000


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticsSink(ABC):
    """Destination for operational events"""

    @abstractmethod
    def record(self, message: str, severity: Severity = Severity.INFO) -> None:
        pass

    async def flush(self) -> None:
        """Wait for deliveries already scheduled"""
        return None

    async def aclose(self) -> None:
        await self.flush()


class NullDiagnosticsSink(DiagnosticsSink):
    """Used when no webhook is configured; events only reach the local log"""

    def record(self, message: str, severity: Severity = Severity.INFO) -> None:
        logger.debug("Diagnostic event", extra={"event": message, "severity": Severity(severity).value})


class DiscordWebhookSink(DiagnosticsSink):
    """Posts each event to a Discord compatible webhook"""

    def __init__(self, webhook_url: str, client: Optional[httpx.AsyncClient] = None):
        self.webhook_url = webhook_url
        self.client = client or create_client("webhook")
        self._pending: Set[asyncio.Task] = set()

    @staticmethod
    def format_message(message: str, severity: Severity) -> str:
        content = f"[{Severity(severity).value.upper()}] {message}"
        if len(content) > DISCORD_CONTENT_LIMIT:
            content = content[:DISCORD_CONTENT_LIMIT - 3] + "..."
        return content

    def record(self, message: str, severity: Severity = Severity.INFO) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, diagnostic event dropped", extra={"event": message})
            return

        task = loop.create_task(self._deliver(self.format_message(message, severity)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, content: str) -> None:
        try:
            response = await self.client.post(self.webhook_url, json={"content": content})
            if response.status_code >= 400:
                logger.debug(
                    "Diagnostics webhook rejected event",
                    extra={"status_code": response.status_code}
                )
        except Exception as e:
            logger.debug(f"Diagnostics webhook delivery failed: {str(e)}")

    async def flush(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.flush()
        await self.client.aclose()


def create_diagnostics_sink(webhook_url: Optional[str]) -> DiagnosticsSink:
    if webhook_url:
        return DiscordWebhookSink(webhook_url)
    logger.info("No diagnostics webhook configured, events stay local")
    return NullDiagnosticsSink()
