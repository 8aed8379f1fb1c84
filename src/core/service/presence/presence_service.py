"""
Presence heartbeat for the signed-in user.
"""

import asyncio
from contextlib import suppress
from typing import Callable, Optional

from src.core.logger.logger import get_logger
from src.core.service.auth.error_handler import AuthErrorHandler
from src.core.service.auth.models.user import AuthState
from src.core.service.auth.session_store import SessionStore
from src.core.service.backend.base import BackendGateway
from src.core.service.backend.errors import BackendError
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

ONLINE = "online"


class PresenceService:
    """
    Announces the signed-in user as online.

    Follows the session store: a loop starts when a user appears, pinging
    immediately and then every `interval` seconds, and is cancelled when the
    user goes away. A failed ping is logged and the loop carries on.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: BackendGateway,
        error_handler: AuthErrorHandler,
        diagnostics: DiagnosticsSink,
        interval: Optional[float] = None,
        channel: Optional[str] = None,
        event: Optional[str] = None
    ):
        self.store = store
        self.gateway = gateway
        self.error_handler = error_handler
        self.diagnostics = diagnostics
        self.interval = interval if interval is not None else settings.PRESENCE_INTERVAL_SECONDS
        self.channel = channel or settings.PRESENCE_CHANNEL
        self.event = event or settings.PRESENCE_EVENT

        self._task: Optional[asyncio.Task] = None
        self._tracked_user_id: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Follow the session store"""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_state)
        self._on_state(self.store.state)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._cancel_loop()

    def _on_state(self, state: AuthState) -> None:
        user_id = state.user.id if state.user is not None else None
        if user_id == self._tracked_user_id and (user_id is None or self.running):
            return

        if self._task is not None:
            # Cleared from inside a ping; _run exits once the ping returns
            if self._task is not asyncio.current_task():
                self._task.cancel()
            self._task = None

        self._tracked_user_id = user_id
        if user_id is not None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _cancel_loop(self) -> None:
        task, self._task = self._task, None
        self._tracked_user_id = None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await self.ping()
            if asyncio.current_task() is not self._task:
                return
            await asyncio.sleep(self.interval)

    async def ping(self) -> bool:
        """
        Send one presence update for the current user.

        Returns:
            True when the presence RPC succeeded
        """
        user = self.store.user
        if user is None:
            return False

        succeeded = True
        try:
            await self.gateway.upsert_presence(user.id, ONLINE)
        except BackendError as e:
            succeeded = False
            logger.error("Error updating user presence", extra={"user_id": user.id, "error": e.message})
            self.diagnostics.record(f"Error updating user presence: {e.message}", Severity.ERROR)
            if await self.error_handler.handle(e):
                return False

        try:
            await self.gateway.broadcast(self.channel, self.event, {"user_id": user.id})
        except BackendError as e:
            logger.warning("Presence broadcast failed", extra={"user_id": user.id, "error": e.message})

        return succeeded
