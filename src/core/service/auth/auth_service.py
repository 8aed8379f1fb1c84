import asyncio
from contextlib import suppress
from typing import Optional, Tuple

from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.auth.error_handler import AuthErrorHandler
from src.core.service.auth.models.session import AuthEvent, Session
from src.core.service.auth.models.user import AuthState
from src.core.service.auth.profile_service import ProfileService
from src.core.service.auth.session_store import SessionStore
from src.core.service.backend.base import BackendGateway, Unsubscribe
from src.core.service.backend.errors import BackendError
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity
from src.core.service.notifications.notifier import Notifier

logger = get_logger(__name__)


class AuthService:
    """
    Login, signup and logout, plus tracking of backend auth state.

    Auth state events are queued and applied one at a time by a single
    worker task, which is the only place a new session is resolved into a
    user view.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: BackendGateway,
        profiles: ProfileService,
        error_handler: AuthErrorHandler,
        notifier: Notifier,
        diagnostics: DiagnosticsSink
    ):
        self.store = store
        self.gateway = gateway
        self.profiles = profiles
        self.error_handler = error_handler
        self.notifier = notifier
        self.diagnostics = diagnostics

        self._events: "asyncio.Queue[Tuple[AuthEvent, Optional[Session]]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def state(self) -> AuthState:
        return self.store.state

    async def start(self) -> None:
        """Subscribe to auth state changes and load the stored session"""
        if self._worker is not None:
            return

        self._worker = asyncio.create_task(self._process_events())
        self._unsubscribe = self.gateway.on_auth_state_change(self._enqueue)

        try:
            session = await self.gateway.get_session()
            self._enqueue(AuthEvent.INITIAL_SESSION, session)
            await self.wait_until_idle()
        except BackendError as e:
            logger.error("Setup auth error", extra={"error": e.message, "error_kind": e.kind.value})
            await self.error_handler.handle(e)
        finally:
            self.store.set_loading(False)

    async def shutdown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        if self._worker is not None:
            self._worker.cancel()
            with suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    def _enqueue(self, event: AuthEvent, session: Optional[Session]) -> None:
        self._events.put_nowait((event, session))

    async def wait_until_idle(self) -> None:
        """Block until every queued auth event has been applied"""
        if self._worker is not None and not self._worker.done():
            await self._events.join()

    async def _process_events(self) -> None:
        while True:
            event, session = await self._events.get()
            try:
                await self._apply_event(event, session)
            except Exception as e:
                logger.error(
                    "Auth state change error",
                    extra={"auth_event": event.value, "error": str(e)},
                    exc_info=True
                )
                await self.error_handler.handle(e)
            finally:
                self._events.task_done()

    async def _apply_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.debug("Auth state changed", extra={"auth_event": event.value, "has_session": session is not None})

        if event == AuthEvent.TOKEN_REFRESHED:
            self.diagnostics.record("Token refreshed successfully", Severity.INFO)

        self.store.set_session(session)

        if session is not None:
            await self._resolve_user(session.user_id)
        else:
            self.store.set_user(None)

    async def _resolve_user(self, user_id: str) -> None:
        try:
            user = await self.profiles.resolve_user(user_id)
        except BackendError as e:
            logger.error(
                "Error fetching user data",
                extra={"user_id": user_id, "error": e.message, "error_kind": e.kind.value}
            )
            self.diagnostics.record(f"Error fetching user data: {e.message}", Severity.ERROR)
            await self.error_handler.handle(e)
            return

        # Signed out while the records were loading
        current = self.store.session
        if current is None or current.user_id != user_id:
            logger.info("Discarding user view for a session that is no longer current", extra={"user_id": user_id})
            return

        self.store.set_user(user)

    async def login(self, email: str, password: str) -> AuthState:
        """
        Sign in with email and password.

        Returns:
            The store state once the new session has been applied

        Raises:
            ServiceError: AUTH_FAILED when the backend rejects the credentials
        """
        self.store.set_loading(True)
        try:
            await self.gateway.sign_in_with_password(email, password)

            self.notifier.notify("Login successful!", "Welcome back to Yowx Mods!")
            logger.info("User login successful", extra={"email": email})
            self.diagnostics.record(f"User login successful: {email}", Severity.INFO)

            await self.wait_until_idle()

        except BackendError as e:
            description = e.message or "Please check your credentials and try again."
            self.notifier.error("Login failed", description)
            logger.warning("Login failed", extra={"email": email, "error": e.message})
            self.diagnostics.record(f"Login failed: {e.message}", Severity.ERROR)
            raise ServiceError(
                code=ServiceErrorCode.AUTH_FAILED,
                message=description,
                status_code=401,
                details={"kind": e.kind.value}
            ) from e

        finally:
            self.store.set_loading(False)

        return self.store.state

    async def signup(self, email: str, username: str, password: str) -> AuthState:
        """
        Create an account with `username` stored as user metadata.

        Raises:
            ServiceError: SIGNUP_FAILED when the backend rejects the signup
        """
        self.store.set_loading(True)
        try:
            await self.gateway.sign_up(email, password, username)

            self.notifier.notify("Account created!", "Welcome to Yowx Mods!")
            logger.info("New user signup", extra={"email": email, "username": username})
            self.diagnostics.record(f"New user signup: {username} ({email})", Severity.INFO)

            await self.wait_until_idle()

        except BackendError as e:
            description = e.message or "Please check your information and try again."
            self.notifier.error("Signup failed", description)
            logger.warning("Signup failed", extra={"email": email, "error": e.message})
            self.diagnostics.record(f"Signup failed: {e.message}", Severity.ERROR)
            raise ServiceError(
                code=ServiceErrorCode.SIGNUP_FAILED,
                message=description,
                status_code=400,
                details={"kind": e.kind.value}
            ) from e

        finally:
            self.store.set_loading(False)

        return self.store.state

    async def logout(self) -> AuthState:
        """Sign out; local state is cleared even when the backend call fails"""
        user = self.store.user
        if user is not None:
            self.diagnostics.record(f"User logged out: {user.username}", Severity.INFO)

        try:
            await self.gateway.sign_out()
        except BackendError as e:
            logger.error("Logout failed", extra={"error": e.message})
            self.diagnostics.record(f"Logout failed: {e.message}", Severity.ERROR)
        finally:
            self.store.clear()

        await self.wait_until_idle()
        return self.store.state
