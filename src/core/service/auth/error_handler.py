from src.core.logger.logger import get_logger
from src.core.service.auth.session_store import SessionStore
from src.core.service.backend.base import BackendGateway
from src.core.service.backend.errors import BackendError
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity
from src.core.service.notifications.notifier import Notifier

logger = get_logger(__name__)


class AuthErrorHandler:
    """Forces a sign-out when the backend reports the session can no longer be refreshed"""

    def __init__(
        self,
        store: SessionStore,
        gateway: BackendGateway,
        notifier: Notifier,
        diagnostics: DiagnosticsSink
    ):
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self.diagnostics = diagnostics

    async def handle(self, error: BaseException) -> bool:
        """
        Clear the session if `error` means it expired.

        Returns:
            True when the session was cleared
        """
        if not isinstance(error, BackendError) or not error.is_session_expired:
            return False

        logger.error("Auth error detected", extra={"error": error.message, "operation": error.operation})
        self.diagnostics.record(f"Auth error detected: {error.message}", Severity.ERROR)

        self.store.clear()

        try:
            await self.gateway.sign_out()
        except BackendError as e:
            logger.warning(f"Forced sign-out failed: {e.message}")

        self.notifier.error("Session expired", "Please log in again to continue.")
        return True
