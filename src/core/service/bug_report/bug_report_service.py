from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.auth.session_store import SessionStore
from src.core.service.backend.base import BackendGateway
from src.core.service.backend.errors import BackendError
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity
from src.core.service.notifications.notifier import Notifier

logger = get_logger(__name__)


class BugReportService:
    """Stores bug reports from signed-in users and forwards them to diagnostics"""

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

    async def submit(self, message: str) -> None:
        """
        Submit a bug report for the signed-in user.

        Raises:
            ServiceError: NOT_AUTHENTICATED, INVALID_INPUT or BACKEND_ERROR
        """
        user = self.store.user
        if user is None:
            self.notifier.error("Error", "You must be logged in to submit a bug report")
            raise ServiceError(
                code=ServiceErrorCode.NOT_AUTHENTICATED,
                message="You must be logged in to submit a bug report",
                status_code=401
            )

        text = (message or "").strip()
        if not text:
            self.notifier.error("Error", "Please enter a message")
            raise ServiceError(
                code=ServiceErrorCode.INVALID_INPUT,
                message="Please enter a message",
                status_code=422
            )

        try:
            await self.gateway.insert_bug_report(user.id, text)
        except BackendError as e:
            logger.error("Error submitting bug report", extra={"user_id": user.id, "error": e.message})
            self.notifier.error("Error", "Failed to submit bug report")
            raise ServiceError(
                code=ServiceErrorCode.BACKEND_ERROR,
                message="Failed to submit bug report",
                status_code=502,
                details={"kind": e.kind.value}
            ) from e

        self.diagnostics.record(f"Bug Report from {user.username}:\n{text}", Severity.WARNING)
        self.notifier.notify("Success", "Your bug report has been submitted")
        logger.info("Bug report submitted", extra={"user_id": user.id, "length": len(text)})
