import math
from typing import Optional, Union

from pydantic import ValidationError

from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.auth.error_handler import AuthErrorHandler
from src.core.service.auth.models.user import AuthUser
from src.core.service.auth.session_store import SessionStore
from src.core.service.backend.base import BackendGateway
from src.core.service.backend.errors import BackendError, BackendErrorKind
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity

logger = get_logger(__name__)


def round_coins(amount: Union[int, float]) -> int:
    """Round to the nearest whole coin, halves upward"""
    return int(math.floor(amount + 0.5))


class WalletService:
    """Applies coin deltas through the backend and mirrors the result locally"""

    def __init__(
        self,
        store: SessionStore,
        gateway: BackendGateway,
        error_handler: AuthErrorHandler,
        diagnostics: DiagnosticsSink
    ):
        self.store = store
        self.gateway = gateway
        self.error_handler = error_handler
        self.diagnostics = diagnostics

    async def update_user_coins(self, amount: Union[int, float]) -> Optional[AuthUser]:
        """
        Add `amount` (rounded) to the signed-in user's balance.

        The balance shown afterwards is the one read back from the wallet.
        If that read fails the delta is applied locally instead and the user
        view is marked as not synced with the backend.

        Returns:
            Updated user view, or None when nobody is signed in

        Raises:
            ServiceError: INVALID_INPUT for a non-finite amount,
                BALANCE_UPDATE_FAILED when the backend rejects the update
        """
        user = self.store.user
        if user is None:
            logger.debug("Coin update ignored, no user signed in")
            return None

        if not math.isfinite(amount):
            raise ServiceError(
                code=ServiceErrorCode.INVALID_INPUT,
                message="Amount must be a finite number",
                status_code=422
            )

        delta = round_coins(amount)

        try:
            await self.gateway.update_user_balance(user.id, delta)
        except BackendError as e:
            logger.error(
                "Error updating balance via RPC",
                extra={"user_id": user.id, "amount_change": delta, "error": e.message}
            )
            self.diagnostics.record(f"Error updating balance via RPC: {e.message}", Severity.ERROR)
            await self.error_handler.handle(e)
            raise ServiceError(
                code=ServiceErrorCode.BALANCE_UPDATE_FAILED,
                message="Failed to update balance",
                status_code=502,
                details={"kind": e.kind.value, "amount_change": delta}
            ) from e

        wallet = None
        reread_error: Optional[BackendError] = None
        try:
            wallet = await self.gateway.fetch_wallet(user.id)
        except BackendError as e:
            reread_error = e
        except ValidationError as e:
            reread_error = BackendError(
                BackendErrorKind.UNKNOWN,
                f"malformed wallet row ({e.error_count()} errors)",
                operation="fetch_wallet"
            )

        if reread_error is not None:
            logger.error("Error fetching updated wallet", extra={"user_id": user.id, "error": reread_error.message})
            self.diagnostics.record(f"Error fetching updated wallet: {reread_error.message}", Severity.ERROR)
            await self.error_handler.handle(reread_error)
            # No-op if the handler just signed the user out
            self.store.update_user(
                lambda prev: prev.model_copy(update={"coins": prev.coins + delta, "balance_synced": False})
            )
        elif wallet is not None:
            self.store.update_user(
                lambda prev: prev.model_copy(update={
                    "coins": wallet.balance,
                    "level": wallet.level or prev.level,
                    "balance_synced": True,
                })
            )

        sign = "+" if delta > 0 else ""
        logger.info("User coins updated", extra={"user_id": user.id, "amount_change": delta})
        self.diagnostics.record(f"User {user.username} coins updated: {sign}{delta} coins", Severity.INFO)

        return self.store.user
