from pydantic import ValidationError

from src.core.logger.logger import get_logger
from src.core.service.auth.models.user import AuthUser, Wallet
from src.core.service.backend.base import BackendGateway
from src.core.service.backend.errors import BackendError, BackendErrorKind
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity

logger = get_logger(__name__)


class ProfileService:
    """Builds the user view from the profile, wallet and auth user records"""

    def __init__(self, gateway: BackendGateway, diagnostics: DiagnosticsSink):
        self.gateway = gateway
        self.diagnostics = diagnostics

    async def load_wallet(self, user_id: str) -> Wallet:
        """
        Read the user's wallet, creating it when missing.

        Never raises: any failure yields a zero-balance placeholder.
        """
        try:
            wallet = await self.gateway.fetch_wallet(user_id)
            if wallet is None:
                # A zero delta makes the backend create the row
                await self.gateway.update_user_balance(user_id, 0)
                wallet = await self.gateway.fetch_wallet(user_id)
                if wallet is None:
                    raise BackendError(
                        BackendErrorKind.NOT_FOUND,
                        "Wallet missing after creation",
                        operation="fetch_wallet"
                    )
            return wallet
        except BackendError as e:
            return self._placeholder(user_id, e.message)
        except ValidationError as e:
            return self._placeholder(user_id, f"malformed wallet row ({e.error_count()} errors)")

    def _placeholder(self, user_id: str, reason: str) -> Wallet:
        logger.error("Wallet fetch error", extra={"user_id": user_id, "error": reason})
        self.diagnostics.record(f"Error fetching wallet: {reason}", Severity.ERROR)
        return Wallet.placeholder(user_id)

    async def resolve_user(self, user_id: str) -> AuthUser:
        """
        Merge profile, wallet and email into an AuthUser.

        Raises:
            BackendError: when the profile or the auth user cannot be read
        """
        profile = await self.gateway.fetch_profile(user_id)
        wallet = await self.load_wallet(user_id)
        email = await self.gateway.get_user_email()

        user = AuthUser(
            id=user_id,
            email=email,
            username=profile.username,
            coins=wallet.balance or 0,
            is_admin=bool(profile.is_admin),
            is_owner=bool(profile.is_owner),
            last_reward_claim=wallet.last_reward_claim,
            level=wallet.level or 1,
        )

        logger.info("User view resolved", extra={"user_id": user_id, "username": user.username})
        self.diagnostics.record(f"User logged in: {user.username}", Severity.INFO)
        return user
