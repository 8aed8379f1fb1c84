"""
Hosted backend abstraction.
Services depend on this interface; the Supabase adapter is one implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from src.core.service.auth.models.session import AuthEvent, Session
from src.core.service.auth.models.user import Profile, Wallet

AuthStateCallback = Callable[[AuthEvent, Optional[Session]], None]
Unsubscribe = Callable[[], None]


class BackendGateway(ABC):
    """
    Calls into the hosted auth, database, RPC and realtime services.

    Every method raises BackendError on failure; none of them retries.
    """

    # Auth

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> Optional[Session]:
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str, username: str) -> Optional[Session]:
        """Create an account; `username` travels as user metadata"""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def get_session(self) -> Optional[Session]:
        pass

    @abstractmethod
    async def get_user_email(self) -> Optional[str]:
        """Email of the currently authenticated user, as confirmed by the auth server"""
        pass

    @abstractmethod
    def on_auth_state_change(self, callback: AuthStateCallback) -> Unsubscribe:
        """
        Register a synchronous callback for auth state changes.

        Returns:
            Callable that removes the subscription
        """
        pass

    # Tables and RPCs

    @abstractmethod
    async def fetch_profile(self, user_id: str) -> Profile:
        pass

    @abstractmethod
    async def fetch_wallet(self, user_id: str) -> Optional[Wallet]:
        """Wallet row for the user, None when it does not exist yet"""
        pass

    @abstractmethod
    async def update_user_balance(self, user_id: str, amount_change: int) -> Any:
        """Apply a balance delta; creates the wallet row when missing"""
        pass

    @abstractmethod
    async def upsert_presence(self, user_id: str, status: str) -> None:
        pass

    @abstractmethod
    async def fetch_leaderboard(self, limit: int) -> List[Dict[str, Any]]:
        """Top wallets as dicts with `username` and `balance`, highest first"""
        pass

    @abstractmethod
    async def insert_bug_report(self, user_id: str, message: str) -> None:
        pass

    # Realtime

    @abstractmethod
    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        pass

    async def aclose(self) -> None:
        """Release network resources"""
        return None
