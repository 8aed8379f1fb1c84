"""
Supabase implementation of the backend gateway.
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from supabase import AsyncClient, acreate_client

from src.core.http_client import HTTPClientConfig, bounded_call
from src.core.logger.logger import get_logger
from src.core.service.auth.models.session import AuthEvent, Session
from src.core.service.auth.models.user import Profile, Wallet
from src.core.service.backend.base import AuthStateCallback, BackendGateway, Unsubscribe
from src.core.service.backend.errors import BackendError, classify_error

logger = get_logger(__name__)

T = TypeVar("T")


def to_session(raw: Any) -> Optional[Session]:
    """Convert a supabase auth session into the local Session model"""
    if raw is None or getattr(raw, "user", None) is None:
        return None

    expires_at = None
    if getattr(raw, "expires_at", None):
        expires_at = datetime.fromtimestamp(raw.expires_at, tz=timezone.utc)

    return Session(
        access_token=raw.access_token,
        refresh_token=getattr(raw, "refresh_token", None),
        expires_at=expires_at,
        user_id=str(raw.user.id),
        email=getattr(raw.user, "email", None)
    )


class SupabaseGateway(BackendGateway):
    """Backend gateway over the async supabase client"""

    def __init__(self, client: AsyncClient, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout or HTTPClientConfig.get_timeout("supabase")
        self._channels: Dict[str, Any] = {}

    @classmethod
    async def connect(cls, url: Optional[str], key: Optional[str]) -> "SupabaseGateway":
        """Create the supabase client for the given project"""
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be configured")

        client = await acreate_client(url, key)
        logger.info("Supabase client created", extra={"supabase_url": url})
        return cls(client)

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await bounded_call(awaitable, operation, timeout=self.timeout)
        except BackendError:
            raise
        except Exception as e:
            error = classify_error(e, operation)
            logger.debug(
                "Supabase call failed",
                extra={"operation": operation, "error_kind": error.kind.value, "error": error.message}
            )
            raise error from e

    # Auth

    async def sign_in_with_password(self, email: str, password: str) -> Optional[Session]:
        response = await self._call(
            "sign_in_with_password",
            self.client.auth.sign_in_with_password({"email": email, "password": password})
        )
        return to_session(getattr(response, "session", None))

    async def sign_up(self, email: str, password: str, username: str) -> Optional[Session]:
        response = await self._call(
            "sign_up",
            self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"username": username}}
            })
        )
        return to_session(getattr(response, "session", None))

    async def sign_out(self) -> None:
        await self._call("sign_out", self.client.auth.sign_out())

    async def get_session(self) -> Optional[Session]:
        raw = await self._call("get_session", self.client.auth.get_session())
        return to_session(raw)

    async def get_user_email(self) -> Optional[str]:
        response = await self._call("get_user", self.client.auth.get_user())
        user = getattr(response, "user", None)
        return getattr(user, "email", None) if user else None

    def on_auth_state_change(self, callback: AuthStateCallback) -> Unsubscribe:
        def listener(event: str, raw_session: Any) -> None:
            try:
                auth_event = AuthEvent(str(event))
            except ValueError:
                logger.debug("Ignoring auth event", extra={"auth_event": str(event)})
                return
            callback(auth_event, to_session(raw_session))

        subscription = self.client.auth.on_auth_state_change(listener)
        return subscription.unsubscribe

    # Tables and RPCs

    async def fetch_profile(self, user_id: str) -> Profile:
        response = await self._call(
            "fetch_profile",
            self.client.table("profiles").select("*").eq("id", user_id).single().execute()
        )
        return Profile(**response.data)

    async def fetch_wallet(self, user_id: str) -> Optional[Wallet]:
        response = await self._call(
            "fetch_wallet",
            self.client.table("wallets").select("*").eq("user_id", user_id).maybe_single().execute()
        )
        # maybe_single yields no response at all when the row is missing
        if response is None or not response.data:
            return None
        return Wallet(**response.data)

    async def update_user_balance(self, user_id: str, amount_change: int) -> Any:
        response = await self._call(
            "update_user_balance",
            self.client.rpc(
                "update_user_balance",
                {"target_user_id": user_id, "amount_change": amount_change}
            ).execute()
        )
        return response.data

    async def upsert_presence(self, user_id: str, status: str) -> None:
        await self._call(
            "insert_or_update_user_presence",
            self.client.rpc(
                "insert_or_update_user_presence",
                {"p_user_id": user_id, "p_status": status}
            ).execute()
        )

    async def fetch_leaderboard(self, limit: int) -> List[Dict[str, Any]]:
        response = await self._call(
            "fetch_leaderboard",
            self.client.table("wallets")
            .select("balance, profiles:profiles(username)")
            .order("balance", desc=True)
            .limit(limit)
            .execute()
        )

        rows = []
        for row in response.data or []:
            profile = row.get("profiles") or {}
            # Wallets without a profile row have no name to show
            if not profile.get("username"):
                continue
            rows.append({"username": profile["username"], "balance": row.get("balance") or 0})
        return rows

    async def insert_bug_report(self, user_id: str, message: str) -> None:
        await self._call(
            "insert_bug_report",
            self.client.table("bug_reports").insert({"user_id": user_id, "message": message}).execute()
        )

    # Realtime

    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        realtime_channel = self._channels.get(channel)
        if realtime_channel is None:
            realtime_channel = self.client.channel(channel)
            await self._call("subscribe_channel", realtime_channel.subscribe())
            self._channels[channel] = realtime_channel

        await self._call("broadcast", realtime_channel.send_broadcast(event, payload))

    async def aclose(self) -> None:
        if not self._channels:
            return
        try:
            await self.client.remove_all_channels()
        except Exception as e:
            logger.warning(f"Failed to close realtime channels: {str(e)}")
        finally:
            self._channels.clear()
