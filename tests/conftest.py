"""
Shared fixtures: an in-memory stand-in for the hosted backend and a
diagnostics sink that records events instead of posting them.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.core.context import AppContext
from src.core.service.auth.models.session import AuthEvent, Session
from src.core.service.auth.models.user import Profile, Wallet
from src.core.service.backend.base import AuthStateCallback, BackendGateway, Unsubscribe
from src.core.service.backend.errors import BackendError, BackendErrorKind
from src.core.service.diagnostics.sink import DiagnosticsSink, Severity
from src.infra.config.settings import Settings

ALICE_ID = "11111111-1111-1111-1111-111111111111"
ALICE_EMAIL = "alice@example.com"
ALICE_PASSWORD = "correct-horse"


class FakeGateway(BackendGateway):
    """In-memory backend with call recording and failure injection"""

    def __init__(self):
        self.accounts: Dict[str, Tuple[str, str]] = {}  # email -> (password, user_id)
        self.emails: Dict[str, str] = {}
        self.profiles: Dict[str, Profile] = {}
        self.wallets: Dict[str, Wallet] = {}
        self.current: Optional[Session] = None
        self.listeners: List[AuthStateCallback] = []

        self.calls: List[Tuple[str, tuple]] = []
        self.presence: List[Tuple[str, str]] = []
        self.broadcasts: List[Tuple[str, str, Dict[str, Any]]] = []
        self.bug_reports: List[Tuple[str, str]] = []
        self._failures: Dict[str, Tuple[BackendError, Optional[int]]] = {}

    # Test helpers

    def add_user(
        self,
        user_id: str,
        email: str,
        password: str,
        username: str,
        balance: Optional[int] = 0,
        is_admin: bool = False
    ) -> None:
        self.accounts[email] = (password, user_id)
        self.emails[user_id] = email
        self.profiles[user_id] = Profile(id=user_id, username=username, is_admin=is_admin, is_owner=False)
        if balance is not None:
            self.wallets[user_id] = Wallet(user_id=user_id, balance=balance, level=1)

    def fail(
        self,
        operation: str,
        kind: BackendErrorKind = BackendErrorKind.UNKNOWN,
        message: str = "backend unavailable",
        times: Optional[int] = None
    ) -> None:
        """Make `operation` raise; `times=None` keeps failing until cleared"""
        self._failures[operation] = (BackendError(kind, message, operation=operation), times)

    def clear_failure(self, operation: str) -> None:
        self._failures.pop(operation, None)

    def calls_to(self, operation: str) -> List[tuple]:
        return [args for name, args in self.calls if name == operation]

    def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for listener in list(self.listeners):
            listener(event, session)

    def session_for(self, user_id: str) -> Session:
        return Session(
            access_token=f"token-{user_id}",
            refresh_token=f"refresh-{user_id}",
            user_id=user_id,
            email=self.emails.get(user_id)
        )

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, args))
        if operation in self._failures:
            error, remaining = self._failures[operation]
            if remaining is not None:
                if remaining <= 1:
                    del self._failures[operation]
                else:
                    self._failures[operation] = (error, remaining - 1)
            raise error

    # Auth

    async def sign_in_with_password(self, email: str, password: str) -> Optional[Session]:
        self._record("sign_in_with_password", email)
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise BackendError(
                BackendErrorKind.AUTH,
                "Invalid login credentials",
                operation="sign_in_with_password",
                code="invalid_credentials"
            )
        self.current = self.session_for(account[1])
        self.emit(AuthEvent.SIGNED_IN, self.current)
        return self.current

    async def sign_up(self, email: str, password: str, username: str) -> Optional[Session]:
        self._record("sign_up", email, username)
        if email in self.accounts:
            raise BackendError(
                BackendErrorKind.AUTH,
                "User already registered",
                operation="sign_up",
                code="user_already_exists"
            )
        user_id = f"user-{len(self.accounts) + 1}"
        self.add_user(user_id, email, password, username, balance=None)
        self.current = self.session_for(user_id)
        self.emit(AuthEvent.SIGNED_IN, self.current)
        return self.current

    async def sign_out(self) -> None:
        self._record("sign_out")
        self.current = None
        self.emit(AuthEvent.SIGNED_OUT, None)

    async def get_session(self) -> Optional[Session]:
        self._record("get_session")
        return self.current

    async def get_user_email(self) -> Optional[str]:
        self._record("get_user_email")
        if self.current is None:
            return None
        return self.emails.get(self.current.user_id)

    def on_auth_state_change(self, callback: AuthStateCallback) -> Unsubscribe:
        self.listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self.listeners:
                self.listeners.remove(callback)

        return unsubscribe

    # Tables and RPCs

    async def fetch_profile(self, user_id: str) -> Profile:
        self._record("fetch_profile", user_id)
        if user_id not in self.profiles:
            raise BackendError(BackendErrorKind.NOT_FOUND, "profile not found", operation="fetch_profile")
        return self.profiles[user_id]

    async def fetch_wallet(self, user_id: str) -> Optional[Wallet]:
        self._record("fetch_wallet", user_id)
        return self.wallets.get(user_id)

    async def update_user_balance(self, user_id: str, amount_change: int) -> Any:
        self._record("update_user_balance", user_id, amount_change)
        wallet = self.wallets.get(user_id) or Wallet(user_id=user_id, balance=0, level=1)
        self.wallets[user_id] = wallet.model_copy(update={"balance": wallet.balance + amount_change})
        return self.wallets[user_id].balance

    async def upsert_presence(self, user_id: str, status: str) -> None:
        self._record("upsert_presence", user_id, status)
        self.presence.append((user_id, status))

    async def fetch_leaderboard(self, limit: int) -> List[Dict[str, Any]]:
        self._record("fetch_leaderboard", limit)
        rows = [
            {"username": self.profiles[user_id].username, "balance": wallet.balance}
            for user_id, wallet in self.wallets.items()
            if user_id in self.profiles
        ]
        return sorted(rows, key=lambda row: row["balance"], reverse=True)[:limit]

    async def insert_bug_report(self, user_id: str, message: str) -> None:
        self._record("insert_bug_report", user_id, message)
        self.bug_reports.append((user_id, message))

    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        self._record("broadcast", channel, event)
        self.broadcasts.append((channel, event, payload))


class RecordingSink(DiagnosticsSink):
    """Diagnostics sink keeping every event in memory"""

    def __init__(self):
        self.events: List[Tuple[str, Severity]] = []

    def record(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.events.append((message, Severity(severity)))

    def messages(self, severity: Optional[Severity] = None) -> List[str]:
        return [message for message, level in self.events if severity is None or level == severity]


@pytest.fixture
def gateway() -> FakeGateway:
    fake = FakeGateway()
    fake.add_user(ALICE_ID, ALICE_EMAIL, ALICE_PASSWORD, "alice", balance=50)
    return fake


@pytest.fixture
def diagnostics() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def test_settings() -> Settings:
    # Long intervals so background loops only tick once per test
    return Settings(
        PRESENCE_INTERVAL_SECONDS=3600,
        LEADERBOARD_REFRESH_SECONDS=3600,
        DISCORD_WEBHOOK_URL=None,
    )


@pytest.fixture
def context(gateway, diagnostics, test_settings) -> AppContext:
    return AppContext(gateway, diagnostics, test_settings)


@pytest.fixture
async def started_context(context):
    await context.start()
    try:
        yield context
    finally:
        await context.shutdown()


@pytest.fixture
async def signed_in_context(started_context):
    await started_context.auth.login(ALICE_EMAIL, ALICE_PASSWORD)
    return started_context


@pytest.fixture
def app(context):
    return create_app(context=context)


@pytest.fixture
def client(app):
    # Entering the client runs startup and shutdown handlers
    with TestClient(app) as test_client:
        yield test_client
