"""
Application context: owns the session store and every service built on it.
Routers reach it through `request.app.state.context`.
"""

import asyncio
from typing import Optional

from src.core.logger.logger import get_logger
from src.core.service.auth.auth_service import AuthService
from src.core.service.auth.error_handler import AuthErrorHandler
from src.core.service.auth.profile_service import ProfileService
from src.core.service.auth.session_store import SessionStore
from src.core.service.backend.base import BackendGateway
from src.core.service.bug_report.bug_report_service import BugReportService
from src.core.service.diagnostics.sink import DiagnosticsSink, create_diagnostics_sink
from src.core.service.i18n.language_service import LanguageService
from src.core.service.leaderboard.leaderboard_service import LeaderboardService
from src.core.service.notifications.notifier import Notifier
from src.core.service.presence.presence_service import PresenceService
from src.core.service.wallet.wallet_service import WalletService
from src.infra.config.settings import Settings, get_settings

logger = get_logger(__name__)


class AppContext:
    """Wires services around one gateway, one store and one diagnostics sink"""

    def __init__(
        self,
        gateway: BackendGateway,
        diagnostics: DiagnosticsSink,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.diagnostics = diagnostics

        self.store = SessionStore()
        self.notifier = Notifier()
        self.error_handler = AuthErrorHandler(self.store, gateway, self.notifier, diagnostics)
        self.profiles = ProfileService(gateway, diagnostics)
        self.auth = AuthService(
            self.store, gateway, self.profiles, self.error_handler, self.notifier, diagnostics
        )
        self.wallet = WalletService(self.store, gateway, self.error_handler, diagnostics)
        self.presence = PresenceService(
            self.store,
            gateway,
            self.error_handler,
            diagnostics,
            interval=self.settings.PRESENCE_INTERVAL_SECONDS,
            channel=self.settings.PRESENCE_CHANNEL,
            event=self.settings.PRESENCE_EVENT
        )
        self.leaderboard = LeaderboardService(
            gateway,
            limit=self.settings.LEADERBOARD_LIMIT,
            interval=self.settings.LEADERBOARD_REFRESH_SECONDS
        )
        self.bug_reports = BugReportService(self.store, gateway, self.notifier, diagnostics)
        self.language = LanguageService(self.settings.DEFAULT_LANGUAGE)

        self._started = False

    @classmethod
    async def create(cls, settings: Optional[Settings] = None) -> "AppContext":
        """Build a context talking to the configured Supabase project"""
        from src.core.service.backend.supabase_gateway import SupabaseGateway

        settings = settings or get_settings()
        gateway = await SupabaseGateway.connect(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        diagnostics = create_diagnostics_sink(settings.DISCORD_WEBHOOK_URL)
        return cls(gateway, diagnostics, settings)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True

        self.presence.start()
        self.leaderboard.start()
        await self.auth.start()

        logger.info("Application context started", extra={"authenticated": self.store.state.is_authenticated})

    async def shutdown(self) -> None:
        if not self._started:
            return
        self._started = False

        await asyncio.gather(
            self.presence.stop(),
            self.leaderboard.stop(),
            self.auth.shutdown(),
        )
        await self.diagnostics.aclose()
        await self.gateway.aclose()

        logger.info("Application context stopped")
