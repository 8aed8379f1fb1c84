"""
FastAPI dependency injection functions.
Every dependency resolves from the AppContext stored on the application.
"""

from fastapi import Depends, Request

from src.core.context import AppContext
from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.service.auth.auth_service import AuthService
from src.core.service.auth.models.user import AuthUser
from src.core.service.bug_report.bug_report_service import BugReportService
from src.core.service.i18n.language_service import LanguageService
from src.core.service.leaderboard.leaderboard_service import LeaderboardService
from src.core.service.presence.presence_service import PresenceService
from src.core.service.wallet.wallet_service import WalletService


def get_context(request: Request) -> AppContext:
    """Get the application context."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise ServiceError(
            code=ServiceErrorCode.SERVICE_UNAVAILABLE,
            message="Application is not ready",
            status_code=503
        )
    return context


def get_auth_service(context: AppContext = Depends(get_context)) -> AuthService:
    return context.auth


def get_wallet_service(context: AppContext = Depends(get_context)) -> WalletService:
    return context.wallet


def get_presence_service(context: AppContext = Depends(get_context)) -> PresenceService:
    return context.presence


def get_leaderboard_service(context: AppContext = Depends(get_context)) -> LeaderboardService:
    return context.leaderboard


def get_bug_report_service(context: AppContext = Depends(get_context)) -> BugReportService:
    return context.bug_reports


def get_language_service(context: AppContext = Depends(get_context)) -> LanguageService:
    return context.language


def get_current_user(context: AppContext = Depends(get_context)) -> AuthUser:
    """Require a signed-in user."""
    user = context.store.user
    if user is None:
        raise ServiceError(
            code=ServiceErrorCode.NOT_AUTHENTICATED,
            message="You must be logged in",
            status_code=401
        )
    return user
