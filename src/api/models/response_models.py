"""
Response DTOs for API endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.core.service.auth.models.user import AuthState, AuthUser
from src.core.service.i18n.language_service import Language
from src.core.service.notifications.notifier import Notice


class SessionInfoDTO(BaseModel):
    """Public part of the current session; tokens never leave the process."""

    user_id: str = Field(..., description="Authenticated user id")
    email: Optional[str] = Field(None, description="Email attached to the session")
    expires_at: Optional[datetime] = Field(None, description="Access token expiry")


class AuthStateResponseDTO(BaseModel):
    """DTO for the current auth state."""

    authenticated: bool = Field(..., description="Whether a user view is available")
    loading: bool = Field(..., description="Whether an auth call is in progress")
    user: Optional[AuthUser] = Field(None, description="Resolved user view")
    session: Optional[SessionInfoDTO] = Field(None, description="Current session")

    @classmethod
    def from_state(cls, state: AuthState) -> "AuthStateResponseDTO":
        session = None
        if state.session is not None:
            session = SessionInfoDTO(
                user_id=state.session.user_id,
                email=state.session.email,
                expires_at=state.session.expires_at
            )
        return cls(
            authenticated=state.is_authenticated,
            loading=state.loading,
            user=state.user,
            session=session
        )


class WalletResponseDTO(BaseModel):
    """DTO for the signed-in user's wallet view."""

    user_id: str
    coins: int = Field(..., description="Balance shown to the user")
    level: int
    last_reward_claim: Optional[datetime] = None
    balance_synced: bool = Field(..., description="False when coins is a local estimate")

    @classmethod
    def from_user(cls, user: AuthUser) -> "WalletResponseDTO":
        return cls(
            user_id=user.id,
            coins=user.coins,
            level=user.level,
            last_reward_claim=user.last_reward_claim,
            balance_synced=user.balance_synced
        )


class LeaderboardRowDTO(BaseModel):
    rank: int
    username: str
    points: int
    is_current_user: bool = False


class LeaderboardResponseDTO(BaseModel):
    """DTO for the top balances list."""

    loading: bool
    entries: List[LeaderboardRowDTO]
    refreshed_at: Optional[datetime] = None


class PresenceResponseDTO(BaseModel):
    success: bool


class MessageResponseDTO(BaseModel):
    success: bool = True
    message: str


class LanguageResponseDTO(BaseModel):
    current: Language
    available: List[Language]


class NoticesResponseDTO(BaseModel):
    notices: List[Notice]


class NavigationResponseDTO(BaseModel):
    path: str
    page: str
    active_tab: Optional[str] = None
    allowed: bool = True
