from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AuthEvent(str, Enum):
    """Auth state change events delivered by the hosted auth platform"""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class Session(BaseModel):
    """Authentication session issued by the hosted auth platform"""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    user_id: str
    email: Optional[str] = None

    class Config:
        frozen = True
