"""
Profile, wallet and the merged user view held by the session store
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from src.core.service.auth.models.session import Session


class Profile(BaseModel):
    """Row of the `profiles` table"""
    id: str
    username: str
    is_admin: Optional[bool] = False
    is_owner: Optional[bool] = False


class Wallet(BaseModel):
    """Row of the `wallets` table, authoritative balance on the backend"""
    user_id: str
    balance: int = 0
    level: Optional[int] = 1
    last_reward_claim: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("balance", mode="before")
    @classmethod
    def default_balance(cls, v):
        """A null balance counts as zero"""
        return 0 if v is None else v

    @classmethod
    def placeholder(cls, user_id: str) -> "Wallet":
        """Zero-balance wallet shown when the real one cannot be read"""
        return cls(user_id=user_id, balance=0, level=1, last_reward_claim=None)


class AuthUser(BaseModel):
    """Denormalized view of identity, profile and wallet"""
    id: str
    email: Optional[str] = None
    username: str
    coins: int = 0
    is_admin: bool = False
    is_owner: bool = False
    last_reward_claim: Optional[datetime] = None
    level: int = 1
    # False when coins is a local estimate rather than a value read back from the wallet
    balance_synced: bool = True

    class Config:
        frozen = True


class AuthState(BaseModel):
    """Immutable snapshot published by the session store"""
    user: Optional[AuthUser] = None
    session: Optional[Session] = None
    loading: bool = True

    class Config:
        frozen = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.session is not None

