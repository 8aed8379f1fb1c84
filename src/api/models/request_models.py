"""
Request DTOs for API endpoints.
"""

from pydantic import BaseModel, Field, field_validator
import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class LoginRequestDTO(BaseModel):
    """Request model for email/password login."""

    email: str = Field(..., min_length=3, max_length=320, description="Account email")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email format validation."""
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v


class SignupRequestDTO(LoginRequestDTO):
    """Request model for account creation."""

    username: str = Field(..., min_length=3, max_length=32, description="Public display name")
    password: str = Field(..., min_length=6, description="Account password")

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Username cannot be blank."""
        if not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()


class CoinUpdateRequestDTO(BaseModel):
    """Request model for a coin balance change."""

    amount: float = Field(
        ...,
        allow_inf_nan=False,
        description="Coins to add (negative to spend); rounded to a whole coin"
    )


class BugReportRequestDTO(BaseModel):
    """Request model for a bug report."""

    message: str = Field(..., max_length=5000, description="Description of the problem")


class LanguageRequestDTO(BaseModel):
    """Request model for switching UI language."""

    code: str = Field(..., min_length=2, max_length=8, description="Language code (en, es, vi)")
