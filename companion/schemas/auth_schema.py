"""Authentication request/response schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    """Email sign-up request."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(
        min_length=8,
        max_length=128,
        description="Password (8-128 chars, must include uppercase, lowercase, digit, special char)",
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("password")
    @classmethod
    def validate_password_complexity(cls, v: str) -> str:
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        if not re.search(r"[!@#$%^&*(),.?\":{}|<>]", v):
            raise ValueError("Password must contain at least one special character")
        return v


class LoginRequest(BaseModel):
    """Email sign-in request."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(description="User password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class RefreshRequest(BaseModel):
    refresh_token: str = Field(description="Refresh token")


class LogoutRequest(BaseModel):
    refresh_token: str | None = Field(
        default=None, description="Optional refresh token to revoke"
    )


class TokenResponse(BaseModel):
    """Token pair response."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token TTL in seconds")


class UserResponse(BaseModel):
    """Public user representation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    email: str
    is_active: bool
    created_at: datetime


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserResponse
    tokens: TokenResponse


class SessionUser(BaseModel):
    """Identity resolved from the current credential."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class SessionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: SessionUser
    expires_at: int = Field(description="Access token expiry (unix seconds)")


class MessageResponse(BaseModel):
    """Simple message response."""

    model_config = ConfigDict(frozen=True)

    message: str


class TokenPayload(BaseModel):
    """Decoded JWT payload."""

    model_config = ConfigDict(frozen=True)

    sub: str
    email: str
    type: str
    jti: str
    exp: int
