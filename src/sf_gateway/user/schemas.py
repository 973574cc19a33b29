"""Pydantic request/response schemas for sf_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.sf_gateway.user.models import User


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """Enforce: at least one letter and one digit."""
        if not re.search(r"[A-Za-z]", v):
            raise ValueError("Password must contain at least one letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v


class LoginRequest(BaseModel):
    # Plain str: accounts created before validation existed may hold odd addresses
    email: str = Field(..., min_length=1)
    password: str


class AdminLoginRequest(BaseModel):
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UpdateProfileRequest(BaseModel):
    username: str | None = Field(None, min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    profile_picture: str | None = None


class UserInfo(BaseModel):
    user_id: str
    username: str
    email: str
    profile_picture: str = ""
    last_seen: int = 0
    is_active: bool = True

    @classmethod
    def from_domain(cls, user: User) -> "UserInfo":
        return cls(
            user_id=user.id,
            username=user.username,
            email=user.email,
            profile_picture=user.profile_picture,
            last_seen=user.last_seen,
            is_active=user.is_active,
        )


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800  # 30 minutes in seconds
    user: UserInfo | None = None


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800
