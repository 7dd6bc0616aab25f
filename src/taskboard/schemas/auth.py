"""Schemas describing authentication payloads."""

from __future__ import annotations

from pydantic import EmailStr, Field, field_validator

from ..models import UserRole
from .system import ApiModel
from .user import PASSWORD_MIN_LENGTH, UserPublic


class RegisterRequest(ApiModel):
    """Incoming payload for registering a new user."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    role: UserRole | None = None

    @field_validator("email", mode="after")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdate(ApiModel):
    """Changes a user may make to their own account."""

    email: EmailStr | None = None
    current_password: str | None = None
    new_password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)

    @field_validator("email", mode="after")
    @classmethod
    def _normalise_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else None


class AuthPayload(ApiModel):
    """Identity token plus the public user record."""

    token: str
    user: UserPublic


__all__ = ["AuthPayload", "LoginRequest", "ProfileUpdate", "RegisterRequest"]
