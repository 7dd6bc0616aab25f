"""User-facing Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, EmailStr, Field, field_validator

from ..models import UserRole, ensure_utc
from .system import ApiModel

PASSWORD_MIN_LENGTH = 6


class UserSummary(ApiModel):
    """Lightweight profile embedded in expanded tasks and search results."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str


class UserPublic(ApiModel):
    """Public representation of a user; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    role: UserRole
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)  # type: ignore[return-value]


class UserCreate(ApiModel):
    """Administrative user creation payload."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    role: UserRole = UserRole.USER

    @field_validator("email", mode="after")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()


class UserData(ApiModel):
    user: UserPublic


class UserListData(ApiModel):
    users: list[UserPublic]
    count: int


class UserSearchData(ApiModel):
    users: list[UserSummary]


__all__ = [
    "PASSWORD_MIN_LENGTH",
    "UserCreate",
    "UserData",
    "UserListData",
    "UserPublic",
    "UserSearchData",
    "UserSummary",
]
