"""User accounts."""

from __future__ import annotations

from enum import Enum
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlmodel import Field

from ..policy import Actor
from .common import TimestampMixin


class UserRole(str, Enum):
    """Roles supported by the authorization policy."""

    USER = "user"
    ADMIN = "admin"


class User(TimestampMixin, table=True):
    """Persistent user account; the password is only ever stored hashed."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, sa_column=sa.Column(sa.Uuid(), primary_key=True))
    email: str = Field(
        max_length=320,
        sa_column=sa.Column(sa.String(length=320), nullable=False, unique=True, index=True),
    )
    hashed_password: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    role: UserRole = Field(
        default=UserRole.USER,
        sa_column=sa.Column(
            sa.Enum(UserRole, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
            nullable=False,
            server_default=UserRole.USER.value,
        ),
    )

    @property
    def actor(self) -> Actor:
        """The identity this account acts under when checked against the policy."""
        return Actor(id=self.id, role=self.role.value)


__all__ = ["User", "UserRole"]
