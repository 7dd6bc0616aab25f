"""Repository for user accounts."""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User, UserRole
from .base import BaseRepository
from .tasks import escape_like


class UserRepository(BaseRepository[User]):
    """Concrete repository for CRUD operations on ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        """Return the user registered under ``email`` (already normalised)."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_newest_first(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(col(User.created_at).desc()))
        return list(result.scalars().all())

    async def list_by_ids(self, ids: Sequence[UUID]) -> list[User]:
        """Fetch all users whose IDs are contained in the provided sequence."""
        if not ids:
            return []
        result = await self.session.execute(select(User).where(col(User.id).in_(list(ids))))
        return list(result.scalars().all())

    async def search_assignable(self, query: str, *, limit: int = 10) -> list[User]:
        """Non-admin users whose email contains ``query``, ordered by email."""
        statement = select(User).where(User.role != UserRole.ADMIN)
        if query:
            pattern = f"%{escape_like(query.lower())}%"
            statement = statement.where(func.lower(User.email).like(pattern, escape="\\"))
        statement = statement.order_by(col(User.email).asc()).limit(limit)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def exists_with_role(self, role: UserRole) -> bool:
        result = await self.session.execute(select(User.id).where(User.role == role).limit(1))
        return result.first() is not None


__all__ = ["UserRepository"]
