"""Service layer orchestrating user-related repository operations."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.security import get_password_hash
from ..errors import DuplicateEmailError, ForbiddenError, NotFoundError
from ..models import User, UserRole
from ..policy import Actor
from ..repositories import UserRepository

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 10


def parse_identifier(value: str | UUID) -> UUID | None:
    """Return ``value`` as a UUID, or ``None`` when it is not one."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class UserService:
    """High-level business operations for ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = UserRepository(session)

    async def create_user(
        self,
        *,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create and persist a new user record.

        Raises :class:`DuplicateEmailError` when the address is taken; the
        existing account is left untouched.
        """
        if await self._repository.get_by_email(email) is not None:
            raise DuplicateEmailError()
        user = User(email=email, role=role, hashed_password=get_password_hash(password))
        try:
            await self._repository.add(user)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateEmailError() from exc
        await self._repository.refresh(user)
        logger.info("User created", extra={"user_id": str(user.id), "role": user.role.value})
        return user

    async def get_user(self, user_id: str | UUID) -> User | None:
        parsed = parse_identifier(user_id)
        if parsed is None:
            return None
        return await self._repository.get(parsed)

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._repository.get_by_email(email.strip().lower())

    async def get_user_for(self, actor: Actor, user_id: str) -> User:
        """Fetch a profile the actor may see: their own, or any for admins."""
        if not actor.is_admin and parse_identifier(user_id) != parse_identifier(actor.id):
            raise ForbiddenError()
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self) -> list[User]:
        """Return all registered users, newest first."""
        return await self._repository.list_newest_first()

    async def search_assignable(self, query: str) -> list[User]:
        """Non-admin users whose email contains ``query``; used by assignment pickers."""
        return await self._repository.search_assignable(
            query.strip(), limit=SEARCH_RESULT_LIMIT
        )

    async def update_credentials(
        self,
        user: User,
        *,
        email: str | None = None,
        password: str | None = None,
    ) -> User:
        """Change the email and/or password of ``user`` and persist the result."""
        if email is not None and email != user.email:
            existing = await self._repository.get_by_email(email)
            if existing is not None and existing.id != user.id:
                raise DuplicateEmailError()
            user.email = email
        if password is not None:
            user.hashed_password = get_password_hash(password)
        user.touch()
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateEmailError() from exc
        await self._repository.refresh(user)
        return user


__all__ = ["SEARCH_RESULT_LIMIT", "UserService", "parse_identifier"]
