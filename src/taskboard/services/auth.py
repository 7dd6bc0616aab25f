"""Authentication service encapsulating registration, login and token checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..core.security import (
    ExpiredSignatureError,
    GeneratedToken,
    JWTError,
    create_access_token,
    decode_token,
    verify_password,
)
from ..errors import InvalidCredentialsError, InvalidTokenError, ValidationError
from ..models import User, UserRole
from .users import UserService, parse_identifier

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthResult:
    """A freshly issued token together with the account it identifies."""

    token: GeneratedToken
    user: User


class AuthService:
    """High-level authentication workflows."""

    def __init__(self, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._user_service = UserService(session)

    def issue_token(self, user: User) -> GeneratedToken:
        return create_access_token(
            subject=str(user.id),
            role=user.role.value,
            settings=self._settings,
        )

    async def register(
        self,
        *,
        email: str,
        password: str,
        role: UserRole | None = None,
    ) -> AuthResult:
        user = await self._user_service.create_user(
            email=email,
            password=password,
            role=role or UserRole.USER,
        )
        return AuthResult(token=self.issue_token(user), user=user)

    async def login(self, *, email: str, password: str) -> AuthResult:
        user = await self._user_service.get_user_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Login rejected", extra={"email": email})
            raise InvalidCredentialsError()
        return AuthResult(token=self.issue_token(user), user=user)

    async def verify(self, token: str) -> User:
        """Resolve ``token`` to the user it was issued for.

        A bad signature, an expired token or a subject that no longer exists
        all raise :class:`InvalidTokenError`.
        """
        try:
            payload = decode_token(token=token, settings=self._settings)
        except ExpiredSignatureError as exc:
            raise InvalidTokenError("Token has expired") from exc
        except JWTError as exc:
            raise InvalidTokenError("Invalid token") from exc

        user_id = parse_identifier(str(payload.get("sub", "")))
        if user_id is None:
            raise InvalidTokenError("Invalid token")
        user = await self._user_service.get_user(user_id)
        if user is None:
            raise InvalidTokenError("User no longer exists")
        return user

    async def update_profile(
        self,
        user: User,
        *,
        email: str | None = None,
        current_password: str | None = None,
        new_password: str | None = None,
    ) -> User:
        if new_password is not None:
            if not current_password:
                raise ValidationError.for_field(
                    "currentPassword", "Current password is required to set a new password"
                )
            if not verify_password(current_password, user.hashed_password):
                raise InvalidCredentialsError("Current password is incorrect", status_code=400)
        return await self._user_service.update_credentials(
            user, email=email, password=new_password
        )


__all__ = ["AuthResult", "AuthService"]
