"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Annotated, Awaitable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings
from .core.context import bind_actor_id
from .db.session import get_session
from .errors import ForbiddenError, InvalidTokenError
from .models import User, UserRole
from .realtime import EventBus
from .services import AuthService, TaskService, UserService

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in get_session():
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


EventBusDependency = Annotated[EventBus, Depends(get_event_bus)]


def get_auth_service(session: DatabaseSessionDependency, settings: SettingsDependency) -> AuthService:
    return AuthService(session, settings)


def get_user_service(session: DatabaseSessionDependency) -> UserService:
    return UserService(session)


def get_task_service(session: DatabaseSessionDependency, event_bus: EventBusDependency) -> TaskService:
    return TaskService(session, event_bus)


AuthServiceDependency = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDependency = Annotated[UserService, Depends(get_user_service)]
TaskServiceDependency = Annotated[TaskService, Depends(get_task_service)]


def require_current_user(required_role: UserRole | None = None) -> Callable[..., Awaitable[User]]:
    """Return a dependency enforcing authentication and optional role checks."""

    async def _dependency(
        auth_service: AuthServiceDependency,
        credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    ) -> User:
        if credentials is None or not credentials.credentials:
            raise InvalidTokenError("Not authorized, no token")
        user = await auth_service.verify(credentials.credentials)
        bind_actor_id(str(user.id))
        if required_role is not None and user.role != required_role:
            raise ForbiddenError("Access denied. Admin only.")
        return user

    return _dependency


CurrentUserDependency = Annotated[User, Depends(require_current_user())]
AdminUserDependency = Annotated[User, Depends(require_current_user(UserRole.ADMIN))]


__all__ = [
    "AdminUserDependency",
    "AuthServiceDependency",
    "CurrentUserDependency",
    "DatabaseSessionDependency",
    "EventBusDependency",
    "SettingsDependency",
    "TaskServiceDependency",
    "UserServiceDependency",
    "get_app_settings",
    "get_db_session",
    "get_event_bus",
    "require_current_user",
]
