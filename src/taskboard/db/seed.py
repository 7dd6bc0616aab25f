"""Bootstrap data: the default administrator and optional demo fixtures."""

from __future__ import annotations

import asyncio
import logging

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings, get_settings
from ..core.logging import configure_logging
from ..models import TaskPriority, TaskStatus, User, UserRole
from ..repositories import UserRepository
from ..schemas.task import TaskCreate
from ..services import TaskService, UserService
from .session import create_schema, dispose_engine, init_engine, session_maker

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"


async def ensure_default_admin(session: AsyncSession, settings: Settings) -> User | None:
    """Create the configured administrator unless an admin account already exists."""

    repository = UserRepository(session)
    if await repository.exists_with_role(UserRole.ADMIN):
        logger.info("Admin account already present")
        return None
    if not settings.admin_email or not settings.admin_password:
        logger.warning("No admin account exists and no default admin is configured")
        return None
    user = await UserService(session).create_user(
        email=settings.admin_email.strip().lower(),
        password=settings.admin_password,
        role=UserRole.ADMIN,
    )
    logger.info("Default admin created", extra={"email": user.email})
    return user


async def seed_demo_data(session: AsyncSession) -> None:
    """Create a demo user with a handful of tasks if it does not exist yet."""

    user_service = UserService(session)
    if await user_service.get_user_by_email(DEMO_EMAIL) is not None:
        return
    user = await user_service.create_user(email=DEMO_EMAIL, password=DEMO_PASSWORD)

    task_service = TaskService(session)
    fixtures = [
        TaskCreate(title="Set up local environment", description="Install dependencies and run the API."),
        TaskCreate(
            title="Draft initial tasks",
            description="Outline work items for the first milestone.",
            status=TaskStatus.IN_PROGRESS,
            priority=TaskPriority.HIGH,
        ),
        TaskCreate(title="Review open pull requests", priority=TaskPriority.LOW),
    ]
    for payload in fixtures:
        await task_service.create_task(user.actor, payload)
    logger.info("Demo data seeded", extra={"email": DEMO_EMAIL, "tasks": len(fixtures)})


async def seed(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    init_engine(settings)
    await create_schema()
    try:
        async with session_maker()() as session:
            await ensure_default_admin(session, settings)
            await seed_demo_data(session)
    finally:
        await dispose_engine()


def main() -> None:
    """Entry-point hook for ``taskboard-seed``."""
    settings = get_settings()
    configure_logging(settings)
    asyncio.run(seed(settings))


if __name__ == "__main__":  # pragma: no cover - manual execution entry-point
    main()
