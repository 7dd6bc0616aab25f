"""Repository for interacting with task persistence models."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskPriority, TaskStatus
from .base import BaseRepository


def escape_like(value: str) -> str:
    """Escape ``LIKE`` wildcards so ``value`` matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TaskRepository(BaseRepository[Task]):
    """Concrete repository encapsulating ``Task`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    @staticmethod
    def _conditions(
        *,
        visible_to: UUID | None,
        status: TaskStatus | None,
        priority: TaskPriority | None,
        search: str | None,
        due_before: datetime | None,
    ) -> list[Any]:
        conditions: list[Any] = []
        if visible_to is not None:
            conditions.append(
                or_(col(Task.created_by_id) == visible_to, col(Task.assigned_to_id) == visible_to)
            )
        if status is not None:
            conditions.append(col(Task.status) == status)
        if priority is not None:
            conditions.append(col(Task.priority) == priority)
        if search:
            pattern = f"%{escape_like(search.lower())}%"
            conditions.append(func.lower(Task.title).like(pattern, escape="\\"))
        if due_before is not None:
            conditions.append(col(Task.due_date) <= due_before)
        return conditions

    async def list_paginated(
        self,
        *,
        visible_to: UUID | None = None,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        search: str | None = None,
        due_before: datetime | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Task], int]:
        """Return tasks matching the provided filters along with the total count.

        ``visible_to`` restricts the result to tasks created by or assigned to
        that user; ``None`` leaves the listing unrestricted.
        """
        conditions = self._conditions(
            visible_to=visible_to,
            status=status,
            priority=priority,
            search=search,
            due_before=due_before,
        )
        query = (
            select(Task)
            .where(*conditions)
            .order_by(col(Task.created_at).desc(), col(Task.id).desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = select(func.count()).select_from(Task).where(*conditions)
        result = await self.session.execute(query)
        tasks = list(result.scalars().all())
        total_result = await self.session.execute(count_query)
        total = int(total_result.scalar_one())
        return tasks, total

    async def count_by_status(self, *, visible_to: UUID | None = None) -> dict[TaskStatus, int]:
        conditions = self._conditions(
            visible_to=visible_to, status=None, priority=None, search=None, due_before=None
        )
        result = await self.session.execute(
            select(Task.status, func.count()).select_from(Task).where(*conditions).group_by(Task.status)
        )
        return {TaskStatus(value): int(count) for value, count in result.all()}

    async def count_by_priority(self, *, visible_to: UUID | None = None) -> dict[TaskPriority, int]:
        conditions = self._conditions(
            visible_to=visible_to, status=None, priority=None, search=None, due_before=None
        )
        result = await self.session.execute(
            select(Task.priority, func.count())
            .select_from(Task)
            .where(*conditions)
            .group_by(Task.priority)
        )
        return {TaskPriority(value): int(count) for value, count in result.all()}


__all__ = ["TaskRepository", "escape_like"]
