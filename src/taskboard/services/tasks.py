"""Service layer encapsulating task-related operations."""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from sqlmodel.ext.asyncio.session import AsyncSession

from .. import policy
from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Task, TaskPriority, TaskStatus, User
from ..patch import Set, TaskPatch
from ..realtime.events import EventBus, TaskEvent, TaskEventName
from ..repositories import TaskRepository, UserRepository
from ..schemas.task import (
    Pagination,
    TaskCreate,
    TaskListData,
    TaskListQuery,
    TaskRead,
    TaskStatistics,
)
from ..schemas.user import UserSummary
from .users import parse_identifier

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"
UPDATE_DENIED = "Access denied. Only creator or assignee can update this task."
DELETE_DENIED = "Access denied. Only admin or creator can delete this task."


class TaskService:
    """High-level business orchestration for ``Task`` entities.

    Every entry point consults :mod:`taskboard.policy` before touching a
    task, and every successful mutation is published on the event bus after
    the transaction commits.
    """

    def __init__(self, session: AsyncSession, event_bus: EventBus | None = None) -> None:
        self._session = session
        self._event_bus = event_bus
        self._repository = TaskRepository(session)
        self._user_repository = UserRepository(session)

    async def _load(self, task_id: str | UUID) -> Task:
        parsed = parse_identifier(task_id)
        task = await self._repository.get(parsed) if parsed is not None else None
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return task

    async def _require_user(self, user_id: UUID, *, field: str) -> User:
        user = await self._user_repository.get(user_id)
        if user is None:
            raise ValidationError.for_field(field, "Assigned user does not exist")
        return user

    async def expand(self, tasks: Iterable[Task]) -> list[TaskRead]:
        """Resolve creator and assignee references to public profiles."""
        tasks = list(tasks)
        ids = {task.created_by_id for task in tasks}
        ids.update(task.assigned_to_id for task in tasks if task.assigned_to_id is not None)
        users = {user.id: user for user in await self._user_repository.list_by_ids(list(ids))}

        def summary(user_id: UUID | None) -> UserSummary | None:
            user = users.get(user_id) if user_id is not None else None
            return UserSummary.model_validate(user) if user is not None else None

        return [
            TaskRead(
                id=task.id,
                title=task.title,
                description=task.description,
                status=task.status,
                priority=task.priority,
                due_date=task.due_date,
                assigned_to=summary(task.assigned_to_id),
                created_by=summary(task.created_by_id),
                created_at=task.created_at,
                updated_at=task.updated_at,
            )
            for task in tasks
        ]

    async def _expand_one(self, task: Task) -> TaskRead:
        (expanded,) = await self.expand([task])
        return expanded

    async def _publish(self, event: TaskEvent) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(event)
        except Exception:
            logger.exception("Failed to publish task event", extra={"event": event.event.value})

    async def list_tasks(
        self,
        actor: policy.Actor,
        query: TaskListQuery,
        *,
        max_limit: int | None = None,
    ) -> TaskListData:
        """Return one page of the tasks ``actor`` may read, newest first."""
        limit = min(query.limit, max_limit) if max_limit else query.limit
        scope = policy.visibility_scope(actor)
        tasks, total = await self._repository.list_paginated(
            visible_to=parse_identifier(scope) if scope is not None else None,
            status=query.status,
            priority=query.priority,
            search=query.search,
            due_before=query.due_date,
            limit=limit,
            offset=(query.page - 1) * limit,
        )
        return TaskListData(
            tasks=await self.expand(tasks),
            pagination=Pagination.build(page=query.page, limit=limit, total=total),
        )

    async def get_task(self, actor: policy.Actor, task_id: str | UUID) -> TaskRead:
        task = await self._load(task_id)
        if not policy.can_read(actor, task):
            raise ForbiddenError()
        return await self._expand_one(task)

    async def create_task(self, actor: policy.Actor, payload: TaskCreate) -> TaskRead:
        """Persist a task created by ``actor`` and broadcast ``task:created``."""
        if payload.assigned_to is not None:
            await self._require_user(payload.assigned_to, field="assignedTo")
        creator_id = parse_identifier(actor.id)
        if creator_id is None:
            raise ForbiddenError()
        task = Task(
            title=payload.title,
            description=payload.description,
            status=payload.status,
            priority=payload.priority,
            due_date=payload.due_date,
            assigned_to_id=payload.assigned_to,
            created_by_id=creator_id,
        )
        await self._repository.add(task)
        await self._session.commit()
        await self._repository.refresh(task)
        logger.info("Task created", extra={"task_id": str(task.id)})

        expanded = await self._expand_one(task)
        await self._publish(
            TaskEvent(event=TaskEventName.CREATED, data=expanded.model_dump(mode="json", by_alias=True))
        )
        return expanded

    def _check_patch(self, patch: TaskPatch) -> None:
        if isinstance(patch.title, Set):
            title = patch.title.value.strip()
            if not title or len(title) > TITLE_MAX_LENGTH:
                raise ValidationError.for_field(
                    "title", f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"
                )
        if isinstance(patch.description, Set) and len(patch.description.value) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError.for_field(
                "description", f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )

    async def update_task(
        self,
        actor: policy.Actor,
        task_id: str | UUID,
        patch: TaskPatch,
    ) -> TaskRead:
        """Apply ``patch`` to a task the actor may update and broadcast ``task:updated``."""
        task = await self._load(task_id)
        if not policy.can_update(actor, task):
            raise ForbiddenError(UPDATE_DENIED)
        self._check_patch(patch)
        if isinstance(patch.assigned_to_id, Set):
            await self._require_user(patch.assigned_to_id.value, field="assignedTo")

        changes = patch.apply(task)
        task.touch()
        await self._session.commit()
        await self._repository.refresh(task)
        logger.info(
            "Task updated",
            extra={"task_id": str(task.id), "fields": sorted(changes)},
        )

        expanded = await self._expand_one(task)
        await self._publish(
            TaskEvent(event=TaskEventName.UPDATED, data=expanded.model_dump(mode="json", by_alias=True))
        )
        return expanded

    async def delete_task(self, actor: policy.Actor, task_id: str | UUID) -> UUID:
        """Remove a task the actor may delete and broadcast ``task:deleted``."""
        task = await self._load(task_id)
        if not policy.can_delete(actor, task):
            raise ForbiddenError(DELETE_DENIED)
        deleted_id = task.id
        await self._repository.delete(task)
        await self._session.commit()
        logger.info("Task deleted", extra={"task_id": str(deleted_id)})

        await self._publish(TaskEvent(event=TaskEventName.DELETED, data={"id": str(deleted_id)}))
        return deleted_id

    async def statistics(self, actor: policy.Actor) -> TaskStatistics:
        """Counts by status and priority over the tasks ``actor`` may read."""
        scope = policy.visibility_scope(actor)
        visible_to = parse_identifier(scope) if scope is not None else None
        status_counts = await self._repository.count_by_status(visible_to=visible_to)
        priority_counts = await self._repository.count_by_priority(visible_to=visible_to)
        by_status = {status.value: status_counts.get(status, 0) for status in TaskStatus}
        by_priority = {priority.value: priority_counts.get(priority, 0) for priority in TaskPriority}
        return TaskStatistics(
            total=sum(by_status.values()),
            by_status=by_status,
            by_priority=by_priority,
        )


__all__ = ["DELETE_DENIED", "TASK_NOT_FOUND", "TaskService", "UPDATE_DENIED"]
