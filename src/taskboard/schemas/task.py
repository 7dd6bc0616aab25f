"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from math import ceil
from typing import Annotated, Any
from uuid import UUID

from pydantic import ConfigDict, Field, StringConstraints, ValidationInfo, field_validator

from ..models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TaskPriority, TaskStatus, ensure_utc
from ..patch import CLEAR, Set, TaskPatch
from .system import ApiModel
from .user import UserSummary

TitleStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=TITLE_MAX_LENGTH),
]
DescriptionStr = Annotated[str, StringConstraints(max_length=DESCRIPTION_MAX_LENGTH)]
_PAGING_DEFAULTS = {"page": 1, "limit": 10}
# Keeps LIMIT and the derived OFFSET within a signed 64-bit integer.
PAGING_MAX = 2**31 - 1

TASK_READ_EXAMPLE = {
    "id": "0b7c1f0e-4a37-4c4e-9a43-6f7b5e3c2d10",
    "title": "Prepare sprint review",
    "description": "Collect demo notes from the team.",
    "status": TaskStatus.TODO.value,
    "priority": TaskPriority.HIGH.value,
    "dueDate": "2026-11-02T17:00:00Z",
    "assignedTo": {"id": "5d1d0a4e-8f0e-4a7a-b3c5-1c2d3e4f5a6b", "email": "dana@example.com"},
    "createdBy": {"id": "9e8d7c6b-5a4f-4e3d-8c2b-1a0f9e8d7c6b", "email": "lee@example.com"},
    "createdAt": "2026-10-18T09:30:00Z",
    "updatedAt": "2026-10-18T09:30:00Z",
}


def _blank_as_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _parse_datetime(value: Any) -> Any:
    value = _blank_as_none(value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return value
    return value


class TaskCreate(ApiModel):
    """Payload for creating a new task.

    Unknown keys such as ``createdBy`` are ignored; the creator is always the
    authenticated user.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Prepare sprint review",
                "description": "Collect demo notes from the team.",
                "priority": TaskPriority.HIGH.value,
                "dueDate": "2026-11-02T17:00:00Z",
                "assignedTo": "",
            }
        },
    )

    title: TitleStr
    description: DescriptionStr | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    assigned_to: UUID | None = None

    @field_validator("description", "assigned_to", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        return _blank_as_none(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> Any:
        return _parse_datetime(value)

    @field_validator("due_date", mode="after")
    @classmethod
    def _due_date_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class TaskUpdate(ApiModel):
    """Payload for partially updating an existing task.

    Keys absent from the body are left untouched. ``description``, ``dueDate``
    and ``assignedTo`` may be sent as ``null`` or ``""`` to clear them.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"status": TaskStatus.IN_PROGRESS.value, "assignedTo": None}},
    )

    title: TitleStr | None = None
    description: DescriptionStr | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: UUID | None = None

    @field_validator("title", "status", "priority", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be empty")
        return value

    @field_validator("description", "assigned_to", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        return _blank_as_none(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> Any:
        return _parse_datetime(value)

    @field_validator("due_date", mode="after")
    @classmethod
    def _due_date_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def to_patch(self) -> TaskPatch:
        """Translate the keys the client sent into a :class:`TaskPatch`."""

        changes: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            target = "assigned_to_id" if name == "assigned_to" else name
            changes[target] = CLEAR if value is None else Set(value)
        return TaskPatch(**changes)


class TaskRead(ApiModel):
    """Expanded task: creator and assignee resolved to public profiles."""

    model_config = ConfigDict(json_schema_extra={"example": TASK_READ_EXAMPLE})

    id: UUID
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    assigned_to: UserSummary | None = None
    created_by: UserSummary | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("due_date", "created_at", "updated_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class TaskListQuery(ApiModel):
    """Filters and paging accepted by the task listing."""

    page: int = Field(default=1, ge=1, le=PAGING_MAX)
    limit: int = Field(default=10, ge=1, le=PAGING_MAX)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    search: str | None = None
    due_date: datetime | None = None

    @field_validator("status", "priority", "search", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        return _blank_as_none(value)

    @field_validator("page", "limit", mode="before")
    @classmethod
    def _default_paging(cls, value: Any, info: ValidationInfo) -> Any:
        if _blank_as_none(value) is None:
            return _PAGING_DEFAULTS[info.field_name]
        return value

    @field_validator("search", mode="after")
    @classmethod
    def _strip_search(cls, value: str | None) -> str | None:
        return value.strip() if value else None

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> Any:
        return _parse_datetime(value)

    @field_validator("due_date", mode="after")
    @classmethod
    def _due_date_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=ceil(total / limit) if limit else 0)


class TaskListData(ApiModel):
    tasks: list[TaskRead]
    pagination: Pagination


class TaskData(ApiModel):
    task: TaskRead


class DeletedTask(ApiModel):
    id: UUID


class TaskStatistics(ApiModel):
    """Aggregate counts over the tasks visible to the caller."""

    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]


__all__ = [
    "DeletedTask",
    "Pagination",
    "TaskCreate",
    "TaskData",
    "TaskListData",
    "TaskListQuery",
    "TaskRead",
    "TaskStatistics",
    "TaskUpdate",
]
