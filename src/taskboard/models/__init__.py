"""Persistence models."""

from __future__ import annotations

from .common import TimestampMixin, ensure_utc, utcnow
from .task import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Task, TaskPriority, TaskStatus
from .user import User, UserRole

__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TimestampMixin",
    "User",
    "UserRole",
    "ensure_utc",
    "utcnow",
]
