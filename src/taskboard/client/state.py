"""Client-side cache of tasks and authentication state.

Two write paths feed :class:`TaskStore`: the request/response handlers
(``tasks_loaded``, ``task_created`` ...) and :meth:`TaskStore.apply_event` for
socket broadcasts. Every merge is keyed by task id and idempotent, so the two
paths reach the same state whichever order their messages arrive in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from .. import policy
from .permissions import actor_from_user, should_view_task

logger = logging.getLogger(__name__)

TaskPayload = dict[str, Any]

FILTER_PARAMS = {"status": "status", "priority": "priority", "search": "search", "due_date": "dueDate"}


@dataclass(slots=True)
class Filters:
    status: str = ""
    priority: str = ""
    search: str = ""
    due_date: str = ""

    def as_params(self) -> dict[str, str]:
        """Non-empty filters keyed by their query parameter names."""
        return {
            FILTER_PARAMS[name]: value
            for name in FILTER_PARAMS
            if (value := getattr(self, name))
        }


@dataclass(slots=True)
class Pagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Pagination":
        return cls(
            page=int(payload.get("page", 1)),
            limit=int(payload.get("limit", 10)),
            total=int(payload.get("total", 0)),
            pages=int(payload.get("pages", 0)),
        )


@dataclass(slots=True)
class TaskState:
    tasks: list[TaskPayload] = field(default_factory=list)
    current_task: TaskPayload | None = None
    pagination: Pagination = field(default_factory=Pagination)
    filters: Filters = field(default_factory=Filters)
    loading: bool = False
    error: str | None = None


@dataclass(slots=True)
class AuthState:
    user: dict[str, Any] | None = None
    token: str | None = None
    is_authenticated: bool = False
    loading: bool = False
    error: str | None = None


def _task_id(value: Mapping[str, Any] | str | Any) -> str:
    if isinstance(value, Mapping):
        value = value.get("id")
    return str(value)


class TaskStore:
    """Holds the cached task list, paging cursor and active filters."""

    def __init__(self) -> None:
        self.state = TaskState()

    @property
    def ids(self) -> list[str]:
        return [_task_id(task) for task in self.state.tasks]

    def _index(self, task_id: str) -> int | None:
        for index, task in enumerate(self.state.tasks):
            if _task_id(task) == task_id:
                return index
        return None

    # Filters and selection

    def set_filters(self, **changes: Any) -> None:
        """Merge filter changes; anything other than a page-only change resets to page 1."""
        page = changes.pop("page", None)
        if changes:
            self.state.pagination.page = 1
        unknown = set(changes) - {f.name for f in fields(Filters)}
        if unknown:
            raise ValueError(f"Unknown task filters: {', '.join(sorted(unknown))}")
        self.state.filters = replace(
            self.state.filters,
            **{name: "" if value is None else str(value) for name, value in changes.items()},
        )
        if page:
            self.state.pagination.page = int(page)

    def clear_filters(self) -> None:
        self.state.filters = Filters()

    def query_params(self) -> dict[str, str]:
        params = {"page": str(self.state.pagination.page), "limit": str(self.state.pagination.limit)}
        params.update(self.state.filters.as_params())
        return params

    def set_current_task(self, task: TaskPayload | None) -> None:
        self.state.current_task = task

    def clear_current_task(self) -> None:
        self.state.current_task = None

    def clear_error(self) -> None:
        self.state.error = None

    # Request lifecycle

    def request_started(self) -> None:
        self.state.loading = True
        self.state.error = None

    def request_failed(self, message: str) -> None:
        self.state.loading = False
        self.state.error = message

    def tasks_loaded(self, tasks: list[TaskPayload], pagination: Mapping[str, Any]) -> None:
        self.state.loading = False
        self.state.tasks = list(tasks)
        self.state.pagination = Pagination.from_payload(pagination)

    def task_loaded(self, task: TaskPayload) -> None:
        self.state.loading = False
        self.state.current_task = task

    def task_created(self, task: TaskPayload) -> None:
        self.state.loading = False
        self._insert(task)

    def task_updated(self, task: TaskPayload) -> None:
        self.state.loading = False
        self._replace(task)

    def task_deleted(self, task_id: str) -> None:
        self.state.loading = False
        self._remove(str(task_id))

    # Idempotent merges shared by both write paths

    def _insert(self, task: TaskPayload) -> bool:
        if self._index(_task_id(task)) is not None:
            return False
        self.state.tasks.insert(0, task)
        self.state.pagination.total += 1
        return True

    def _replace(self, task: TaskPayload) -> bool:
        task_id = _task_id(task)
        index = self._index(task_id)
        if index is not None:
            self.state.tasks[index] = task
        if self.state.current_task is not None and _task_id(self.state.current_task) == task_id:
            self.state.current_task = task
        return index is not None

    def _remove(self, task_id: str) -> bool:
        index = self._index(task_id)
        if index is not None:
            del self.state.tasks[index]
            self.state.pagination.total = max(0, self.state.pagination.total - 1)
        if self.state.current_task is not None and _task_id(self.state.current_task) == task_id:
            self.state.current_task = None
        return index is not None

    # Broadcast path

    def add_task_optimistic(self, task: TaskPayload) -> bool:
        return self._insert(task)

    def update_task_optimistic(self, task: TaskPayload) -> bool:
        return self._replace(task)

    def remove_task_optimistic(self, payload: Mapping[str, Any] | str) -> bool:
        return self._remove(_task_id(payload))

    def apply_event(self, message: Mapping[str, Any], viewer: policy.Actor | None) -> bool:
        """Merge a socket message ``{"event": ..., "data": ...}``.

        Created and updated tasks the viewer may not read are dropped.
        Returns ``True`` when the cached list changed.
        """
        event = message.get("event")
        data = message.get("data") or {}
        if event == "task:deleted":
            return self.remove_task_optimistic(data)
        if event not in ("task:created", "task:updated"):
            logger.debug("Ignoring unknown socket event", extra={"event": event})
            return False
        if not should_view_task(viewer, data):
            return False
        if event == "task:created":
            return self.add_task_optimistic(data)
        return self.update_task_optimistic(data)


class AuthStore:
    """Holds the signed-in user and token."""

    def __init__(self) -> None:
        self.state = AuthState()

    @property
    def actor(self) -> policy.Actor | None:
        return actor_from_user(self.state.user)

    def request_started(self) -> None:
        self.state.loading = True
        self.state.error = None

    def request_failed(self, message: str) -> None:
        self.state.loading = False
        self.state.error = message

    def signed_in(self, token: str, user: dict[str, Any]) -> None:
        self.state = AuthState(user=user, token=token, is_authenticated=True)

    def user_loaded(self, user: dict[str, Any]) -> None:
        self.state.loading = False
        self.state.user = user
        self.state.is_authenticated = True

    def logout(self) -> None:
        self.state = AuthState()

    def clear_error(self) -> None:
        self.state.error = None


__all__ = ["AuthState", "AuthStore", "Filters", "Pagination", "TaskState", "TaskStore"]
