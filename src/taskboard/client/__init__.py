"""Python client for the task board: API calls, cached state and live events."""

from .api import ClientRequestError, TaskBoardClient
from .permissions import actor_from_user, can_delete_task, can_edit_task, should_view_task
from .realtime import TaskEventConsumer, decode_frame
from .state import AuthState, AuthStore, Filters, Pagination, TaskState, TaskStore

__all__ = [
    "AuthState",
    "AuthStore",
    "ClientRequestError",
    "Filters",
    "Pagination",
    "TaskBoardClient",
    "TaskEventConsumer",
    "TaskState",
    "TaskStore",
    "actor_from_user",
    "can_delete_task",
    "can_edit_task",
    "decode_frame",
    "should_view_task",
]
