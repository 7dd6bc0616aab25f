"""Realtime fan-out of task mutation events."""

from .auth import (
    UNAUTHORIZED_CLOSE_CODE,
    RealtimeAuthenticationError,
    authenticate_websocket,
    warn_if_unverified,
)
from .connections import ConnectionLimitExceeded, ConnectionManager
from .events import (
    EventBus,
    InMemoryEventBus,
    RedisEventBus,
    TaskEvent,
    TaskEventName,
    build_event_bus,
)

__all__ = [
    "ConnectionLimitExceeded",
    "ConnectionManager",
    "EventBus",
    "InMemoryEventBus",
    "RealtimeAuthenticationError",
    "RedisEventBus",
    "TaskEvent",
    "TaskEventName",
    "UNAUTHORIZED_CLOSE_CODE",
    "authenticate_websocket",
    "build_event_bus",
    "warn_if_unverified",
]
