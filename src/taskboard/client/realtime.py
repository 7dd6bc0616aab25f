"""Feeding socket frames into the client task store."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from .state import AuthStore, TaskStore

logger = logging.getLogger(__name__)


def decode_frame(frame: str | bytes | Mapping[str, Any]) -> dict[str, Any] | None:
    """Parse a socket frame; returns ``None`` for anything that is not a task event."""
    if isinstance(frame, Mapping):
        return dict(frame)
    try:
        message = json.loads(frame)
    except ValueError:
        return None
    return message if isinstance(message, dict) and "event" in message else None


class TaskEventConsumer:
    """Applies received socket frames to a :class:`TaskStore` for the signed-in viewer."""

    def __init__(self, tasks: TaskStore, auth: AuthStore) -> None:
        self._tasks = tasks
        self._auth = auth

    def handle(self, frame: str | bytes | Mapping[str, Any]) -> bool:
        message = decode_frame(frame)
        if message is None:
            logger.debug("Ignoring non-event socket frame")
            return False
        return self._tasks.apply_event(message, self._auth.actor)


__all__ = ["TaskEventConsumer", "decode_frame"]
