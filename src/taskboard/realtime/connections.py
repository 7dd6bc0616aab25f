"""Registry of connected task-event sockets."""

from __future__ import annotations

import asyncio
import logging

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from .events import TaskEvent

logger = logging.getLogger(__name__)


class ConnectionLimitExceeded(RuntimeError):
    """Raised when the websocket connection pool is exhausted."""


class ConnectionManager:
    """Tracks open sockets and fans task events out to all of them.

    Delivery is unfiltered: every socket receives every event and the client
    decides what it may keep.

    Sends run concurrently and a socket that does not accept a frame within
    ``send_timeout`` seconds is dropped.
    """

    def __init__(self, max_connections: int, *, send_timeout: float = 5.0) -> None:
        self._max_connections = max_connections
        self._send_timeout = send_timeout
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def active_connections(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> int:
        async with self._lock:
            if len(self._connections) >= self._max_connections:
                raise ConnectionLimitExceeded("Websocket connection limit reached.")
            self._connections.add(websocket)
            active = len(self._connections)
        await websocket.accept()
        return active

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)

    async def broadcast(self, event: TaskEvent) -> None:
        async with self._lock:
            connections = list(self._connections)
        message = event.model_dump(mode="json")

        live = [ws for ws in connections if ws.application_state == WebSocketState.CONNECTED]
        stale = [ws for ws in connections if ws.application_state != WebSocketState.CONNECTED]
        results = await asyncio.gather(
            *(asyncio.wait_for(ws.send_json(message), timeout=self._send_timeout) for ws in live),
            return_exceptions=True,
        )
        for websocket, result in zip(live, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning("Socket send timed out", extra={"timeout": self._send_timeout})
                stale.append(websocket)
            elif isinstance(result, (WebSocketDisconnect, RuntimeError)):
                stale.append(websocket)
            elif isinstance(result, BaseException):
                raise result

        if stale:
            logger.info("Dropping stale sockets", extra={"count": len(stale)})
            async with self._lock:
                self._connections.difference_update(stale)
        logger.debug(
            "Task event broadcast",
            extra={"event": event.event.value, "recipients": len(connections) - len(stale)},
        )

    async def reset(self) -> None:
        async with self._lock:
            self._connections.clear()


__all__ = ["ConnectionLimitExceeded", "ConnectionManager"]
