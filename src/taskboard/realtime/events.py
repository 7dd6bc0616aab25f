"""Task mutation events and the buses that carry them to socket clients."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

from pydantic import BaseModel, Field
from redis.asyncio import Redis
from redis.asyncio.client import PubSub

from ..core.config import Settings

logger = logging.getLogger(__name__)


class TaskEventName(str, Enum):
    CREATED = "task:created"
    UPDATED = "task:updated"
    DELETED = "task:deleted"


class TaskEvent(BaseModel):
    """Wire message delivered to every connected socket.

    ``data`` is the expanded task for created/updated events and ``{"id": ...}``
    for deletions.
    """

    event: TaskEventName
    data: dict[str, Any] = Field(default_factory=dict)


EventHandler = Callable[[TaskEvent], Awaitable[None]]


class EventBus(Protocol):
    """Publish/subscribe seam between task mutations and socket fan-out."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def publish(self, event: TaskEvent) -> None: ...


class InMemoryEventBus:
    """Queue events and hand them to the handler from a background task.

    ``publish`` returns once the event is queued, so a slow handler never
    holds up the request that produced the event.
    """

    def __init__(self, handler: EventHandler) -> None:
        self._handler = handler
        self._queue: asyncio.Queue[TaskEvent] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._drain(), name="taskboard-memory-events")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def publish(self, event: TaskEvent) -> None:
        self._queue.put_nowait(event)
        await self.start()

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._handler(event)
            except Exception:
                logger.exception("Task event handler failed", extra={"event": event.event.value})
            finally:
                self._queue.task_done()


class RedisEventBus:
    """Relay events through Redis pub/sub so every API process fans them out."""

    def __init__(self, settings: Settings, handler: EventHandler) -> None:
        self._settings = settings
        self._handler = handler
        self._redis: Redis | None = None
        self._pubsub: PubSub | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()

    @property
    def channel(self) -> str:
        return self._settings.redis_channel

    async def start(self) -> None:
        self._stopped.clear()
        await self._initialise_pubsub()
        self._task = asyncio.create_task(self._listen_loop(), name="taskboard-redis-events")
        logger.info("Redis event bus subscribed", extra={"channel": self.channel})

    async def stop(self) -> None:
        self._stopped.set()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._close_pubsub()
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def publish(self, event: TaskEvent) -> None:
        if self._redis is None:
            raise RuntimeError("Redis event bus has not been started.")
        await self._redis.publish(self.channel, event.model_dump_json().encode("utf-8"))

    async def _close_pubsub(self) -> None:
        if self._pubsub is None:
            return
        try:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
        except Exception:
            logger.warning("Failed to close Redis subscription cleanly", exc_info=True)
        self._pubsub = None

    async def _initialise_pubsub(self) -> None:
        await self._close_pubsub()
        if self._redis:
            await self._redis.aclose()
        self._redis = Redis.from_url(
            self._settings.redis_url,
            encoding="utf-8",
            decode_responses=False,
        )
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(self.channel)

    async def _dispatch(self, raw: Any) -> None:
        payload = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
        try:
            event = TaskEvent.model_validate_json(payload)
        except ValueError:
            logger.warning("Discarding malformed task event", extra={"payload": payload[:200]})
            return
        try:
            await self._handler(event)
        except Exception:
            logger.exception("Task event handler failed", extra={"event": event.event.value})

    async def _listen_loop(self) -> None:
        backoff = self._settings.reconnect_initial_delay_seconds
        max_backoff = self._settings.reconnect_max_delay_seconds

        while not self._stopped.is_set():
            assert self._pubsub is not None
            try:
                async for message in self._pubsub.listen():
                    if self._stopped.is_set():
                        break
                    if message.get("type") != "message":
                        continue
                    await self._dispatch(message.get("data"))
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Redis listener failed; reconnecting", extra={"delay": backoff})
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, max_backoff)
                await self._initialise_pubsub()
            else:
                backoff = self._settings.reconnect_initial_delay_seconds


def build_event_bus(settings: Settings, handler: EventHandler) -> EventBus:
    """Return the bus selected by ``settings.event_transport``."""

    if settings.event_transport == "redis":
        return RedisEventBus(settings, handler)
    return InMemoryEventBus(handler)


__all__ = [
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
    "RedisEventBus",
    "TaskEvent",
    "TaskEventName",
    "build_event_bus",
]
