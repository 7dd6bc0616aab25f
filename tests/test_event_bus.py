from __future__ import annotations

import asyncio
from typing import Any

import pytest
from starlette.websockets import WebSocketState

from taskboard.core.config import Settings
from taskboard.realtime import events
from taskboard.realtime.connections import ConnectionLimitExceeded, ConnectionManager
from taskboard.realtime.events import (
    InMemoryEventBus,
    RedisEventBus,
    TaskEvent,
    TaskEventName,
    build_event_bus,
)

fakeredis = pytest.importorskip("fakeredis")


class _StubWebSocket:
    def __init__(self, *, fail: bool = False, stall: bool = False) -> None:
        self.application_state = WebSocketState.CONNECTING
        self.sent: list[dict[str, Any]] = []
        self._fail = fail
        self._stall = stall

    async def accept(self) -> None:
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, message: dict[str, Any]) -> None:
        if self._fail:
            raise RuntimeError("socket closed")
        if self._stall:
            await asyncio.Event().wait()
        self.sent.append(message)


def _event(task_id: str = "t1") -> TaskEvent:
    return TaskEvent(event=TaskEventName.CREATED, data={"id": task_id, "title": "Example"})


async def test_in_memory_bus_delivers_in_background() -> None:
    delivered = asyncio.Event()
    received: list[TaskEvent] = []

    async def handler(event: TaskEvent) -> None:
        received.append(event)
        delivered.set()

    bus = build_event_bus(Settings(_env_file=None, event_transport="memory"), handler)
    assert isinstance(bus, InMemoryEventBus)

    await bus.start()
    try:
        await bus.publish(_event())
        await asyncio.wait_for(delivered.wait(), timeout=2)
    finally:
        await bus.stop()

    assert [event.data["id"] for event in received] == ["t1"]


async def test_in_memory_publish_does_not_wait_for_slow_handler() -> None:
    release = asyncio.Event()
    received: list[TaskEvent] = []

    async def handler(event: TaskEvent) -> None:
        await release.wait()
        received.append(event)

    bus = InMemoryEventBus(handler)
    await bus.start()
    try:
        await asyncio.wait_for(bus.publish(_event("t1")), timeout=1)
        await asyncio.wait_for(bus.publish(_event("t2")), timeout=1)
        assert received == []

        release.set()
        for _ in range(50):
            if len(received) == 2:
                break
            await asyncio.sleep(0.01)
    finally:
        await bus.stop()

    assert [event.data["id"] for event in received] == ["t1", "t2"]


async def test_in_memory_bus_keeps_running_after_handler_error() -> None:
    delivered = asyncio.Event()
    received: list[str] = []

    async def handler(event: TaskEvent) -> None:
        if event.data["id"] == "boom":
            raise RuntimeError("handler failed")
        received.append(event.data["id"])
        delivered.set()

    bus = InMemoryEventBus(handler)
    try:
        await bus.publish(_event("boom"))
        await bus.publish(_event("t2"))
        await asyncio.wait_for(delivered.wait(), timeout=2)
    finally:
        await bus.stop()

    assert received == ["t2"]


def test_redis_transport_is_selected_from_settings() -> None:
    async def handler(event: TaskEvent) -> None:  # pragma: no cover - never called
        return None

    bus = build_event_bus(Settings(_env_file=None, event_transport="redis"), handler)
    assert isinstance(bus, RedisEventBus)


async def test_connection_manager_broadcasts_to_every_socket() -> None:
    manager = ConnectionManager(max_connections=5)
    first, second = _StubWebSocket(), _StubWebSocket()
    await manager.connect(first)
    await manager.connect(second)

    await manager.broadcast(_event())

    expected = {"event": "task:created", "data": {"id": "t1", "title": "Example"}}
    assert first.sent == [expected]
    assert second.sent == [expected]


async def test_connection_manager_enforces_limit() -> None:
    manager = ConnectionManager(max_connections=1)
    await manager.connect(_StubWebSocket())

    with pytest.raises(ConnectionLimitExceeded):
        await manager.connect(_StubWebSocket())
    assert manager.active_connections == 1


async def test_connection_manager_drops_failed_sockets() -> None:
    manager = ConnectionManager(max_connections=5)
    healthy, broken = _StubWebSocket(), _StubWebSocket(fail=True)
    await manager.connect(healthy)
    await manager.connect(broken)

    await manager.broadcast(_event())

    assert manager.active_connections == 1
    assert len(healthy.sent) == 1

    await manager.disconnect(healthy)
    assert manager.active_connections == 0


async def test_connection_manager_drops_sockets_that_stall() -> None:
    manager = ConnectionManager(max_connections=5, send_timeout=0.05)
    healthy, stalled = _StubWebSocket(), _StubWebSocket(stall=True)
    await manager.connect(stalled)
    await manager.connect(healthy)

    await asyncio.wait_for(manager.broadcast(_event()), timeout=1)

    assert len(healthy.sent) == 1
    assert stalled.sent == []
    assert manager.active_connections == 1

    await manager.broadcast(_event("t2"))
    assert [message["data"]["id"] for message in healthy.sent] == ["t1", "t2"]


async def test_redis_bus_fans_out_across_processes(monkeypatch: pytest.MonkeyPatch) -> None:
    server = fakeredis.FakeServer()

    class _FakeRedisFactory:
        @staticmethod
        def from_url(url: str, **kwargs: Any):
            return fakeredis.FakeAsyncRedis(server=server, **kwargs)

    monkeypatch.setattr(events, "Redis", _FakeRedisFactory)

    settings = Settings(_env_file=None, event_transport="redis", redis_channel="tests:task-events")
    delivered = asyncio.Event()
    received: list[TaskEvent] = []

    async def handler(event: TaskEvent) -> None:
        received.append(event)
        delivered.set()

    subscriber = RedisEventBus(settings, handler)
    publisher = RedisEventBus(settings, handler)
    await subscriber.start()
    await publisher.start()
    try:
        await publisher.publish(TaskEvent(event=TaskEventName.DELETED, data={"id": "t9"}))
        await asyncio.wait_for(delivered.wait(), timeout=2)
    finally:
        await publisher.stop()
        await subscriber.stop()

    assert received[0].event == TaskEventName.DELETED
    assert received[0].data == {"id": "t9"}


async def test_redis_bus_discards_malformed_messages() -> None:
    received: list[TaskEvent] = []

    async def handler(event: TaskEvent) -> None:
        received.append(event)

    bus = RedisEventBus(Settings(_env_file=None), handler)
    await bus._dispatch(b"not json")
    await bus._dispatch(b'{"event": "task:created", "data": {"id": "t1"}}')

    assert [event.data for event in received] == [{"id": "t1"}]


async def test_redis_bus_requires_start_before_publish() -> None:
    async def handler(event: TaskEvent) -> None:  # pragma: no cover - never called
        return None

    with pytest.raises(RuntimeError):
        await RedisEventBus(Settings(_env_file=None), handler).publish(_event())
