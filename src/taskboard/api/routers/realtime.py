"""Websocket endpoint that streams task events to connected clients."""

from __future__ import annotations

import logging

from fastapi import WebSocket, status
from starlette.websockets import WebSocketDisconnect

from ...realtime import (
    ConnectionLimitExceeded,
    ConnectionManager,
    RealtimeAuthenticationError,
    authenticate_websocket,
)

logger = logging.getLogger(__name__)


async def task_events_socket(websocket: WebSocket) -> None:
    """Relay every task event to this socket until the client disconnects.

    Clients may send ``ping`` to receive ``pong``; all other inbound frames
    are ignored.
    """

    settings = websocket.app.state.settings
    try:
        await authenticate_websocket(websocket, settings)
    except RealtimeAuthenticationError as exc:
        logger.info("Socket handshake rejected", extra={"reason": str(exc)})
        return

    connections: ConnectionManager = websocket.app.state.connections
    try:
        active = await connections.connect(websocket)
    except ConnectionLimitExceeded:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return
    logger.info("Socket connected", extra={"active_connections": active})

    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await connections.disconnect(websocket)
        logger.info("Socket disconnected", extra={"active_connections": connections.active_connections})


__all__ = ["task_events_socket"]
