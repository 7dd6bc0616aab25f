"""Handshake checks for task-event sockets.

A connection must present a token, either as the ``token`` query parameter or
as a bearer ``Authorization`` header. Unless ``realtime_verify_tokens`` is
enabled the token is only checked for presence, so any non-empty string is
accepted; clients are expected to discard events they may not read.
"""

from __future__ import annotations

import logging
from typing import Mapping

from starlette.websockets import WebSocket

from ..core.config import Settings
from ..core.security import JWTError, decode_token

logger = logging.getLogger(__name__)

UNAUTHORIZED_CLOSE_CODE = 4401


class RealtimeAuthenticationError(RuntimeError):
    """Raised when a realtime connection fails authentication."""


def _extract_authorization_token(headers: Mapping[str, str]) -> str | None:
    auth = headers.get("authorization") or headers.get("Authorization")
    if not auth:
        return None
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def extract_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if not token:
        token = _extract_authorization_token(websocket.headers)
    return token or None


def warn_if_unverified(settings: Settings) -> None:
    if not settings.realtime_verify_tokens:
        logger.warning(
            "Socket handshake tokens are not verified; any non-empty token can subscribe",
            extra={"setting": "TASKBOARD_REALTIME_VERIFY_TOKENS"},
        )


async def authenticate_websocket(websocket: WebSocket, settings: Settings) -> str:
    """Accept or reject the handshake, closing the socket with 4401 on rejection."""

    token = extract_token(websocket)
    if not token:
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
        raise RealtimeAuthenticationError("Missing realtime token.")
    if settings.realtime_verify_tokens:
        try:
            decode_token(token=token, settings=settings)
        except JWTError as exc:
            await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
            raise RealtimeAuthenticationError("Invalid realtime token.") from exc
    return token


__all__ = [
    "RealtimeAuthenticationError",
    "UNAUTHORIZED_CLOSE_CODE",
    "authenticate_websocket",
    "extract_token",
    "warn_if_unverified",
]
