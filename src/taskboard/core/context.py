"""Request-scoped context shared with the logging layer."""

from __future__ import annotations

from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
_actor_id_ctx_var: ContextVar[str] = ContextVar("actor_id", default="-")


def get_request_id() -> str:
    """Return the request identifier bound to the current context."""

    return _request_id_ctx_var.get()


def bind_request_id(request_id: str) -> Token[str]:
    return _request_id_ctx_var.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id_ctx_var.reset(token)


def get_actor_id() -> str:
    """Return the id of the authenticated user handling the current request."""

    return _actor_id_ctx_var.get()


def bind_actor_id(actor_id: str) -> Token[str]:
    return _actor_id_ctx_var.set(actor_id)


def reset_actor_id(token: Token[str]) -> None:
    _actor_id_ctx_var.reset(token)


__all__ = [
    "REQUEST_ID_HEADER",
    "bind_actor_id",
    "bind_request_id",
    "get_actor_id",
    "get_request_id",
    "reset_actor_id",
    "reset_request_id",
]
