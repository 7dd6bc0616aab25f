"""Access rules for tasks.

These predicates are the whole of the task access-control logic. The API
services call them before every read, update and delete, listing narrows its
query with :func:`visibility_scope`, and the client store reuses
:func:`can_read` to decide which broadcast events belong in its cache.
Nothing here touches storage or the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol
from uuid import UUID

ADMIN_ROLE = "admin"

Identifier = UUID | str


@dataclass(frozen=True, slots=True)
class Actor:
    """The identity making a request."""

    id: Identifier
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class OwnedTask(Protocol):
    """Anything that knows who created it and who it is assigned to."""

    @property
    def created_by_id(self) -> Identifier | None: ...

    @property
    def assigned_to_id(self) -> Identifier | None: ...


@dataclass(frozen=True, slots=True)
class TaskOwnership:
    """Ownership extracted from a serialised task payload."""

    created_by_id: str | None
    assigned_to_id: str | None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TaskOwnership":
        return cls(
            created_by_id=_reference_id(payload.get("createdBy")),
            assigned_to_id=_reference_id(payload.get("assignedTo")),
        )


def _reference_id(value: Any) -> str | None:
    if isinstance(value, Mapping):
        value = value.get("id")
    if value in (None, ""):
        return None
    return str(value)


def _same(left: Identifier | None, right: Identifier | None) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


def is_creator(actor: Actor, task: OwnedTask) -> bool:
    return _same(actor.id, task.created_by_id)


def is_assignee(actor: Actor, task: OwnedTask) -> bool:
    return _same(actor.id, task.assigned_to_id)


def can_read(actor: Actor | None, task: OwnedTask) -> bool:
    if actor is None:
        return False
    return actor.is_admin or is_creator(actor, task) or is_assignee(actor, task)


def can_update(actor: Actor | None, task: OwnedTask) -> bool:
    if actor is None:
        return False
    return actor.is_admin or is_creator(actor, task) or is_assignee(actor, task)


def can_delete(actor: Actor | None, task: OwnedTask) -> bool:
    if actor is None:
        return False
    return actor.is_admin or is_creator(actor, task)


def visibility_scope(actor: Actor) -> Identifier | None:
    """Return the user id a listing must be restricted to, or ``None`` for everything."""

    if actor.is_admin:
        return None
    return actor.id


__all__ = [
    "ADMIN_ROLE",
    "Actor",
    "Identifier",
    "OwnedTask",
    "TaskOwnership",
    "can_delete",
    "can_read",
    "can_update",
    "is_assignee",
    "is_creator",
    "visibility_scope",
]
