"""UI affordance checks over serialised tasks.

These only decide what a client offers to show or enable; the API applies
the same predicates again and its answer is the one that counts.
"""

from __future__ import annotations

from typing import Any, Mapping

from .. import policy


def actor_from_user(user: Mapping[str, Any] | None) -> policy.Actor | None:
    """Build an :class:`~taskboard.policy.Actor` from a public user payload."""
    if not user or not user.get("id"):
        return None
    return policy.Actor(id=str(user["id"]), role=str(user.get("role", "")))


def should_view_task(viewer: policy.Actor | None, task: Mapping[str, Any]) -> bool:
    return policy.can_read(viewer, policy.TaskOwnership.from_payload(task))


def can_edit_task(viewer: policy.Actor | None, task: Mapping[str, Any]) -> bool:
    return policy.can_update(viewer, policy.TaskOwnership.from_payload(task))


def can_delete_task(viewer: policy.Actor | None, task: Mapping[str, Any]) -> bool:
    return policy.can_delete(viewer, policy.TaskOwnership.from_payload(task))


__all__ = ["actor_from_user", "can_delete_task", "can_edit_task", "should_view_task"]
