from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest

from taskboard import policy
from taskboard.policy import Actor, TaskOwnership

CREATOR = uuid4()
ASSIGNEE = uuid4()
OUTSIDER = uuid4()


@dataclass
class _Task:
    created_by_id: UUID | str | None
    assigned_to_id: UUID | str | None


TASK = _Task(created_by_id=CREATOR, assigned_to_id=ASSIGNEE)


@pytest.mark.parametrize(
    ("actor", "read", "update", "delete"),
    [
        (Actor(id=CREATOR, role="user"), True, True, True),
        (Actor(id=ASSIGNEE, role="user"), True, True, False),
        (Actor(id=OUTSIDER, role="user"), False, False, False),
        (Actor(id=OUTSIDER, role="admin"), True, True, True),
    ],
)
def test_task_permissions_by_relationship(actor: Actor, read: bool, update: bool, delete: bool) -> None:
    assert policy.can_read(actor, TASK) is read
    assert policy.can_update(actor, TASK) is update
    assert policy.can_delete(actor, TASK) is delete


def test_missing_actor_is_denied_everything() -> None:
    assert not policy.can_read(None, TASK)
    assert not policy.can_update(None, TASK)
    assert not policy.can_delete(None, TASK)


def test_unassigned_task_is_not_shared_with_other_users() -> None:
    task = _Task(created_by_id=CREATOR, assigned_to_id=None)
    assert not policy.is_assignee(Actor(id=OUTSIDER, role="user"), task)
    assert not policy.can_read(Actor(id=OUTSIDER, role="user"), task)


def test_string_and_uuid_identifiers_compare_equal() -> None:
    actor = Actor(id=str(CREATOR), role="user")
    assert policy.is_creator(actor, TASK)


def test_visibility_scope_is_unrestricted_only_for_admins() -> None:
    assert policy.visibility_scope(Actor(id=OUTSIDER, role="admin")) is None
    assert policy.visibility_scope(Actor(id=OUTSIDER, role="user")) == OUTSIDER


def test_ownership_from_expanded_payload() -> None:
    ownership = TaskOwnership.from_payload(
        {
            "createdBy": {"id": str(CREATOR), "email": "c@example.com"},
            "assignedTo": None,
        }
    )
    assert ownership.created_by_id == str(CREATOR)
    assert ownership.assigned_to_id is None
    assert policy.can_delete(Actor(id=CREATOR, role="user"), ownership)


def test_ownership_from_raw_identifiers() -> None:
    ownership = TaskOwnership.from_payload({"createdBy": str(CREATOR), "assignedTo": ""})
    assert ownership.created_by_id == str(CREATOR)
    assert ownership.assigned_to_id is None
