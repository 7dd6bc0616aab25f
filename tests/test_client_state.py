from __future__ import annotations

import pytest

from taskboard.client import AuthStore, TaskEventConsumer, TaskStore, can_delete_task, can_edit_task
from taskboard.policy import Actor

ALICE = {"id": "a1", "email": "alice@example.com", "role": "user"}
BOB = {"id": "b2", "email": "bob@example.com", "role": "user"}
ADMIN = {"id": "c3", "email": "admin@example.com", "role": "admin"}


def _task(task_id: str, *, creator: dict = ALICE, assignee: dict | None = None, **fields) -> dict:
    return {
        "id": task_id,
        "title": fields.pop("title", f"Task {task_id}"),
        "status": fields.pop("status", "TODO"),
        "priority": "MEDIUM",
        "createdBy": {"id": creator["id"], "email": creator["email"]},
        "assignedTo": {"id": assignee["id"], "email": assignee["email"]} if assignee else None,
        **fields,
    }


def _actor(user: dict) -> Actor:
    return Actor(id=user["id"], role=user["role"])


def test_initial_state() -> None:
    store = TaskStore()
    assert store.state.tasks == []
    assert store.state.current_task is None
    assert (store.state.pagination.page, store.state.pagination.limit) == (1, 10)
    assert store.state.filters.as_params() == {}
    assert store.state.loading is False


def test_filter_change_resets_page_but_page_change_does_not() -> None:
    store = TaskStore()
    store.set_filters(page=3)
    assert store.state.pagination.page == 3

    store.set_filters(status="DONE")
    assert store.state.pagination.page == 1
    assert store.state.filters.status == "DONE"

    store.set_filters(search="report", page=2)
    assert store.state.pagination.page == 2
    assert store.query_params() == {"page": "2", "limit": "10", "status": "DONE", "search": "report"}

    store.clear_filters()
    assert store.state.filters.as_params() == {}


def test_unknown_filter_is_rejected() -> None:
    with pytest.raises(ValueError):
        TaskStore().set_filters(colour="red")


def test_due_date_filter_uses_api_parameter_name() -> None:
    store = TaskStore()
    store.set_filters(due_date="2030-01-01")
    assert store.query_params()["dueDate"] == "2030-01-01"


def test_request_and_event_paths_converge_on_create() -> None:
    task = _task("t1")

    request_first = TaskStore()
    request_first.tasks_loaded([], {"page": 1, "limit": 10, "total": 0, "pages": 0})
    request_first.task_created(task)
    request_first.apply_event({"event": "task:created", "data": task}, _actor(ALICE))

    event_first = TaskStore()
    event_first.tasks_loaded([], {"page": 1, "limit": 10, "total": 0, "pages": 0})
    event_first.apply_event({"event": "task:created", "data": task}, _actor(ALICE))
    event_first.task_created(task)

    for store in (request_first, event_first):
        assert store.ids == ["t1"]
        assert store.state.pagination.total == 1


def test_request_and_event_paths_converge_on_delete() -> None:
    task = _task("t1")
    store = TaskStore()
    store.tasks_loaded([task], {"page": 1, "limit": 10, "total": 1, "pages": 1})
    store.set_current_task(task)

    store.apply_event({"event": "task:deleted", "data": {"id": "t1"}}, _actor(ALICE))
    store.task_deleted("t1")

    assert store.ids == []
    assert store.state.pagination.total == 0
    assert store.state.current_task is None


def test_events_outside_visibility_are_dropped() -> None:
    store = TaskStore()
    hidden = _task("t9", creator=BOB)

    changed = store.apply_event({"event": "task:created", "data": hidden}, _actor(ALICE))

    assert changed is False
    assert store.ids == []
    assert store.state.pagination.total == 0


def test_assignee_and_admin_receive_events() -> None:
    assigned = _task("t2", creator=BOB, assignee=ALICE)

    alice_store = TaskStore()
    admin_store = TaskStore()
    alice_store.apply_event({"event": "task:created", "data": assigned}, _actor(ALICE))
    admin_store.apply_event({"event": "task:created", "data": assigned}, _actor(ADMIN))

    assert alice_store.ids == ["t2"]
    assert admin_store.ids == ["t2"]


def test_update_event_replaces_by_id_and_refreshes_current_task() -> None:
    original = _task("t1")
    other = _task("t0")
    store = TaskStore()
    store.tasks_loaded([original, other], {"page": 1, "limit": 10, "total": 2, "pages": 1})
    store.set_current_task(original)

    updated = _task("t1", status="DONE")
    store.apply_event({"event": "task:updated", "data": updated}, _actor(ALICE))

    assert store.state.tasks[0]["status"] == "DONE"
    assert store.state.current_task["status"] == "DONE"
    assert store.state.pagination.total == 2


def test_update_event_for_uncached_task_is_ignored() -> None:
    store = TaskStore()
    changed = store.apply_event({"event": "task:updated", "data": _task("t5")}, _actor(ALICE))
    assert changed is False
    assert store.ids == []


def test_events_are_prepended_newest_first() -> None:
    store = TaskStore()
    store.tasks_loaded([_task("t1")], {"page": 1, "limit": 10, "total": 1, "pages": 1})
    store.apply_event({"event": "task:created", "data": _task("t2")}, _actor(ALICE))
    assert store.ids == ["t2", "t1"]


def test_consumer_ignores_non_event_frames() -> None:
    auth = AuthStore()
    auth.signed_in("token", ALICE)
    store = TaskStore()
    consumer = TaskEventConsumer(store, auth)

    assert consumer.handle("pong") is False
    assert consumer.handle('{"hello": "world"}') is False
    assert consumer.handle('{"event": "task:created", "data": {"id": "t1", "createdBy": {"id": "a1"}}}') is True
    assert store.ids == ["t1"]


def test_signed_out_viewer_keeps_nothing() -> None:
    consumer = TaskEventConsumer(TaskStore(), AuthStore())
    assert consumer.handle({"event": "task:created", "data": _task("t1")}) is False


def test_auth_store_logout_resets_state() -> None:
    auth = AuthStore()
    auth.signed_in("token", ALICE)
    assert auth.state.is_authenticated is True
    assert auth.actor == Actor(id="a1", role="user")

    auth.logout()

    assert auth.state.user is None
    assert auth.state.token is None
    assert auth.state.is_authenticated is False


def test_ui_permission_hints_mirror_policy() -> None:
    task = _task("t1", creator=ALICE, assignee=BOB)

    assert can_edit_task(_actor(BOB), task) is True
    assert can_delete_task(_actor(BOB), task) is False
    assert can_delete_task(_actor(ALICE), task) is True
    assert can_delete_task(_actor(ADMIN), task) is True
    assert can_edit_task(None, task) is False


def test_current_task_and_error_can_be_cleared() -> None:
    store = TaskStore()
    store.task_loaded(_task("t1"))
    store.request_failed("Failed to fetch task")

    store.clear_current_task()
    store.clear_error()

    assert store.state.current_task is None
    assert store.state.error is None
    assert store.state.loading is False
