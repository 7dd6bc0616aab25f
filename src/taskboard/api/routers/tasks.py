"""Routes handling task CRUD operations."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, status
from pydantic import ValidationError as PydanticValidationError

from ...deps import CurrentUserDependency, SettingsDependency, TaskServiceDependency
from ...errors import validation_error_from_pydantic
from ...schemas import (
    DeletedTask,
    Envelope,
    TaskCreate,
    TaskData,
    TaskListData,
    TaskListQuery,
    TaskStatistics,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])

TextQuery = Annotated[str | None, Query()]


@router.get("", response_model=Envelope[TaskListData], summary="List visible tasks with filters")
async def list_tasks(
    current_user: CurrentUserDependency,
    service: TaskServiceDependency,
    settings: SettingsDependency,
    page: TextQuery = None,
    limit: Annotated[str | None, Query(description="Page size; uncapped unless configured")] = None,
    status: TextQuery = None,
    priority: TextQuery = None,
    search: TextQuery = None,
    due_date: Annotated[str | None, Query(alias="dueDate", description="Only tasks due on or before")] = None,
) -> Envelope[TaskListData]:
    raw: dict[str, Any] = {
        "page": page,
        "limit": limit,
        "status": status,
        "priority": priority,
        "search": search,
        "dueDate": due_date,
    }
    try:
        query = TaskListQuery.model_validate({key: value for key, value in raw.items() if value is not None})
    except PydanticValidationError as exc:
        raise validation_error_from_pydantic(exc) from exc
    data = await service.list_tasks(
        current_user.actor,
        query,
        max_limit=settings.task_page_size_max,
    )
    return Envelope[TaskListData](data=data)


@router.get("/statistics", response_model=Envelope[TaskStatistics], summary="Task counts by status and priority")
async def task_statistics(
    current_user: CurrentUserDependency,
    service: TaskServiceDependency,
) -> Envelope[TaskStatistics]:
    return Envelope[TaskStatistics](data=await service.statistics(current_user.actor))


@router.get("/{task_id}", response_model=Envelope[TaskData], summary="Retrieve a task by id")
async def get_task(
    task_id: str,
    current_user: CurrentUserDependency,
    service: TaskServiceDependency,
) -> Envelope[TaskData]:
    task = await service.get_task(current_user.actor, task_id)
    return Envelope[TaskData](data=TaskData(task=task))


@router.post(
    "",
    response_model=Envelope[TaskData],
    status_code=status.HTTP_201_CREATED,
    summary="Create a task owned by the caller",
)
async def create_task(
    payload: TaskCreate,
    current_user: CurrentUserDependency,
    service: TaskServiceDependency,
) -> Envelope[TaskData]:
    task = await service.create_task(current_user.actor, payload)
    return Envelope[TaskData](message="Task created successfully", data=TaskData(task=task))


@router.put("/{task_id}", response_model=Envelope[TaskData], summary="Partially update a task")
async def update_task(
    task_id: str,
    current_user: CurrentUserDependency,
    service: TaskServiceDependency,
    payload: Annotated[TaskUpdate, Body()],
) -> Envelope[TaskData]:
    task = await service.update_task(current_user.actor, task_id, payload.to_patch())
    return Envelope[TaskData](message="Task updated successfully", data=TaskData(task=task))


@router.delete("/{task_id}", response_model=Envelope[DeletedTask], summary="Delete a task")
async def delete_task(
    task_id: str,
    current_user: CurrentUserDependency,
    service: TaskServiceDependency,
) -> Envelope[DeletedTask]:
    deleted_id = await service.delete_task(current_user.actor, task_id)
    return Envelope[DeletedTask](message="Task deleted successfully", data=DeletedTask(id=deleted_id))
