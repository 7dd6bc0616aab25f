"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .auth import AuthPayload, LoginRequest, ProfileUpdate, RegisterRequest
from .system import ApiModel, Envelope, ErrorResponse, FieldError, HealthCheckResponse
from .task import (
    DeletedTask,
    Pagination,
    TaskCreate,
    TaskData,
    TaskListData,
    TaskListQuery,
    TaskRead,
    TaskStatistics,
    TaskUpdate,
)
from .user import UserCreate, UserData, UserListData, UserPublic, UserSearchData, UserSummary

__all__ = [
    "ApiModel",
    "AuthPayload",
    "DeletedTask",
    "Envelope",
    "ErrorResponse",
    "FieldError",
    "HealthCheckResponse",
    "LoginRequest",
    "Pagination",
    "ProfileUpdate",
    "RegisterRequest",
    "TaskCreate",
    "TaskData",
    "TaskListData",
    "TaskListQuery",
    "TaskRead",
    "TaskStatistics",
    "TaskUpdate",
    "UserCreate",
    "UserData",
    "UserListData",
    "UserPublic",
    "UserSearchData",
    "UserSummary",
]
