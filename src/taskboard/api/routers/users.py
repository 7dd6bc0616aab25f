"""User roster routes; listing and creation are admin-only."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from ...deps import AdminUserDependency, CurrentUserDependency, UserServiceDependency
from ...schemas import Envelope, UserCreate, UserData, UserListData, UserPublic, UserSearchData, UserSummary

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=Envelope[UserListData], summary="List all users (admin)")
async def list_users(_: AdminUserDependency, service: UserServiceDependency) -> Envelope[UserListData]:
    users = await service.list_users()
    return Envelope[UserListData](
        data=UserListData(users=[UserPublic.model_validate(user) for user in users], count=len(users))
    )


@router.post(
    "",
    response_model=Envelope[UserData],
    status_code=status.HTTP_201_CREATED,
    summary="Create a user (admin)",
)
async def create_user(
    payload: UserCreate,
    _: AdminUserDependency,
    service: UserServiceDependency,
) -> Envelope[UserData]:
    user = await service.create_user(email=payload.email, password=payload.password, role=payload.role)
    return Envelope[UserData](
        message="User created successfully",
        data=UserData(user=UserPublic.model_validate(user)),
    )


@router.get("/search", response_model=Envelope[UserSearchData], summary="Find assignable users by email")
async def search_users(
    _: CurrentUserDependency,
    service: UserServiceDependency,
    query: Annotated[str, Query(description="Case-insensitive email substring")] = "",
) -> Envelope[UserSearchData]:
    users = await service.search_assignable(query)
    return Envelope[UserSearchData](
        data=UserSearchData(users=[UserSummary.model_validate(user) for user in users])
    )


@router.get("/{user_id}", response_model=Envelope[UserData], summary="Retrieve a user (self or admin)")
async def get_user(
    user_id: str,
    current_user: CurrentUserDependency,
    service: UserServiceDependency,
) -> Envelope[UserData]:
    user = await service.get_user_for(current_user.actor, user_id)
    return Envelope[UserData](data=UserData(user=UserPublic.model_validate(user)))
