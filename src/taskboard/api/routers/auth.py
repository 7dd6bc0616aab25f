"""Authentication routes: registration, login and the caller's own profile."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...deps import AuthServiceDependency, CurrentUserDependency
from ...schemas import AuthPayload, Envelope, LoginRequest, ProfileUpdate, RegisterRequest, UserData, UserPublic

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=Envelope[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(payload: RegisterRequest, auth_service: AuthServiceDependency) -> Envelope[AuthPayload]:
    result = await auth_service.register(
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return Envelope[AuthPayload](
        message="User registered successfully",
        data=AuthPayload(token=result.token.token, user=UserPublic.model_validate(result.user)),
    )


@router.post("/login", response_model=Envelope[AuthPayload], summary="Exchange credentials for a token")
async def login(payload: LoginRequest, auth_service: AuthServiceDependency) -> Envelope[AuthPayload]:
    result = await auth_service.login(email=payload.email, password=payload.password)
    return Envelope[AuthPayload](
        message="Login successful",
        data=AuthPayload(token=result.token.token, user=UserPublic.model_validate(result.user)),
    )


@router.get("/me", response_model=Envelope[UserData], summary="Return the authenticated user")
async def read_current_user(current_user: CurrentUserDependency) -> Envelope[UserData]:
    return Envelope[UserData](data=UserData(user=UserPublic.model_validate(current_user)))


@router.put("/me", response_model=Envelope[UserData], summary="Update email and/or password")
async def update_current_user(
    payload: ProfileUpdate,
    current_user: CurrentUserDependency,
    auth_service: AuthServiceDependency,
) -> Envelope[UserData]:
    user = await auth_service.update_profile(
        current_user,
        email=payload.email,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return Envelope[UserData](
        message="Profile updated successfully",
        data=UserData(user=UserPublic.model_validate(user)),
    )
