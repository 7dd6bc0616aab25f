from __future__ import annotations

from fastapi import status
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.repositories import UserRepository

TEST_PASSWORD = "secret123"


async def test_register_returns_token_and_public_user(client: AsyncClient) -> None:
    response = await client.post(
        "/api/auth/register",
        json={"email": "  Alice@Example.com ", "password": TEST_PASSWORD},
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "alice@example.com"
    assert user["role"] == "user"
    assert "createdAt" in user
    assert "password" not in user and "hashedPassword" not in user
    assert body["data"]["token"]


async def test_register_rejects_malformed_input(client: AsyncClient) -> None:
    response = await client.post("/api/auth/register", json={"email": "not-an-email", "password": "123"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "validation_error"
    fields = {error["field"] for error in body["errors"]}
    assert {"email", "password"} <= fields


async def test_duplicate_registration_keeps_original_password(
    client: AsyncClient,
    session: AsyncSession,
    register_user,
) -> None:
    original = await register_user(email="bob@example.com")
    stored = await UserRepository(session).get_by_email("bob@example.com")
    assert stored is not None
    original_hash = stored.hashed_password

    response = await client.post(
        "/api/auth/register",
        json={"email": "BOB@example.com", "password": "another-password"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "User with this email already exists"
    await session.refresh(stored)
    assert stored.hashed_password == original_hash

    login = await client.post("/api/auth/login", json={"email": original.email, "password": TEST_PASSWORD})
    assert login.status_code == status.HTTP_200_OK


async def test_login_with_valid_credentials(client: AsyncClient, register_user) -> None:
    user = await register_user()

    response = await client.post("/api/auth/login", json={"email": user.email, "password": user.password})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["user"]["id"] == user.id
    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.json()["data"]["user"]["email"] == user.email


async def test_login_rejects_unknown_email_and_bad_password(client: AsyncClient, register_user) -> None:
    user = await register_user()

    wrong_password = await client.post("/api/auth/login", json={"email": user.email, "password": "nope-nope"})
    unknown = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "whatever"})

    for response in (wrong_password, unknown):
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "invalid_credentials"
        assert response.json()["message"] == "Invalid email or password"


async def test_protected_route_requires_valid_token(client: AsyncClient) -> None:
    missing = await client.get("/api/auth/me")
    forged = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert missing.status_code == status.HTTP_401_UNAUTHORIZED
    assert forged.status_code == status.HTTP_401_UNAUTHORIZED
    assert forged.json()["code"] == "invalid_token"


async def test_expired_token_is_rejected(client: AsyncClient, settings, register_user) -> None:
    from datetime import timedelta

    from taskboard.core.security import create_access_token

    user = await register_user()
    expired = create_access_token(
        subject=user.id,
        role=user.role,
        settings=settings,
        expires_delta=timedelta(seconds=-5),
    )

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired.token}"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Token has expired"


async def test_tokens_are_signed_with_the_application_settings(client: AsyncClient, settings) -> None:
    from taskboard.core.security import decode_token

    response = await client.post(
        "/api/auth/register",
        json={"email": "signed@example.com", "password": TEST_PASSWORD},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    claims = decode_token(token=data["token"], settings=settings)
    assert settings.jwt_secret_key == "test-secret-key"
    assert claims["sub"] == data["user"]["id"]


async def test_change_password_requires_current_password(client: AsyncClient, register_user) -> None:
    user = await register_user()

    missing = await client.put("/api/auth/me", json={"newPassword": "brand-new"}, headers=user.headers)
    wrong = await client.put(
        "/api/auth/me",
        json={"currentPassword": "incorrect", "newPassword": "brand-new"},
        headers=user.headers,
    )

    assert missing.status_code == status.HTTP_400_BAD_REQUEST
    assert missing.json()["errors"][0]["field"] == "currentPassword"
    assert wrong.status_code == status.HTTP_400_BAD_REQUEST
    assert wrong.json()["code"] == "invalid_credentials"


async def test_change_password_and_email(client: AsyncClient, register_user) -> None:
    user = await register_user()

    response = await client.put(
        "/api/auth/me",
        json={"email": "renamed@example.com", "currentPassword": user.password, "newPassword": "brand-new"},
        headers=user.headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["user"]["email"] == "renamed@example.com"
    old = await client.post("/api/auth/login", json={"email": "renamed@example.com", "password": user.password})
    new = await client.post("/api/auth/login", json={"email": "renamed@example.com", "password": "brand-new"})
    assert old.status_code == status.HTTP_401_UNAUTHORIZED
    assert new.status_code == status.HTTP_200_OK


async def test_email_change_to_taken_address_is_rejected(client: AsyncClient, register_user) -> None:
    first = await register_user()
    second = await register_user()

    response = await client.put("/api/auth/me", json={"email": first.email}, headers=second.headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "duplicate_email"
