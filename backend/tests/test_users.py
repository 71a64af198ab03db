"""Tests for user account endpoints."""

from pathlib import Path
from typing import Any, cast
from uuid import uuid4

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import verify_password
from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def make_user_payload(prefix: str, password: str = "secret1") -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "name": f"{prefix} {suffix}",
        "email": f"{prefix}_{suffix}@example.com",
        "password": password,
        "password2": password,
    }


async def register_and_login(client: AsyncClient, prefix: str) -> dict[str, Any]:
    payload = make_user_payload(prefix)
    register = await client.post("/api/users/register", json=payload)
    assert register.status_code == status.HTTP_201_CREATED

    login = await client.post(
        "/api/users/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert login.status_code == status.HTTP_200_OK
    body = login.json()
    return {
        **payload,
        "id": body["id"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.mark.asyncio
async def test_register_returns_confirmation_without_secrets(
    async_client: AsyncClient,
    db_session: AsyncSession,
):
    payload = make_user_payload("writer")
    response = await async_client.post("/api/users/register", json=payload)

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == f"New user {payload['email']} registered."

    result = await db_session.execute(select(User).where(_eq(User.email, payload["email"])))
    user = result.scalar_one()
    assert user.post_count == 0
    assert user.avatar is None
    assert user.password_hash != payload["password"]
    assert verify_password(payload["password"], user.password_hash)


@pytest.mark.asyncio
async def test_register_rejects_emails_differing_only_in_case(
    async_client: AsyncClient,
    db_session: AsyncSession,
):
    first = await async_client.post(
        "/api/users/register",
        json={"name": "Alice", "email": "Alice@X.com", "password": "secret1", "password2": "secret1"},
    )
    assert first.status_code == status.HTTP_201_CREATED

    duplicate = await async_client.post(
        "/api/users/register",
        json={"name": "Alias", "email": "alice@x.com", "password": "secret1", "password2": "secret1"},
    )
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json() == {"detail": "Email already exists."}

    result = await db_session.execute(select(User))
    users = result.scalars().all()
    assert [user.email for user in users] == ["alice@x.com"]


@pytest.mark.asyncio
async def test_register_requires_all_fields(async_client: AsyncClient):
    payload = make_user_payload("incomplete")
    payload.pop("password2")

    response = await async_client.post("/api/users/register", json=payload)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Fill in all fields."}


@pytest.mark.asyncio
async def test_register_rejects_short_password(async_client: AsyncClient):
    payload = make_user_payload("short", password="abc12")

    response = await async_client.post("/api/users/register", json=payload)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Password should be at least 6 characters."}


@pytest.mark.asyncio
async def test_register_rejects_mismatched_passwords(async_client: AsyncClient):
    payload = make_user_payload("mismatch")
    payload["password2"] = "secret2"

    response = await async_client.post("/api/users/register", json=payload)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Passwords do not match."}


@pytest.mark.asyncio
async def test_login_returns_token_identity(async_client: AsyncClient, app):
    payload = make_user_payload("login")
    await async_client.post("/api/users/register", json=payload)

    response = await async_client.post(
        "/api/users/login",
        json={"email": payload["email"].upper(), "password": payload["password"]},
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert set(body) == {"token", "id", "name"}
    assert body["name"] == payload["name"]

    claims = app.state.token_service.verify(body["token"])
    assert claims.id == body["id"]
    assert claims.name == payload["name"]


@pytest.mark.asyncio
async def test_login_failures_share_one_message(async_client: AsyncClient):
    payload = make_user_payload("guarded")
    await async_client.post("/api/users/register", json=payload)

    wrong_password = await async_client.post(
        "/api/users/login",
        json={"email": payload["email"], "password": "not-it"},
    )
    unknown_email = await async_client.post(
        "/api/users/login",
        json={"email": "nobody@example.com", "password": payload["password"]},
    )

    for response in (wrong_password, unknown_email):
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"detail": "Invalid credentials."}


@pytest.mark.asyncio
async def test_login_requires_fields(async_client: AsyncClient):
    response = await async_client.post("/api/users/login", json={"email": "a@example.com"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Fill in all fields."}


@pytest.mark.asyncio
async def test_get_user_profile_hides_password(async_client: AsyncClient):
    user = await register_and_login(async_client, "profile")

    response = await async_client.get(f"/api/users/{user['id']}", headers=user["headers"])

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["id"] == user["id"]
    assert body["email"] == user["email"]
    assert body["postCount"] == 0
    assert body["avatar"] is None
    assert "createdAt" in body and "updatedAt" in body
    assert not any("password" in key.lower() for key in body)


@pytest.mark.asyncio
async def test_get_user_profile_requires_auth(async_client: AsyncClient):
    user = await register_and_login(async_client, "private")

    response = await async_client.get(f"/api/users/{user['id']}")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_get_user_profile_not_found(async_client: AsyncClient):
    user = await register_and_login(async_client, "seeker")

    response = await async_client.get(f"/api/users/{uuid4()}", headers=user["headers"])

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "User not found."}


@pytest.mark.asyncio
async def test_list_authors_is_public_and_ordered(async_client: AsyncClient):
    first = await register_and_login(async_client, "first")
    second = await register_and_login(async_client, "second")

    response = await async_client.get("/api/users/authors")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [author["id"] for author in body] == [first["id"], second["id"]]
    for author in body:
        assert not any("password" in key.lower() for key in author)


@pytest.mark.asyncio
async def test_change_avatar_accepts_limit_and_retires_previous(
    async_client: AsyncClient,
    upload_dir: Path,
):
    user = await register_and_login(async_client, "avatar")

    first = await async_client.post(
        "/api/users/change-avatar",
        files={"avatar": ("me.png", b"a" * 500_000, "image/png")},
        headers=user["headers"],
    )
    assert first.status_code == status.HTTP_200_OK
    first_name = first.json()["avatar"]
    assert first_name.startswith("me") and first_name.endswith(".png")
    assert first_name != "me.png"
    assert (upload_dir / first_name).read_bytes() == b"a" * 500_000

    second = await async_client.post(
        "/api/users/change-avatar",
        files={"avatar": ("me.png", b"b" * 10, "image/png")},
        headers=user["headers"],
    )
    assert second.status_code == status.HTTP_200_OK
    second_name = second.json()["avatar"]
    assert second_name != first_name
    assert (upload_dir / second_name).is_file()
    assert not (upload_dir / first_name).exists()


@pytest.mark.asyncio
async def test_change_avatar_rejects_oversized_image(
    async_client: AsyncClient,
    upload_dir: Path,
):
    user = await register_and_login(async_client, "bigavatar")

    response = await async_client.post(
        "/api/users/change-avatar",
        files={"avatar": ("me.png", b"a" * 500_001, "image/png")},
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_413_CONTENT_TOO_LARGE
    assert "Profile picture too big" in response.json()["detail"]
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []

    profile = await async_client.get(f"/api/users/{user['id']}", headers=user["headers"])
    assert profile.json()["avatar"] is None


@pytest.mark.asyncio
async def test_change_avatar_requires_image(async_client: AsyncClient):
    user = await register_and_login(async_client, "noavatar")

    response = await async_client.post("/api/users/change-avatar", headers=user["headers"])

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Please choose an image."}


@pytest.mark.asyncio
async def test_change_avatar_requires_auth(async_client: AsyncClient):
    response = await async_client.post(
        "/api/users/change-avatar",
        files={"avatar": ("me.png", b"a", "image/png")},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized. No token."}


def make_edit_payload(user: dict[str, Any], **overrides: str) -> dict[str, str]:
    payload = {
        "name": "Renamed Writer",
        "email": user["email"],
        "currentPassword": user["password"],
        "newPassword": "newsecret",
        "confirmNewPassword": "newsecret",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_edit_user_updates_details_and_password(async_client: AsyncClient):
    user = await register_and_login(async_client, "editor")

    response = await async_client.post(
        "/api/users/edit-user",
        json=make_edit_payload(user, email="Editor.New@Example.com"),
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["name"] == "Renamed Writer"
    assert body["email"] == "editor.new@example.com"

    old_login = await async_client.post(
        "/api/users/login",
        json={"email": "editor.new@example.com", "password": user["password"]},
    )
    assert old_login.status_code == status.HTTP_401_UNAUTHORIZED

    new_login = await async_client.post(
        "/api/users/login",
        json={"email": "editor.new@example.com", "password": "newsecret"},
    )
    assert new_login.status_code == status.HTTP_200_OK
    assert new_login.json()["name"] == "Renamed Writer"


@pytest.mark.asyncio
async def test_edit_user_rejects_taken_email(async_client: AsyncClient):
    owner = await register_and_login(async_client, "owner")
    other = await register_and_login(async_client, "other")

    response = await async_client.post(
        "/api/users/edit-user",
        json=make_edit_payload(other, email=owner["email"].upper()),
        headers=other["headers"],
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"detail": "Email already exists."}


@pytest.mark.asyncio
async def test_edit_user_keeps_own_email(async_client: AsyncClient):
    user = await register_and_login(async_client, "keeper")

    response = await async_client.post(
        "/api/users/edit-user",
        json=make_edit_payload(user),
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == user["email"]


@pytest.mark.asyncio
async def test_edit_user_rejects_wrong_current_password(
    async_client: AsyncClient,
    db_session: AsyncSession,
):
    user = await register_and_login(async_client, "forgetful")

    response = await async_client.post(
        "/api/users/edit-user",
        json=make_edit_payload(user, currentPassword="wrong-password"),
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Invalid current password."}

    stored = await db_session.get(User, user["id"])
    assert stored is not None
    assert stored.name == user["name"]


@pytest.mark.asyncio
async def test_edit_user_rejects_mismatched_new_passwords(async_client: AsyncClient):
    user = await register_and_login(async_client, "typo")

    response = await async_client.post(
        "/api/users/edit-user",
        json=make_edit_payload(user, confirmNewPassword="newsecreT"),
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "New passwords do not match."}


@pytest.mark.asyncio
async def test_edit_user_requires_all_fields(async_client: AsyncClient):
    user = await register_and_login(async_client, "partial")
    payload = make_edit_payload(user)
    payload.pop("currentPassword")

    response = await async_client.post(
        "/api/users/edit-user",
        json=payload,
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Fill in all fields."}


@pytest.mark.asyncio
async def test_register_with_blank_email_reports_missing_field(async_client: AsyncClient):
    payload = make_user_payload("blank")
    payload["email"] = ""

    response = await async_client.post("/api/users/register", json=payload)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Fill in all fields."}


@pytest.mark.asyncio
async def test_register_accepts_host_only_email(async_client: AsyncClient):
    response = await async_client.post(
        "/api/users/register",
        json={"name": "Bob", "email": "Bob@localhost", "password": "secret1", "password2": "secret1"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == "New user bob@localhost registered."


@pytest.mark.asyncio
async def test_edit_user_with_blank_email_reports_missing_field(async_client: AsyncClient):
    user = await register_and_login(async_client, "blankedit")

    response = await async_client.post(
        "/api/users/edit-user",
        json=make_edit_payload(user, email=""),
        headers=user["headers"],
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json() == {"detail": "Fill in all fields."}


@pytest.mark.asyncio
async def test_malformed_body_returns_string_detail(async_client: AsyncClient):
    response = await async_client.post("/api/users/login", json=["not", "an", "object"])

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    detail = response.json()["detail"]
    assert isinstance(detail, str)
    assert detail
