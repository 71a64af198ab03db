"""Tests for the bearer-token auth gate."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from fastapi.security import HTTPAuthorizationCredentials
from httpx import AsyncClient

from api.deps import authenticate_bearer
from core import TokenService, Unauthorized


def test_authenticate_bearer_without_credentials():
    with pytest.raises(Unauthorized) as excinfo:
        authenticate_bearer(None, TokenService("signing-secret"))

    assert excinfo.value.message == "Unauthorized. No token."


def test_authenticate_bearer_returns_claims():
    tokens = TokenService("signing-secret")
    credentials = HTTPAuthorizationCredentials(
        scheme="Bearer",
        credentials=tokens.issue("user-1", "Alice"),
    )

    claims = authenticate_bearer(credentials, tokens)

    assert (claims.id, claims.name) == ("user-1", "Alice")


def test_authenticate_bearer_rejects_garbage():
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="not.a.token")

    with pytest.raises(Unauthorized) as excinfo:
        authenticate_bearer(credentials, TokenService("signing-secret"))

    assert excinfo.value.message == "Unauthorized. Invalid token."


@pytest.mark.asyncio
async def test_protected_route_without_token(async_client: AsyncClient):
    response = await async_client.delete("/api/posts/some-post")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized. No token."}


@pytest.mark.asyncio
async def test_protected_route_with_non_bearer_scheme(async_client: AsyncClient):
    response = await async_client.delete(
        "/api/posts/some-post",
        headers={"Authorization": "Basic dXNlcjpwYXNz"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized. No token."}


@pytest.mark.asyncio
async def test_protected_route_with_invalid_token(async_client: AsyncClient):
    response = await async_client.delete(
        "/api/posts/some-post",
        headers={"Authorization": "Bearer not.a.token"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized. Invalid token."}


@pytest.mark.asyncio
async def test_protected_route_with_expired_token(async_client: AsyncClient, app):
    tokens: TokenService = app.state.token_service
    token = tokens.issue(
        "user-1",
        "Alice",
        issued_at=datetime.now(timezone.utc) - timedelta(days=2),
    )

    response = await async_client.get(
        "/api/users/user-1",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized. Invalid token."}


@pytest.mark.asyncio
async def test_public_routes_need_no_token(async_client: AsyncClient):
    for path in ("/api/posts", "/api/users/authors", "/health"):
        response = await async_client.get(path)
        assert response.status_code == status.HTTP_200_OK
