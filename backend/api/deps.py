"""Shared FastAPI dependencies, including the bearer-token auth gate."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core import InvalidTokenError, Settings, TokenClaims, TokenService, Unauthorized
from db.session import get_session
from services.storage import AttachmentStore

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_attachment_store(request: Request) -> AttachmentStore:
    return request.app.state.attachment_store


def authenticate_bearer(
    credentials: HTTPAuthorizationCredentials | None,
    tokens: TokenService,
) -> TokenClaims:
    """Verify a bearer credential and return the caller's identity."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Unauthorized. No token.")
    try:
        return tokens.verify(credentials.credentials)
    except InvalidTokenError as exc:
        raise Unauthorized("Unauthorized. Invalid token.") from exc


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    claims = authenticate_bearer(credentials, tokens)
    request.state.identity = claims
    return claims
