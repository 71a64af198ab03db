"""Identity normalization and credential-store lookups."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import verify_password
from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


def normalize_email(value: str) -> str:
    return value.strip().lower()


async def get_user(session: AsyncSession, user_id: str) -> User | None:
    result = await session.execute(select(User).where(_eq(User.id, user_id)).limit(1))
    return result.scalar_one_or_none()


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(
        select(User).where(_eq(User.email, normalize_email(email))).limit(1)
    )
    return result.scalar_one_or_none()


async def list_users(session: AsyncSession) -> Sequence[User]:
    result = await session.execute(
        select(User).order_by(_asc(User.created_at), _asc(User.id))
    )
    return result.scalars().all()


async def email_taken_by_other(
    session: AsyncSession,
    *,
    email: str,
    user_id: str | None = None,
) -> bool:
    """Return True when ``email`` belongs to an account other than ``user_id``."""
    owner = await find_user_by_email(session, email)
    return owner is not None and owner.id != user_id


async def resolve_login_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
) -> User | None:
    user = await find_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
