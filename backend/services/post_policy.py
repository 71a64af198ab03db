"""Post lookup and ownership policy checks."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import Forbidden, NotFound
from models import Post


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def can_modify_post(caller_id: str, post: Post) -> bool:
    """Only the creator may edit or delete a post."""
    return caller_id == post.creator


async def require_post_exists(session: AsyncSession, post_id: str) -> Post:
    """Return the post or raise NotFound."""
    result = await session.execute(
        select(Post).where(_eq(Post.id, post_id)).limit(1)
    )
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFound("Post not found.")
    return post


async def require_post_owner(
    session: AsyncSession,
    *,
    caller_id: str,
    post_id: str,
) -> Post:
    """Return the post when ``caller_id`` created it; otherwise raise."""
    post = await require_post_exists(session, post_id)
    if not can_modify_post(caller_id, post):
        raise Forbidden("Only the author can modify this post.")
    return post
