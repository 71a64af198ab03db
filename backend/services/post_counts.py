"""Atomic maintenance of the denormalized per-user post counter."""

from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Post, User

logger = logging.getLogger(__name__)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def increment_post_count(session: AsyncSession, user_id: str) -> bool:
    """Add one to the user's counter inside the caller's transaction."""
    post_count = cast(Any, User.post_count)
    result = await session.execute(
        update(User)
        .where(_eq(User.id, user_id))
        .values(post_count=post_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("Post count increment matched no user", extra={"user_id": user_id})
        return False
    return True


async def decrement_post_count(session: AsyncSession, user_id: str) -> bool:
    """Subtract one from the user's counter, never going below zero."""
    post_count = cast(Any, User.post_count)
    result = await session.execute(
        update(User)
        .where(_eq(User.id, user_id), post_count > 0)
        .values(post_count=post_count - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(
            "Post count decrement found nothing to decrement; counter is inconsistent",
            extra={"user_id": user_id},
        )
        return False
    return True


async def count_posts_by_creator(session: AsyncSession) -> dict[str, int]:
    creator_column = cast(ColumnElement[str], Post.creator)
    count_column = cast(Any, func.count(cast(Any, Post.id)))
    result = await session.execute(
        select(creator_column, count_column).group_by(creator_column)
    )
    return {creator: int(count) for creator, count in result.all()}
