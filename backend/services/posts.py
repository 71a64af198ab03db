"""Post lifecycle: creation, listing, edits and deletion."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, cast

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import BadRequest, NotFound, StorageError, TooLarge, UpdateFailed, ValidationFailed
from models import Post

from .attachment_saga import AttachmentSaga
from .auth import get_user
from .post_counts import decrement_post_count, increment_post_count
from .post_policy import require_post_exists, require_post_owner
from .storage import AttachmentStore
from .uploads import UploadTooLargeError, has_upload, read_upload_file

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 12


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


async def _read_thumbnail(thumbnail: UploadFile, max_bytes: int) -> bytes:
    try:
        return await read_upload_file(thumbnail, max_bytes)
    except UploadTooLargeError as exc:
        raise TooLarge(
            f"Thumbnail too big. File should be at most {max_bytes} bytes."
        ) from exc


async def create_post(
    session: AsyncSession,
    store: AttachmentStore,
    *,
    creator_id: str,
    title: str | None,
    category: str | None,
    desc: str | None,
    thumbnail: UploadFile | None,
    max_bytes: int,
) -> Post:
    if (
        _is_blank(title)
        or _is_blank(category)
        or _is_blank(desc)
        or thumbnail is None
        or not has_upload(thumbnail)
    ):
        raise ValidationFailed("Fill in all fields and choose thumbnail.")

    if await get_user(session, creator_id) is None:
        raise NotFound("User not found.")

    data = await _read_thumbnail(thumbnail, max_bytes)

    saga = AttachmentSaga(store)
    thumbnail_name = await saga.write_attachment(
        thumbnail.filename,
        data,
        size_limit=max_bytes,
        content_type=thumbnail.content_type,
    )
    post = Post(
        title=cast(str, title).strip(),
        category=cast(str, category).strip(),
        desc=cast(str, desc),
        thumbnail=thumbnail_name,
        creator=creator_id,
    )
    session.add(post)
    await saga.commit(
        session,
        stage=lambda: increment_post_count(session, creator_id),
        failure=UpdateFailed("Post couldn't be created."),
    )
    await session.refresh(post)
    return post


async def list_posts(session: AsyncSession) -> Sequence[Post]:
    result = await session.execute(
        select(Post).order_by(
            _desc(Post.updated_at),
            _desc(Post.id),
        )
    )
    return result.scalars().all()


async def get_post(session: AsyncSession, post_id: str) -> Post:
    return await require_post_exists(session, post_id)


async def list_posts_by_category(session: AsyncSession, category: str) -> Sequence[Post]:
    result = await session.execute(
        select(Post)
        .where(_eq(Post.category, category))
        .order_by(
            _desc(Post.created_at),
            _desc(Post.id),
        )
    )
    return result.scalars().all()


async def list_posts_by_author(session: AsyncSession, creator_id: str) -> Sequence[Post]:
    result = await session.execute(
        select(Post)
        .where(_eq(Post.creator, creator_id))
        .order_by(
            _desc(Post.created_at),
            _desc(Post.id),
        )
    )
    return result.scalars().all()


async def edit_post(
    session: AsyncSession,
    store: AttachmentStore,
    *,
    caller_id: str,
    post_id: str,
    title: str | None,
    category: str | None,
    desc: str | None,
    thumbnail: UploadFile | None,
    max_bytes: int,
) -> Post:
    if _is_blank(title) or _is_blank(category):
        raise ValidationFailed("Fill in all fields.")
    if desc is None or len(desc) < MIN_DESCRIPTION_LENGTH:
        raise ValidationFailed(
            f"Description should be at least {MIN_DESCRIPTION_LENGTH} characters."
        )

    post = await require_post_owner(session, caller_id=caller_id, post_id=post_id)
    failure = UpdateFailed("Couldn't update post.")

    if thumbnail is None or not has_upload(thumbnail):
        post.title = cast(str, title).strip()
        post.category = cast(str, category).strip()
        post.desc = desc
        session.add(post)
        try:
            await session.commit()
        except Exception as exc:
            await session.rollback()
            raise failure from exc
        await session.refresh(post)
        return post

    data = await _read_thumbnail(thumbnail, max_bytes)
    saga = AttachmentSaga(store, supersedes=post.thumbnail)
    new_thumbnail = await saga.write_attachment(
        thumbnail.filename,
        data,
        size_limit=max_bytes,
        content_type=thumbnail.content_type,
    )
    post.title = cast(str, title).strip()
    post.category = cast(str, category).strip()
    post.desc = desc
    post.thumbnail = new_thumbnail
    session.add(post)
    await saga.commit(session, failure=failure)
    await session.refresh(post)
    return post


async def delete_post(
    session: AsyncSession,
    store: AttachmentStore,
    *,
    caller_id: str,
    post_id: str | None,
) -> str:
    if not post_id:
        raise BadRequest("Post unavailable.")

    post = await require_post_owner(session, caller_id=caller_id, post_id=post_id)
    thumbnail_name = post.thumbnail
    creator_id = post.creator

    try:
        await asyncio.to_thread(store.delete, thumbnail_name)
    except Exception as exc:
        logger.error(
            "Failed to delete post thumbnail; post left intact",
            extra={"post_id": post_id, "attachment": thumbnail_name},
            exc_info=exc,
        )
        raise StorageError("Couldn't delete the post thumbnail.") from exc

    await session.delete(post)
    try:
        await decrement_post_count(session, creator_id)
        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.error(
            "Post record delete failed after its thumbnail was removed; needs reconciliation",
            extra={"post_id": post_id, "attachment": thumbnail_name},
            exc_info=exc,
        )
        raise UpdateFailed("Couldn't delete post.") from exc

    return f"Post {post_id} deleted successfully."
