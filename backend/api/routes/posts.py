"""Post creation, retrieval and mutation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_attachment_store, get_current_identity, get_db, get_settings
from core import Settings, TokenClaims
from services import posts as posts_service
from services.storage import AttachmentStore

from .schemas import PostResponse

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostResponse)
async def create_post(
    title: str | None = Form(default=None),
    category: str | None = Form(default=None),
    desc: str | None = Form(default=None),
    thumbnail: UploadFile | None = File(default=None),
    identity: TokenClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    settings: Settings = Depends(get_settings),
) -> PostResponse:
    post = await posts_service.create_post(
        session,
        store,
        creator_id=identity.id,
        title=title,
        category=category,
        desc=desc,
        thumbnail=thumbnail,
        max_bytes=settings.thumbnail_max_bytes,
    )
    return PostResponse.model_validate(post)


@router.get("", response_model=list[PostResponse])
async def list_posts(session: AsyncSession = Depends(get_db)) -> list[PostResponse]:
    posts = await posts_service.list_posts(session)
    return [PostResponse.model_validate(post) for post in posts]


@router.get("/categories/{category}", response_model=list[PostResponse])
async def list_category_posts(
    category: str,
    session: AsyncSession = Depends(get_db),
) -> list[PostResponse]:
    posts = await posts_service.list_posts_by_category(session, category)
    return [PostResponse.model_validate(post) for post in posts]


@router.get("/users/{user_id}", response_model=list[PostResponse])
async def list_user_posts(
    user_id: str,
    session: AsyncSession = Depends(get_db),
) -> list[PostResponse]:
    posts = await posts_service.list_posts_by_author(session, user_id)
    return [PostResponse.model_validate(post) for post in posts]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    session: AsyncSession = Depends(get_db),
) -> PostResponse:
    post = await posts_service.get_post(session, post_id)
    return PostResponse.model_validate(post)


@router.patch("/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: str,
    title: str | None = Form(default=None),
    category: str | None = Form(default=None),
    desc: str | None = Form(default=None),
    thumbnail: UploadFile | None = File(default=None),
    identity: TokenClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    settings: Settings = Depends(get_settings),
) -> PostResponse:
    post = await posts_service.edit_post(
        session,
        store,
        caller_id=identity.id,
        post_id=post_id,
        title=title,
        category=category,
        desc=desc,
        thumbnail=thumbnail,
        max_bytes=settings.thumbnail_max_bytes,
    )
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=str)
async def delete_post(
    post_id: str,
    identity: TokenClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
) -> str:
    return await posts_service.delete_post(
        session,
        store,
        caller_id=identity.id,
        post_id=post_id,
    )
