"""Serve stored attachments by their generated name."""

from __future__ import annotations

import asyncio
from typing import NoReturn

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse, RedirectResponse, Response

from api.deps import get_attachment_store, get_settings
from core import NotFound, Settings
from services.storage import (
    AttachmentStore,
    LocalAttachmentStore,
    MinioAttachmentStore,
    guess_content_type,
    is_valid_attachment_name,
)

router = APIRouter(prefix="/uploads", tags=["uploads"])

UPLOAD_CACHE_CONTROL = "public, max-age=86400, immutable"


def _raise_upload_not_found() -> NoReturn:
    raise NotFound("File not found.")


@router.get("/{name}")
async def get_upload(
    name: str,
    store: AttachmentStore = Depends(get_attachment_store),
    settings: Settings = Depends(get_settings),
) -> Response:
    normalized_name = name.strip()
    if not is_valid_attachment_name(normalized_name):
        _raise_upload_not_found()
    if not await asyncio.to_thread(store.exists, normalized_name):
        _raise_upload_not_found()

    if isinstance(store, LocalAttachmentStore):
        # Generated names are never reused, so the content is immutable.
        return FileResponse(
            store.path_for(normalized_name),
            media_type=guess_content_type(normalized_name),
            headers={"Cache-Control": UPLOAD_CACHE_CONTROL},
        )
    if isinstance(store, MinioAttachmentStore):
        signed_url = await asyncio.to_thread(
            store.presigned_url,
            normalized_name,
            expires_seconds=settings.signed_upload_url_ttl_seconds,
        )
        return RedirectResponse(signed_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    _raise_upload_not_found()
