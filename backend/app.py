"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import posts, uploads, users
from core import BlogError, Settings, TokenService
from core import settings as default_settings
from services.storage import build_attachment_store

logger = logging.getLogger(__name__)


async def _handle_blog_error(request: Request, exc: Exception) -> JSONResponse:
    status_code = getattr(exc, "status_code", 500) or 500
    message = getattr(exc, "message", None) or str(exc) or "Something went wrong."
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "status_code": status_code},
            exc_info=exc,
        )
    return JSONResponse(status_code=status_code, content={"detail": message})


def describe_validation_error(exc: RequestValidationError) -> str:
    """Collapse FastAPI's error list into a single readable message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg") or "Invalid value."
    return f"{location}: {message}" if location else message


async def _handle_request_validation_error(request: Request, exc: Exception) -> JSONResponse:
    detail = (
        describe_validation_error(exc)
        if isinstance(exc, RequestValidationError)
        else "Invalid request."
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content={"detail": detail},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    app_settings = settings or default_settings
    attachment_store = build_attachment_store(app_settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await asyncio.to_thread(attachment_store.ensure_ready)
        yield

    application = FastAPI(title="Blog API", lifespan=lifespan)
    application.state.settings = app_settings
    application.state.token_service = TokenService.from_settings(app_settings)
    application.state.attachment_store = attachment_store

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(BlogError, _handle_blog_error)
    application.add_exception_handler(RequestValidationError, _handle_request_validation_error)

    application.include_router(users.router, prefix="/api")
    application.include_router(posts.router, prefix="/api")
    application.include_router(uploads.router)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application
