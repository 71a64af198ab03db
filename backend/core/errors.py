"""Domain error taxonomy surfaced to API callers."""

from __future__ import annotations

from fastapi import status


class BlogError(Exception):
    """Base error carrying a human-readable message and an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationFailed(BlogError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    default_message = "Fill in all fields."


class PasswordMismatch(ValidationFailed):
    default_message = "Passwords do not match."


class BadRequest(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request."


class Conflict(BlogError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Email already exists."


class InvalidCredentials(BlogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials."


class Unauthorized(BlogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized."


class Forbidden(BlogError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to modify this resource."


class NotFound(BlogError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class TooLarge(BlogError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    default_message = "File too large."


class StorageError(BlogError):
    default_message = "Attachment storage failed."


class UpdateFailed(BlogError):
    default_message = "Update failed."


__all__ = [
    "BlogError",
    "ValidationFailed",
    "PasswordMismatch",
    "BadRequest",
    "Conflict",
    "InvalidCredentials",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "TooLarge",
    "StorageError",
    "UpdateFailed",
]
