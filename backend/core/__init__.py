"""Core configuration, security and error primitives."""

from .config import Settings, settings
from .errors import (
    BadRequest,
    BlogError,
    Conflict,
    Forbidden,
    InvalidCredentials,
    NotFound,
    PasswordMismatch,
    StorageError,
    TooLarge,
    Unauthorized,
    UpdateFailed,
    ValidationFailed,
)
from .security import (
    InvalidTokenError,
    TokenClaims,
    TokenService,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
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
    "InvalidTokenError",
    "TokenClaims",
    "TokenService",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
