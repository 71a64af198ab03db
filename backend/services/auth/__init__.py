"""Authentication domain services."""

from .identity_resolution import (
    email_taken_by_other,
    find_user_by_email,
    get_user,
    list_users,
    normalize_email,
    resolve_login_user,
)

__all__ = [
    "normalize_email",
    "get_user",
    "find_user_by_email",
    "list_users",
    "email_taken_by_other",
    "resolve_login_user",
]
