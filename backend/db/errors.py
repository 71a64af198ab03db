"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _error_text(error: IntegrityError) -> str:
    original = getattr(error, "orig", None)
    return str(original or error).lower()


def is_unique_violation(error: IntegrityError, *, column: str | None = None) -> bool:
    """Return True when the error is a unique-constraint conflict.

    When ``column`` is given, the conflict must also mention that column (or an
    index named after it), so callers can tell an email clash from other
    constraint failures.
    """
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    message = _error_text(error)
    is_unique = sqlstate == UNIQUE_VIOLATION_SQLSTATE or (
        "duplicate key" in message or "unique constraint" in message
    )
    if not is_unique or column is None:
        return is_unique
    return column.lower() in message


__all__ = ["is_unique_violation"]
