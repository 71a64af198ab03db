"""API routers."""

from . import posts, uploads, users

__all__ = ["posts", "uploads", "users"]
