"""SQLModel models package."""

from .post import Post
from .user import User

__all__ = [
    "User",
    "Post",
]
