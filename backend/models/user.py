"""User domain model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, Integer, String, text
from sqlmodel import Field, SQLModel

from .mixins import created_at_column, id_column, new_id, updated_at_column, utcnow


class User(SQLModel, table=True):
    """Registered author account."""

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, sa_column=id_column())
    name: str = Field(sa_column=Column(String(80), nullable=False))
    # Always stored lowercased; see services.auth.normalize_email.
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    avatar: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True, index=True)
    )
    # Denormalized count of posts whose creator is this user.
    post_count: int = Field(
        default=0,
        sa_column=Column(
            Integer,
            nullable=False,
            server_default=text("0"),
        ),
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_at_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_at_column())
