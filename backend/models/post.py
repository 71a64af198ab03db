"""Blog post model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, ForeignKey, String, Text
from sqlmodel import Field, SQLModel

from .mixins import created_at_column, id_column, new_id, updated_at_column, utcnow


class Post(SQLModel, table=True):
    """Authored post with a mandatory thumbnail attachment."""

    __tablename__ = "posts"

    id: str = Field(default_factory=new_id, sa_column=id_column())
    title: str = Field(sa_column=Column(String(200), nullable=False))
    category: str = Field(sa_column=Column(String(50), nullable=False, index=True))
    desc: str = Field(sa_column=Column("desc", Text, nullable=False))
    thumbnail: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    creator: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_at_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_at_column())
