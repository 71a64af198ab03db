"""Response models shared by the user and post routers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserResponse(CamelModel):
    """Public view of a user; never carries the password hash."""

    id: str
    name: str
    email: str
    avatar: str | None = None
    post_count: int = 0
    created_at: datetime
    updated_at: datetime


class PostResponse(CamelModel):
    id: str
    title: str
    category: str
    desc: str
    thumbnail: str
    creator: str
    created_at: datetime
    updated_at: datetime
