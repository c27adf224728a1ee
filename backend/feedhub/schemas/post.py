"""
FeedHub Backend — Post Schemas
===============================

Feed, post and comment bodies. PostOut and CommentOut validate directly
from the ORM rows (comments are eagerly loaded with the post).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from feedhub.schemas.common import CamelModel


class PostUpdate(CamelModel):
    caption: Optional[str] = None


class CommentCreate(CamelModel):
    text: Optional[str] = None


class CommentOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    text: str
    created_at: datetime


class PostOut(CamelModel):
    """
    A post as rendered in the feed.

    user_name and user_avatar are the author's values at creation time.
    user_avatar is a profile image URL or a single uppercase initial.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    user_avatar: str
    type: str
    media: Optional[str] = None
    caption: str = ""
    likes: int = 0
    liked_by: List[str] = Field(default_factory=list)
    comments: List[CommentOut] = Field(default_factory=list)
    created_at: datetime


class FeedResponse(CamelModel):
    posts: List[PostOut]


class PostUpdateResponse(CamelModel):
    message: str
    post: PostOut


class LikeResponse(CamelModel):
    likes: int
    liked_by: List[str]
