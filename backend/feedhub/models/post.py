"""
FeedHub Backend — Post & Comment SQLAlchemy Models
===================================================

What:  ORM models for the `posts` and `comments` tables.
Who:   PostService for the feed, likes, comments and ownership checks.

Table Design:
    - user_name / user_avatar (posts) and user_name (comments) are snapshots
      taken at creation time. They are not refreshed when the author edits
      their profile; the feed is served without joining `users`.
    - liked_by is a JSON list of user id strings; likes is kept equal to its
      length on every toggle.
    - comments are loaded eagerly ("selectin") in creation order so async
      handlers never trigger a lazy load.
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feedhub.database import Base, UTCDateTime, utcnow


POST_TYPES = ("text", "image", "video", "gif")


class Post(Base):
    """
    A feed item owned by exactly one creator.

    Invariant: likes == len(liked_by)
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_name: Mapped[str] = mapped_column(String(120), nullable=False)
    user_avatar: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Values: text | image | video | gif
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="image")

    # URL of the media object; NULL only for text posts
    media: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    caption: Mapped[str] = mapped_column(Text, nullable=False, default="")

    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    liked_by: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    comments: Mapped[List["Comment"]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
        lazy="selectin",
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_posts_user_created_at", "user_id", "created_at"),
        CheckConstraint("type IN ('text', 'image', 'video', 'gif')", name="ck_posts_type"),
        CheckConstraint("likes >= 0", name="ck_posts_likes_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, user_id={self.user_id}, type='{self.type}', likes={self.likes})>"


class Comment(Base):
    """A comment on a post; deletable by its author or by the post owner."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    post: Mapped[Post] = relationship(back_populates="comments")

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_name: Mapped[str] = mapped_column(String(120), nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, post_id={self.post_id}, user_id={self.user_id})>"
