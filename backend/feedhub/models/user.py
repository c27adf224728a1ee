"""
FeedHub Backend — User SQLAlchemy Model
========================================

What:  ORM model for the `users` table (the credential store).
Who:   UserService for signup/login, TokenService to resolve a session's owner.

Table Design:
    - UUID primary key, generated in Python (portable across PostgreSQL and SQLite)
    - email is stored lowercased and trimmed; normalisation happens in UserService
    - (email, user_type) is unique: one address may hold one consumer and one
      creator account, never two of the same type
    - password_hash holds a passlib bcrypt digest, never the plaintext
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from feedhub.database import Base, UTCDateTime, utcnow


USER_TYPES = ("consumer", "creator")


class User(Base):
    """
    An account that can log in.

    Lifecycle:
        Created on signup; immutable afterwards except profile fields.
        Never deleted by the API, but sessions must tolerate a missing owner.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(120), nullable=False)

    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Values: consumer | creator
    user_type: Mapped[str] = mapped_column(String(20), nullable=False, default="consumer")

    # URL of the profile picture in the object store (or an external URL)
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("email", "user_type", name="uq_users_email_user_type"),
        CheckConstraint("user_type IN ('consumer', 'creator')", name="ck_users_user_type"),
    )

    @property
    def is_creator(self) -> bool:
        return self.user_type == "creator"

    @property
    def avatar(self) -> str:
        """Profile image URL, or the uppercase initial when there is none."""
        if self.profile_image:
            return self.profile_image
        return self.name[:1].upper()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', user_type='{self.user_type}')>"
