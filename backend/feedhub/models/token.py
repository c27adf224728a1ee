"""
FeedHub Backend — Session Token SQLAlchemy Model
=================================================

What:  ORM model for the `tokens` table: one row per issued bearer token.
Who:   TokenService (issue, verify, revoke, list) and the background reaper.

Table Design:
    - token:      the full signed JWT string; unique, looked up on every request
    - expires_at: absolute deadline, mirrors the token's `exp` claim
    - is_active:  the single invalidation flag. Logout, logout-all, lazy expiry,
                  the reaper and the missing-owner path all flip it to False;
                  nothing ever flips it back
    - user_id:    deliberately not a foreign key; a session may outlive its
                  owner and is deactivated on the next verification

Indexes mirror the hot query paths:
    (token, is_active)   → verify
    (user_id, is_active) → logout-all, session listing
    (is_active, expires_at) → reaper sweep
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from feedhub.database import Base, UTCDateTime, utcnow


class Token(Base):
    """Persisted metadata about one issued session token."""

    __tablename__ = "tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Device context captured at issuance, shown in the session list
    user_agent: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_tokens_token_active", "token", "is_active"),
        Index("idx_tokens_user_active", "user_id", "is_active"),
        Index("idx_tokens_active_expires", "is_active", "expires_at"),
    )

    def __repr__(self) -> str:
        # Never include the raw token value
        return (
            f"<Token(id={self.id}, user_id={self.user_id}, "
            f"is_active={self.is_active}, expires_at='{self.expires_at}')>"
        )
