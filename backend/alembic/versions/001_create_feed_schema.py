"""Create users, tokens, posts and comments tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial FeedHub schema.
How:   Portable column types (Uuid, JSON, timezone-aware DateTime), so the
       same migration runs on PostgreSQL and SQLite.

Indexes:
    users     (email)                        login lookup
    users     UNIQUE (email, user_type)      one account per email per type
    tokens    UNIQUE (token)                 bearer lookup
    tokens    (token, is_active)             verification
    tokens    (user_id, is_active)           logout-all, session list
    tokens    (is_active, expires_at)        reaper sweep
    posts     (user_id, created_at)          feeds, newest first
    comments  (post_id)                      eager load with the post

Rollback: downgrade() drops every table (destructive — all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("profile_image", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", "user_type", name="uq_users_email_user_type"),
        sa.CheckConstraint(
            "user_type IN ('consumer', 'creator')",
            name="ck_users_user_type",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # No foreign key to users: a session must survive (and be rejected
    # cleanly) when its owner disappears
    op.create_table(
        "tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_agent", sa.String(512), nullable=False, server_default=""),
        sa.Column("ip_address", sa.String(64), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id", name="pk_tokens"),
        sa.UniqueConstraint("token", name="uq_tokens_token"),
    )
    op.create_index("ix_tokens_user_id", "tokens", ["user_id"])
    op.create_index("idx_tokens_token_active", "tokens", ["token", "is_active"])
    op.create_index("idx_tokens_user_active", "tokens", ["user_id", "is_active"])
    op.create_index("idx_tokens_active_expires", "tokens", ["is_active", "expires_at"])

    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("user_name", sa.String(120), nullable=False),
        sa.Column("user_avatar", sa.Text(), nullable=False, server_default=""),
        sa.Column("type", sa.String(10), nullable=False, server_default="image"),
        sa.Column("media", sa.Text(), nullable=True),
        sa.Column("caption", sa.Text(), nullable=False, server_default=""),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("liked_by", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_posts"),
        sa.CheckConstraint(
            "type IN ('text', 'image', 'video', 'gif')",
            name="ck_posts_type",
        ),
        sa.CheckConstraint("likes >= 0", name="ck_posts_likes_non_negative"),
    )
    op.create_index("idx_posts_user_created_at", "posts", ["user_id", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("post_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("user_name", sa.String(120), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
        sa.ForeignKeyConstraint(
            ["post_id"], ["posts.id"], name="fk_comments_post_id", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"])


def downgrade() -> None:
    op.drop_index("ix_comments_post_id", table_name="comments")
    op.drop_table("comments")

    op.drop_index("idx_posts_user_created_at", table_name="posts")
    op.drop_table("posts")

    op.drop_index("idx_tokens_active_expires", table_name="tokens")
    op.drop_index("idx_tokens_user_active", table_name="tokens")
    op.drop_index("idx_tokens_token_active", table_name="tokens")
    op.drop_index("ix_tokens_user_id", table_name="tokens")
    op.drop_table("tokens")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
