"""
FeedHub Backend — Post Service (Feed, Likes, Comments)
=======================================================

What:  Business logic for the posts feed.
How:   Loads rows, applies the ownership rules from `feedhub.policies`,
       mutates, commits. Media goes through the injected ObjectStore.
Who:   Post route handlers.

Consistency Notes:
    - Like toggles, comment add/remove and caption edits are read-modify-write
      on one post. Concurrent writers to the same post are last-writer-wins.
    - Deleting a post commits the row deletion first and removes the media
      object afterwards, best-effort. A failed media delete leaves an orphaned
      object and is only logged.
    - user_name / user_avatar are copied from the author at creation time and
      not refreshed later.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedhub import policies
from feedhub.exceptions import NotFoundError, StorageBackendError, ValidationError
from feedhub.models import POST_TYPES, Comment, Post, User
from feedhub.services.storage_service import (
    MediaUpload,
    ObjectStore,
    category_for,
    validate_media,
)

logger = logging.getLogger(__name__)

# Fallback file extension per post type when the upload has none
DEFAULT_EXTENSIONS = {"image": "jpg", "video": "mp4", "gif": "gif"}


def _parse_id(raw: str, resource: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(resource=resource, resource_id=str(raw))


class PostService:
    """Feed queries and post/comment mutations."""

    def __init__(self, object_store: ObjectStore, max_media_size: int = 50 * 1024 * 1024):
        self.object_store = object_store
        self.max_media_size = max_media_size

    async def _commit(self, db: AsyncSession, action: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error during %s: %s", action, str(e), exc_info=True)
            raise StorageBackendError(
                message=f"failed to {action}. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_post(self, db: AsyncSession, post_id: str) -> Post:
        """
        Load one post with its comments.

        Raises:
            NotFoundError: unknown or malformed id (→ 404)
        """
        pid = _parse_id(post_id, "post")
        try:
            post = await db.get(Post, pid)
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", pid, str(e))
            raise StorageBackendError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": str(pid)},
            )
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(pid))
        return post

    async def list_feed(
        self,
        db: AsyncSession,
        user: User,
        search: Optional[str] = None,
    ) -> List[Post]:
        """
        The feed as seen by `user`, newest first.

        - creator: only their own posts (search is ignored)
        - consumer: everyone else's posts, optionally filtered by a
          case-insensitive substring of caption or author name
        """
        query = select(Post)
        if user.is_creator:
            query = query.where(Post.user_id == user.id)
        else:
            query = query.where(Post.user_id != user.id)
            term = (search or "").strip()
            if term:
                query = query.where(
                    or_(
                        Post.caption.icontains(term, autoescape=True),
                        Post.user_name.icontains(term, autoescape=True),
                    )
                )
        query = query.order_by(Post.created_at.desc())

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing feed: %s", str(e), exc_info=True)
            raise StorageBackendError(
                message="failed to fetch posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def create_post(
        self,
        db: AsyncSession,
        user: User,
        post_type: Optional[str] = None,
        caption: Optional[str] = None,
        media_url: Optional[str] = None,
        upload: Optional[MediaUpload] = None,
    ) -> Post:
        """
        Publish a post.

        Media resolution for non-text posts: uploaded file first, then
        `media_url`; one of them is required.

        Raises:
            AuthorizationError: caller is not a creator (checked first)
            ValidationError: bad type, missing caption/media, bad upload
            StorageBackendError: object store or database failure
        """
        policies.ensure_can_create_post(user)

        post_type = (post_type or "image").strip().lower()
        if post_type not in POST_TYPES:
            raise ValidationError(
                message=f"type must be one of: {', '.join(POST_TYPES)}", field="type"
            )

        caption = (caption or "").strip()
        if post_type == "text" and not caption:
            raise ValidationError(message="caption required for text posts", field="caption")

        media: Optional[str] = None
        if post_type != "text":
            media_url = (media_url or "").strip() or None
            if upload is not None:
                validate_media(upload, self.max_media_size)
                extension = upload.extension or DEFAULT_EXTENSIONS[post_type]
                media = await self.object_store.put(
                    upload.content,
                    f"post-{user.id}.{extension}",
                    upload.content_type,
                    category_for(upload.content_type, post_type),
                )
            elif media_url:
                media = media_url
            else:
                raise ValidationError(message="media file or URL required", field="media")

        post = Post(
            user_id=user.id,
            user_name=user.name,
            user_avatar=user.avatar,
            type=post_type,
            media=media,
            caption=caption,
            likes=0,
            liked_by=[],
            comments=[],
        )
        db.add(post)
        await self._commit(db, "create post")
        logger.info("Post %s created by %s (%s)", post.id, user.id, post_type)
        return post

    async def update_caption(
        self,
        db: AsyncSession,
        user: User,
        post_id: str,
        caption: Optional[str],
    ) -> Post:
        """Owner-only caption edit; an empty caption keeps the current one."""
        post = await self.get_post(db, post_id)
        policies.ensure_post_owner(user, post)

        new_caption = (caption or "").strip()
        if new_caption:
            post.caption = new_caption
        await self._commit(db, "update post")
        return post

    async def delete_post(self, db: AsyncSession, user: User, post_id: str) -> None:
        """Owner-only delete, followed by best-effort media removal."""
        post = await self.get_post(db, post_id)
        policies.ensure_post_owner(user, post)

        media = post.media
        await db.delete(post)
        await self._commit(db, "delete post")
        logger.info("Post %s deleted by %s", post.id, user.id)

        if media:
            try:
                await self.object_store.delete(media)
            except Exception as e:
                logger.warning("Media for deleted post %s was not removed: %s", post.id, str(e))

    async def toggle_like(self, db: AsyncSession, user: User, post_id: str) -> Post:
        """
        Like the post, or unlike it if `user` already does.

        likes is recomputed from liked_by on every toggle, so the counter can
        neither drift from the set nor go negative.
        """
        post = await self.get_post(db, post_id)
        uid = str(user.id)

        liked_by = [x for x in (post.liked_by or []) if x != uid]
        if len(liked_by) == len(post.liked_by or []):
            liked_by.append(uid)

        # Reassign (not mutate) so SQLAlchemy sees the JSON column change
        post.liked_by = liked_by
        post.likes = max(0, len(set(liked_by)))
        await self._commit(db, "toggle like")
        return post

    async def add_comment(
        self,
        db: AsyncSession,
        user: User,
        post_id: str,
        text: Optional[str],
    ) -> Comment:
        """Any authenticated user may comment; text is trimmed and required."""
        text = (text or "").strip()
        if not text:
            raise ValidationError(message="comment text required", field="text")

        post = await self.get_post(db, post_id)
        comment = Comment(user_id=user.id, user_name=user.name, text=text)
        post.comments.append(comment)
        await self._commit(db, "add comment")
        logger.info("Comment %s added to post %s by %s", comment.id, post.id, user.id)
        return comment

    async def delete_comment(
        self,
        db: AsyncSession,
        user: User,
        post_id: str,
        comment_id: str,
    ) -> None:
        """Comment author or post owner may delete; anyone else gets 403."""
        post = await self.get_post(db, post_id)

        cid = _parse_id(comment_id, "comment")
        comment = next((c for c in post.comments if c.id == cid), None)
        if comment is None:
            raise NotFoundError(resource="comment", resource_id=str(cid))

        policies.ensure_can_delete_comment(user, post, comment)

        post.comments.remove(comment)
        await self._commit(db, "delete comment")
        logger.info("Comment %s removed from post %s by %s", cid, post.id, user.id)
