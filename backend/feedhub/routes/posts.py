"""
FeedHub Backend — Post Routes
==============================

What:  The feed, post CRUD, likes and comments under /posts.
How:   Every endpoint requires a valid session (require_auth); ownership
       rules are enforced inside PostService.

Endpoints:
    GET    /posts?search=                          → 200 {posts}
    POST   /posts                                  → 201 post (creators only)
    PUT    /posts/{post_id}                        → 200 {message, post}
    DELETE /posts/{post_id}                        → 200 {message}
    POST   /posts/{post_id}/like                   → 200 {likes, likedBy}
    POST   /posts/{post_id}/comment                → 201 comment
    DELETE /posts/{post_id}/comment/{comment_id}   → 200 {message}

Malformed ids are answered with 404, the same as unknown ones.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from feedhub.database import get_db_session
from feedhub.dependencies import get_post_service
from feedhub.middleware.auth import require_auth
from feedhub.routes.payload import read_payload
from feedhub.schemas.common import ErrorResponse, MessageResponse
from feedhub.schemas.post import (
    CommentCreate,
    CommentOut,
    FeedResponse,
    LikeResponse,
    PostOut,
    PostUpdate,
    PostUpdateResponse,
)
from feedhub.services.post_service import PostService
from feedhub.services.token_service import AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])

_ERRORS = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not allowed for this user", "model": ErrorResponse},
    404: {"description": "Post or comment not found", "model": ErrorResponse},
}


@router.get("", response_model=FeedResponse, summary="The caller's feed")
async def list_posts(
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive match on caption or author name (consumers only)",
    ),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> FeedResponse:
    """Creators see their own posts; consumers see everyone else's. Newest first."""
    feed = await posts.list_feed(db, auth.user, search=search)
    return FeedResponse(posts=[PostOut.model_validate(p) for p in feed])


@router.post(
    "",
    status_code=201,
    response_model=PostOut,
    responses={400: {"description": "Invalid post", "model": ErrorResponse}, **_ERRORS},
    summary="Publish a post",
)
async def create_post(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostOut:
    """
    JSON or multipart. Fields: `type` (text, image, video, gif; default
    image), `caption`, and for non-text posts either a `media` file or a
    `mediaUrl`. Files must be images or videos up to MAX_MEDIA_SIZE.
    """
    payload = await read_payload(request)
    post = await posts.create_post(
        db,
        auth.user,
        post_type=payload.get("type"),
        caption=payload.get("caption"),
        media_url=payload.get("mediaUrl") or payload.get("media"),
        upload=payload.file("media"),
    )
    return PostOut.model_validate(post)


@router.put("/{post_id}", response_model=PostUpdateResponse, responses=_ERRORS, summary="Edit a caption")
async def update_post(
    post_id: str,
    body: Optional[PostUpdate] = None,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostUpdateResponse:
    post = await posts.update_caption(db, auth.user, post_id, body.caption if body else None)
    return PostUpdateResponse(message="post updated", post=PostOut.model_validate(post))


@router.delete("/{post_id}", response_model=MessageResponse, responses=_ERRORS, summary="Delete a post")
async def delete_post(
    post_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> MessageResponse:
    await posts.delete_post(db, auth.user, post_id)
    return MessageResponse(message="post deleted")


@router.post("/{post_id}/like", response_model=LikeResponse, responses=_ERRORS, summary="Toggle a like")
async def toggle_like(
    post_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> LikeResponse:
    post = await posts.toggle_like(db, auth.user, post_id)
    return LikeResponse(likes=post.likes, liked_by=list(post.liked_by))


@router.post(
    "/{post_id}/comment",
    status_code=201,
    response_model=CommentOut,
    responses={400: {"description": "Empty comment", "model": ErrorResponse}, **_ERRORS},
    summary="Comment on a post",
)
async def add_comment(
    post_id: str,
    body: Optional[CommentCreate] = None,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> CommentOut:
    comment = await posts.add_comment(db, auth.user, post_id, body.text if body else None)
    return CommentOut.model_validate(comment)


@router.delete(
    "/{post_id}/comment/{comment_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete a comment",
)
async def delete_comment(
    post_id: str,
    comment_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> MessageResponse:
    """Allowed for the comment's author and for the post's owner."""
    await posts.delete_comment(db, auth.user, post_id, comment_id)
    return MessageResponse(message="comment deleted")
