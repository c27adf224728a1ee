"""
FeedHub Backend — Post & Comment Ownership Rules
=================================================

What:  The authorization rules for mutating posts and comments.
How:   Pure predicates over (user, post, comment) plus `ensure_*` helpers
       that raise AuthorizationError. No I/O; PostService loads the rows
       and calls these before every mutation.

Rules:
    create post      creators only
    edit caption     post owner only (user type does not matter)
    delete post      post owner only
    like / comment   any authenticated user
    delete comment   comment author OR post owner
"""

from feedhub.exceptions import AuthorizationError
from feedhub.models import Comment, Post, User


def can_create_post(user: User) -> bool:
    return user.is_creator


def is_post_owner(user: User, post: Post) -> bool:
    return post.user_id == user.id


def can_delete_comment(user: User, post: Post, comment: Comment) -> bool:
    return comment.user_id == user.id or is_post_owner(user, post)


def ensure_can_create_post(user: User) -> None:
    if not can_create_post(user):
        raise AuthorizationError(
            message="only creators can create posts",
            context={"user_id": str(user.id), "user_type": user.user_type},
        )


def ensure_post_owner(user: User, post: Post) -> None:
    if not is_post_owner(user, post):
        raise AuthorizationError(
            context={"user_id": str(user.id), "post_id": str(post.id)},
        )


def ensure_can_delete_comment(user: User, post: Post, comment: Comment) -> None:
    if not can_delete_comment(user, post, comment):
        raise AuthorizationError(
            context={
                "user_id": str(user.id),
                "post_id": str(post.id),
                "comment_id": str(comment.id),
            },
        )
