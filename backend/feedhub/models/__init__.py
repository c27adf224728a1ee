# Models package init: importing it registers every table on Base.metadata
from feedhub.models.post import POST_TYPES, Comment, Post
from feedhub.models.token import Token
from feedhub.models.user import USER_TYPES, User

__all__ = ["Comment", "Post", "POST_TYPES", "Token", "User", "USER_TYPES"]
