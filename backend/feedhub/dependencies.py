"""
FeedHub Backend — Service Dependencies
=======================================

FastAPI dependencies that hand route handlers the services built by
`create_app()`. Everything lives on `app.state`, so tests can build an app
with their own settings and get fully isolated services.
"""

from fastapi import Request

from feedhub.services.post_service import PostService
from feedhub.services.storage_service import LocalObjectStore
from feedhub.services.token_service import TokenService
from feedhub.services.user_service import UserService


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_object_store(request: Request) -> LocalObjectStore:
    return request.app.state.object_store
