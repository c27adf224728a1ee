"""
FeedHub Backend — Auth Routes
==============================

What:  Signup, login, logout and session management under /auth.
How:   Thin handlers: read the body, call UserService / TokenService,
       shape the response. Errors propagate to the global handlers.

Endpoints:
    POST /auth/signup      JSON or multipart → 201 {token, user}
    POST /auth/login       → 200 {token, user}
    POST /auth/logout      revokes the presented token, if any; always 200
    POST /auth/logout-all  (auth) → 200 {message, revoked}
    GET  /auth/tokens      (auth) → 200 {sessions}
    GET  /auth/me          (auth) → 200 user
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from feedhub.database import get_db_session
from feedhub.dependencies import get_token_service, get_user_service
from feedhub.middleware.auth import extract_bearer_token, get_device_context, require_auth
from feedhub.routes.payload import read_payload
from feedhub.schemas.auth import (
    AuthResponse,
    LogoutAllResponse,
    SessionOut,
    SessionsResponse,
    UserOut,
)
from feedhub.schemas.common import ErrorResponse, MessageResponse
from feedhub.services.token_service import AuthContext, TokenService
from feedhub.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

_UNAUTHORIZED = {401: {"description": "Missing, invalid, revoked or expired token", "model": ErrorResponse}}


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={400: {"description": "Invalid fields or duplicate account", "model": ErrorResponse}},
    summary="Create an account and start a session",
)
async def signup(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """
    Accepts JSON (`profileImage` as a URL) or multipart (`profileImage` as a
    file). Creators must supply a profile image one way or the other.
    """
    payload = await read_payload(request)
    upload = payload.file("profileImage")

    data = users.validate_signup(
        name=payload.get("name"),
        email=payload.get("email"),
        password=payload.get("password"),
        user_type=payload.get("userType"),
        profile_image_url=payload.get("profileImage"),
        has_profile_upload=upload is not None,
    )
    user = await users.create_user(db, data, profile_upload=upload)
    issued = await tokens.issue(db, user.id, get_device_context(request))

    return AuthResponse(token=issued.token, user=UserOut.model_validate(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        **_UNAUTHORIZED,
    },
    summary="Log in and start a new session",
)
async def login(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Every login is a new independent session, even from the same device."""
    payload = await read_payload(request)
    user = await users.authenticate(
        db,
        email=payload.get("email"),
        password=payload.get("password"),
        user_type=payload.get("userType"),
    )
    issued = await tokens.issue(db, user.id, get_device_context(request))
    return AuthResponse(token=issued.token, user=UserOut.model_validate(user))


@router.post("/logout", response_model=MessageResponse, summary="End the current session")
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> MessageResponse:
    # Unknown, revoked or absent tokens are not an error here
    token = extract_bearer_token(request.headers.get("authorization"))
    if token:
        await tokens.revoke(db, token)
    return MessageResponse(message="logged out successfully")


@router.post(
    "/logout-all",
    response_model=LogoutAllResponse,
    responses=_UNAUTHORIZED,
    summary="End every session of the current user",
)
async def logout_all(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> LogoutAllResponse:
    revoked = await tokens.revoke_all(db, auth.user.id)
    return LogoutAllResponse(message="logged out from all devices", revoked=revoked)


@router.get(
    "/tokens",
    response_model=SessionsResponse,
    responses=_UNAUTHORIZED,
    summary="List the current user's active sessions",
)
async def list_tokens(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> SessionsResponse:
    sessions = await tokens.list_sessions(db, auth.user.id, current_token=auth.token.token)
    return SessionsResponse(
        sessions=[SessionOut.model_validate(s) for s in sessions],
    )


@router.get("/me", response_model=UserOut, responses=_UNAUTHORIZED, summary="Current user")
async def me(auth: AuthContext = Depends(require_auth)) -> UserOut:
    return UserOut.model_validate(auth.user)
