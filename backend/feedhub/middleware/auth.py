"""
FeedHub Backend — Authorization Gate
=====================================

What:  Turns the `Authorization: Bearer <token>` header of a request into
       the calling user and session, or rejects the request with 401.
How:   `AuthorizationGate.authenticate()` extracts the token and delegates
       every check to TokenService.verify(). `require_auth` wraps it as a
       FastAPI dependency for protected routes.
Who:   Every route except signup, login, logout, media and health.

Rejection reasons (the `reason` field of the 401 body):
    no_token         header missing, not Bearer, or empty
    invalid_token    bad signature or malformed token
    token_not_found  never issued, or revoked
    token_expired    past its deadline (the session is deactivated)
    user_not_found   owner deleted (the session is deactivated)

The raw token never appears in logs or error bodies.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from feedhub.database import get_db_session
from feedhub.exceptions import AuthenticationError, NoTokenError
from feedhub.services.token_service import AuthContext, DeviceContext, TokenService

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an Authorization header value; None unless it is a non-empty Bearer credential."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    credentials = credentials.strip()
    return credentials or None


def get_device_context(request: Request) -> DeviceContext:
    """User agent and client address, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for", "")
    ip_address = forwarded.split(",")[0].strip() if forwarded else ""
    if not ip_address and request.client:
        ip_address = request.client.host or ""
    return DeviceContext(
        user_agent=request.headers.get("user-agent", ""),
        ip_address=ip_address,
    )


class AuthorizationGate:
    """Per-request authentication in front of the protected routes."""

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    async def authenticate(
        self,
        db: AsyncSession,
        authorization: Optional[str],
        now: Optional[datetime] = None,
    ) -> AuthContext:
        """
        Raises:
            NoTokenError, or whatever TokenService.verify() rejects the token with
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise NoTokenError()

        try:
            return await self.token_service.verify(db, token, now=now)
        except AuthenticationError as e:
            logger.info("Request rejected by auth gate: %s", e.reason)
            raise


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> AuthContext:
    """
    Dependency for protected routes.

    On success the caller is also attached to `request.state.user` and
    `request.state.token` for handlers that only take the request, and the
    plain id to `request.state.user_id` for the access log, which runs after
    the request session has closed.
    """
    gate: AuthorizationGate = request.app.state.gate
    context = await gate.authenticate(db, request.headers.get("authorization"))
    request.state.user = context.user
    request.state.token = context.token
    request.state.user_id = str(context.user.id)
    return context
