"""
FeedHub Backend — Session Token Manager
========================================

What:  Issues, verifies, revokes, lists and sweeps bearer-token sessions.
How:   Every token is a signed JWT (python-jose, HMAC) AND a row in the
       `tokens` table. The signature proves who minted it; the row decides
       whether it is still honoured. Both must agree for a request to pass.
Who:   Auth routes (issue/revoke/list), the AuthorizationGate (verify),
       and the TokenReaper (deactivate_expired).

Token claims:
    sub  user id (string UUID)
    iat  issued-at
    exp  expiry, identical to the row's expires_at
    jti  random UUID, so two logins in the same second never collide

Verification order (first failure wins):
    1. Signature / structure          → InvalidTokenError
    2. Active row for (token, sub)    → TokenNotFoundError (never issued or revoked);
                                        TokenExpiredError if the inactive row is past its deadline
    3. expires_at / exp in the past   → deactivate row, TokenExpiredError
    4. Owning user exists             → deactivate row, UserNotFoundError

State transition:
    is_active: True → False only. Lazy expiry (step 3), logout, logout-all
    and the reaper all write the same terminal value, so concurrent writers
    converge and repeating any of them is harmless.

Expiry is checked against the database row, not by jose: signatures are
decoded with `verify_exp` disabled so an expired token still reaches step 3
and gets its row deactivated.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from jose import JWTError, jwt
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedhub.database import utcnow
from feedhub.exceptions import (
    InvalidTokenError,
    StorageBackendError,
    TokenExpiredError,
    TokenNotFoundError,
    UserNotFoundError,
)
from feedhub.models import Token, User

logger = logging.getLogger(__name__)


@dataclass
class DeviceContext:
    """Where a login came from; stored with the session for the session list."""

    user_agent: str = ""
    ip_address: str = ""


@dataclass
class IssuedToken:
    token: str
    record: Token


@dataclass
class AuthContext:
    """Outcome of a successful verification: who is calling, with which session."""

    user: User
    token: Token


@dataclass
class SessionSummary:
    """A session as shown to its owner. Deliberately has no raw token field."""

    id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    user_agent: str
    ip_address: str
    is_current: bool


class TokenService:
    """
    Session token lifecycle.

    Stateless apart from configuration; every method takes the caller's
    AsyncSession so it joins the request's unit of work.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_days: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret or not secret.strip():
            raise ValueError("A token signing secret is required")
        self._secret = secret.strip()
        self.algorithm = algorithm
        self.ttl = timedelta(days=ttl_days)
        self.clock = clock

    # ── Signing ───────────────────────────────────────────────────────────

    def _sign(self, user_id: uuid.UUID, issued_at: datetime, expires_at: datetime) -> str:
        claims = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": expires_at,
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """
        Check signature and structure; return the claims.

        Raises:
            InvalidTokenError: bad signature, malformed token, or missing/garbled subject
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidTokenError(context={"jwt_error": str(e)})

        try:
            claims["sub"] = uuid.UUID(str(claims.get("sub")))
        except ValueError:
            raise InvalidTokenError(context={"jwt_error": "subject is not a user id"})
        return claims

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def issue(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        device: Optional[DeviceContext] = None,
    ) -> IssuedToken:
        """
        Mint a token for `user_id` and persist its session row.

        Every call creates a new, independent session; repeated logins from
        the same device are not deduplicated.

        Raises:
            StorageBackendError if the session row cannot be saved
        """
        device = device or DeviceContext()
        issued_at = self.clock()
        expires_at = issued_at + self.ttl
        token = self._sign(user_id, issued_at, expires_at)

        record = Token(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
            created_at=issued_at,
            user_agent=(device.user_agent or "")[:512],
            ip_address=(device.ip_address or "")[:64],
            is_active=True,
        )
        try:
            db.add(record)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to persist session for user %s: %s", user_id, str(e))
            raise StorageBackendError(
                message="Could not start a session. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Session %s issued for user %s", record.id, user_id)
        return IssuedToken(token=token, record=record)

    async def verify(
        self,
        db: AsyncSession,
        token: str,
        now: Optional[datetime] = None,
    ) -> AuthContext:
        """
        Resolve a bearer token into the calling user and session.

        Side effects:
            Deactivates (and commits) the session row when it turns out to be
            expired or orphaned, before raising.

        Raises:
            InvalidTokenError, TokenNotFoundError, TokenExpiredError,
            UserNotFoundError, StorageBackendError
        """
        now = now or self.clock()
        claims = self.decode(token)
        user_id = claims["sub"]

        try:
            result = await db.execute(
                select(Token).where(
                    Token.token == token,
                    Token.is_active.is_(True),
                    Token.user_id == user_id,
                )
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error verifying session: %s", str(e))
            raise StorageBackendError(
                message="Could not verify the session. Please try again.",
                context={"error_type": type(e).__name__},
            )

        if record is None:
            await self._raise_for_inactive(db, token, claims, now)

        if self._is_expired(record, claims, now):
            await self._deactivate(db, record)
            logger.info("Session %s expired; deactivated on use", record.id)
            raise TokenExpiredError()

        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error resolving session owner: %s", str(e))
            raise StorageBackendError(
                message="Could not verify the session. Please try again.",
                context={"error_type": type(e).__name__},
            )

        if user is None:
            await self._deactivate(db, record)
            logger.warning("Session %s belongs to missing user %s; deactivated", record.id, user_id)
            raise UserNotFoundError()

        return AuthContext(user=user, token=record)

    async def _raise_for_inactive(
        self,
        db: AsyncSession,
        token: str,
        claims: dict,
        now: datetime,
    ) -> None:
        """
        Classify a token with no active row. An already-deactivated row past
        its deadline still reads as expired, so repeating a verification of
        an expired token gives the same answer without another write.
        """
        try:
            result = await db.execute(
                select(Token).where(Token.token == token, Token.user_id == claims["sub"])
            )
            stale = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error classifying inactive session: %s", str(e))
            raise StorageBackendError(
                message="Could not verify the session. Please try again.",
                context={"error_type": type(e).__name__},
            )
        if stale is not None and self._is_expired(stale, claims, now):
            raise TokenExpiredError()
        raise TokenNotFoundError()

    def _is_expired(self, record: Token, claims: dict, now: datetime) -> bool:
        if record.expires_at <= now:
            return True
        exp = claims.get("exp")
        if isinstance(exp, (int, float)):
            return datetime.fromtimestamp(exp, tz=timezone.utc) <= now
        return False

    async def _deactivate(self, db: AsyncSession, record: Token) -> None:
        """
        Flip one session to inactive and commit immediately.

        Committed here because the caller is about to raise, and the request
        session rolls back on exceptions.
        """
        try:
            await db.execute(
                update(Token)
                .where(Token.id == record.id, Token.is_active.is_(True))
                .values(is_active=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            # The row stays active; the next verification or sweep retries
            logger.error("Failed to deactivate session %s: %s", record.id, str(e))

    async def revoke(self, db: AsyncSession, token: str) -> bool:
        """
        Deactivate the session for this exact token string.

        Returns:
            True if an active session was deactivated; False if there was
            nothing to do (unknown token, or already inactive).
        """
        try:
            result = await db.execute(
                update(Token)
                .where(Token.token == token, Token.is_active.is_(True))
                .values(is_active=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error revoking session: %s", str(e))
            raise StorageBackendError(
                message="logout failed. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return (result.rowcount or 0) > 0

    async def revoke_all(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        """Deactivate every active session of one user; returns how many."""
        try:
            result = await db.execute(
                update(Token)
                .where(Token.user_id == user_id, Token.is_active.is_(True))
                .values(is_active=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error revoking sessions of %s: %s", user_id, str(e))
            raise StorageBackendError(
                message="logout failed. Please try again.",
                context={"error_type": type(e).__name__},
            )
        count = result.rowcount or 0
        logger.info("Revoked %d session(s) for user %s", count, user_id)
        return count

    async def list_sessions(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        current_token: Optional[str] = None,
    ) -> List[SessionSummary]:
        """Active sessions of a user, newest first, flagged with is_current."""
        try:
            result = await db.execute(
                select(Token)
                .where(Token.user_id == user_id, Token.is_active.is_(True))
                .order_by(Token.created_at.desc())
            )
            records = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing sessions of %s: %s", user_id, str(e))
            raise StorageBackendError(
                message="Could not list sessions. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [
            SessionSummary(
                id=record.id,
                created_at=record.created_at,
                expires_at=record.expires_at,
                user_agent=record.user_agent,
                ip_address=record.ip_address,
                is_current=current_token is not None and record.token == current_token,
            )
            for record in records
        ]

    async def deactivate_expired(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Bulk-deactivate every active session whose deadline is strictly past.

        Returns:
            Number of sessions flipped to inactive.
        Raises:
            SQLAlchemyError: left to the caller (the reaper logs and moves on)
        """
        now = now or self.clock()
        result = await db.execute(
            update(Token)
            .where(Token.is_active.is_(True), Token.expires_at < now)
            .values(is_active=False)
        )
        await db.commit()
        return result.rowcount or 0
