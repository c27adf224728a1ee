"""
FeedHub Backend — Password Hashing
===================================

What:  Thin wrapper around passlib's CryptContext (bcrypt).
Who:   UserService on signup (hash) and login (verify).

The async variants run bcrypt in Starlette's threadpool, off the event loop.
"""

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool


class PasswordHasher:
    """Hashes and verifies passwords; the only place that touches plaintext."""

    def __init__(self, schemes: tuple = ("bcrypt",), bcrypt_rounds: int = 12):
        self._context = CryptContext(
            schemes=list(schemes),
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    def hash(self, password: str) -> str:
        """Hash a password"""
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash; malformed digests never match."""
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            return False

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)
