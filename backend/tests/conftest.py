"""
FeedHub Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own temporary SQLite database (aiosqlite) and its
       own storage directory, so tests never share state.

Fixture Hierarchy (all function-scoped):
    test_settings ── database ── db_session
                 └── object_store
    clock ── token_service
    hasher, object_store ── user_service
    object_store ── post_service
    db_session, hasher ── make_user
    test_settings ── app ── client
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

# Set before any feedhub import: feedhub.main builds a module-level app,
# which refuses to start without a signing secret
os.environ["JWT_SECRET"] = "test-signing-secret-not-for-production"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./feedhub_test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="feedhub_test_")
os.environ["REAPER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from feedhub.config import Settings  # noqa: E402
from feedhub.database import Database  # noqa: E402
from feedhub.main import create_app  # noqa: E402
from feedhub.models import User  # noqa: E402
from feedhub.services.password_service import PasswordHasher  # noqa: E402
from feedhub.services.post_service import PostService  # noqa: E402
from feedhub.services.storage_service import LocalObjectStore  # noqa: E402
from feedhub.services.token_service import TokenService  # noqa: E402
from feedhub.services.user_service import UserService  # noqa: E402

TEST_SECRET = "test-signing-secret-not-for-production"
DEFAULT_PASSWORD = "secret1"


class FakeClock:
    """Injectable clock; tests move time forward explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ══════════════════════════════════════════════════════════════════════════
# Infrastructure
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'feedhub_test.db'}",
        jwt_secret=TEST_SECRET,
        storage_root=str(tmp_path / "storage"),
        reaper_enabled=False,
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(test_settings):
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def object_store(test_settings) -> LocalObjectStore:
    store = LocalObjectStore(test_settings.storage_root)
    store.ensure_layout()
    return store


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(bcrypt_rounds=4)


@pytest.fixture
def token_service(clock) -> TokenService:
    return TokenService(TEST_SECRET, ttl_days=30, clock=clock)


@pytest.fixture
def user_service(hasher, object_store) -> UserService:
    return UserService(hasher, object_store)


@pytest.fixture
def post_service(object_store) -> PostService:
    return PostService(object_store)


@pytest.fixture
def make_user(db_session, hasher):
    """
    Factory for persisted users.

    Usage:
        alice = await make_user("Alice", user_type="creator")
    """

    async def _make(
        name: str = "Alice",
        email: Optional[str] = None,
        user_type: str = "consumer",
        profile_image: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower()}-{uuid4().hex[:6]}@example.com",
            password_hash=hasher.hash(password),
            user_type=user_type,
            profile_image=profile_image,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def app(test_settings):
    """
    A fully wired application on the test settings.

    ASGITransport does not run the lifespan, so the schema and storage
    layout are prepared here.
    """
    application = create_app(test_settings)
    await application.state.database.create_all()
    application.state.object_store.ensure_layout()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def signup(client):
    """
    Sign up through the API and return (token, user_json).

    Creators get a profile image URL unless one is given.
    """

    async def _signup(
        name: str = "Alice",
        email: Optional[str] = None,
        user_type: str = "creator",
        password: str = DEFAULT_PASSWORD,
        profile_image: Optional[str] = None,
    ):
        if profile_image is None and user_type == "creator":
            profile_image = f"https://cdn.example.com/{name.lower()}.png"
        body = {
            "name": name,
            "email": email or f"{name.lower()}@example.com",
            "password": password,
            "userType": user_type,
        }
        if profile_image:
            body["profileImage"] = profile_image
        response = await client.post("/auth/signup", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data["user"]

    return _signup