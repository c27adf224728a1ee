"""
FeedHub Backend — User Service (Credential Store)
==================================================

What:  Signup, login and user lookup.
How:   Validates and normalises input, enforces the (email, user_type)
       uniqueness rule, hashes passwords through PasswordHasher and stores
       optional profile pictures through the ObjectStore.
Who:   Auth routes (signup, login).

Signup Flow:
    normalise + validate fields → uniqueness check → upload profile image
    → insert user → (route) issue session token

    The uniqueness check runs before the upload so a duplicate signup never
    leaves an orphaned picture behind. The database unique constraint still
    backs it up for concurrent signups.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedhub.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    StorageBackendError,
    ValidationError,
)
from feedhub.models import USER_TYPES, User
from feedhub.services.password_service import PasswordHasher
from feedhub.services.storage_service import (
    CATEGORY_IMAGES,
    MediaUpload,
    ObjectStore,
    validate_media,
)

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_user_type(user_type: Optional[str]) -> str:
    return (user_type or "").strip().lower()


@dataclass
class SignupData:
    name: str
    email: str
    password: str
    user_type: str
    profile_image_url: Optional[str] = None


class UserService:
    """Business logic for accounts and credentials."""

    def __init__(
        self,
        hasher: PasswordHasher,
        object_store: ObjectStore,
        min_password_length: int = 6,
        max_profile_image_size: int = 5 * 1024 * 1024,
    ):
        self.hasher = hasher
        self.object_store = object_store
        self.min_password_length = min_password_length
        self.max_profile_image_size = max_profile_image_size

    def validate_signup(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        user_type: Optional[str],
        profile_image_url: Optional[str] = None,
        has_profile_upload: bool = False,
    ) -> SignupData:
        """
        Normalise and validate signup fields.

        Rules:
            - name, email, password and userType are required
            - userType is consumer or creator (case-insensitive)
            - creators must supply a profile image (file or URL)
            - password has at least `min_password_length` characters

        Raises:
            ValidationError naming the first failing rule
        """
        name = (name or "").strip()
        email = normalize_email(email)
        user_type = normalize_user_type(user_type)
        profile_image_url = (profile_image_url or "").strip() or None

        if not name or not email or not password or not user_type:
            raise ValidationError(message="all fields required")

        if user_type not in USER_TYPES:
            raise ValidationError(message="userType must be consumer or creator", field="userType")

        if user_type == "creator" and not (has_profile_upload or profile_image_url):
            raise ValidationError(
                message="profile image required for creators", field="profileImage"
            )

        if len(password) < self.min_password_length:
            raise ValidationError(
                message=f"password must be at least {self.min_password_length} characters",
                field="password",
            )

        return SignupData(
            name=name,
            email=email,
            password=password,
            user_type=user_type,
            profile_image_url=profile_image_url,
        )

    async def find_user(self, db: AsyncSession, email: str, user_type: str) -> Optional[User]:
        """Get a user by (email, user_type); email is normalised first."""
        try:
            result = await db.execute(
                select(User).where(
                    User.email == normalize_email(email),
                    User.user_type == normalize_user_type(user_type),
                )
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user: %s", str(e))
            raise StorageBackendError(
                message="Could not look up the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def create_user(
        self,
        db: AsyncSession,
        data: SignupData,
        profile_upload: Optional[MediaUpload] = None,
    ) -> User:
        """
        Create an account.

        Raises:
            ConflictError: (email, user_type) already registered
            ValidationError: profile image upload is not an image or too large
            StorageBackendError: object store or database unavailable
        """
        if await self.find_user(db, data.email, data.user_type) is not None:
            raise ConflictError(
                message=f"account with this email already exists as {data.user_type}",
                context={"user_type": data.user_type},
            )

        profile_image = data.profile_image_url
        if profile_upload is not None:
            validate_media(profile_upload, self.max_profile_image_size, image_only=True)
            safe_email = "".join(c if c.isalnum() else "_" for c in data.email)
            extension = profile_upload.extension or "jpg"
            profile_image = await self.object_store.put(
                profile_upload.content,
                f"profile-{safe_email}.{extension}",
                profile_upload.content_type,
                CATEGORY_IMAGES,
            )

        user = User(
            name=data.name,
            email=data.email,
            password_hash=await self.hasher.hash_async(data.password),
            user_type=data.user_type,
            profile_image=profile_image,
        )
        try:
            db.add(user)
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same pair
            await db.rollback()
            raise ConflictError(
                message=f"account with this email already exists as {data.user_type}",
                context={"user_type": data.user_type},
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise StorageBackendError(
                message="signup failed: the account could not be saved",
                context={"error_type": type(e).__name__},
            )

        logger.info("User created: %s (%s)", user.id, user.user_type)
        return user

    async def authenticate(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
        user_type: Optional[str],
    ) -> User:
        """
        Check login credentials.

        Raises:
            ValidationError: missing email/password or bad userType
            InvalidCredentialsError: unknown account or wrong password
        """
        if not normalize_email(email) or not password:
            raise ValidationError(message="email and password required")

        user_type = normalize_user_type(user_type)
        if user_type not in USER_TYPES:
            raise ValidationError(message="userType must be consumer or creator", field="userType")

        user = await self.find_user(db, email, user_type)
        if user is None:
            raise InvalidCredentialsError(message="invalid credentials or account type not found")

        if not await self.hasher.verify_async(password, user.password_hash):
            raise InvalidCredentialsError()

        return user
