"""
FeedHub Backend — Object Store (Media Storage)
===============================================

What:  Stores uploaded media (post media, profile pictures) and deletes it again.
How:   `ObjectStore` is the abstract contract; `LocalObjectStore` keeps objects
       on the local file system under STORAGE_ROOT and hands out URLs under
       MEDIA_BASE_URL, which the /media route serves back.
Who:   UserService (profile images) and PostService (post media).

Layout:
    storage/
    ├── images/
    │   └── 3f2a...-post-photo.jpg
    ├── videos/
    └── gifs/

Object names are `<uuid4>-<sanitized original name>`: unique under concurrent
uploads and free of path separators.
"""

import logging
import os
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from feedhub.exceptions import StorageBackendError, ValidationError

logger = logging.getLogger(__name__)

# ── Categories ────────────────────────────────────────────────────────────
CATEGORY_IMAGES = "images"
CATEGORY_VIDEOS = "videos"
CATEGORY_GIFS = "gifs"
CATEGORIES = (CATEGORY_IMAGES, CATEGORY_VIDEOS, CATEGORY_GIFS)

# Accepted upload families (checked on the declared content type)
ALLOWED_MEDIA_PREFIXES = ("image/", "video/")

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass
class MediaUpload:
    """An uploaded file, already read into memory by the route layer."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return Path(self.filename or "").suffix.lstrip(".").lower()


def category_for(content_type: Optional[str], post_type: Optional[str] = None) -> str:
    """
    Pick the storage category for an object.

    Precedence: gif, then video, then image (the default for anything else).
    """
    content_type = content_type or ""
    if post_type == "gif" or content_type == "image/gif":
        return CATEGORY_GIFS
    if post_type == "video" or content_type.startswith("video/"):
        return CATEGORY_VIDEOS
    return CATEGORY_IMAGES


def validate_media(upload: MediaUpload, max_size: int, image_only: bool = False) -> None:
    """
    Reject uploads that are too large or of an unsupported family.

    Raises:
        ValidationError with a message the client can act on
    """
    content_type = (upload.content_type or "").lower()
    if image_only:
        if not content_type.startswith("image/"):
            raise ValidationError(
                message="profile image must be an image file",
                field="profileImage",
                context={"content_type": content_type},
            )
    elif not content_type.startswith(ALLOWED_MEDIA_PREFIXES):
        raise ValidationError(
            message="Only image and video files are allowed",
            field="media",
            context={"content_type": content_type},
        )

    if upload.size > max_size:
        max_mb = max_size / (1024 * 1024)
        raise ValidationError(
            message=f"file too large, max {max_mb:.0f}MB",
            field="profileImage" if image_only else "media",
            context={"max_size": max_size, "actual_size": upload.size},
        )


class ObjectStore(ABC):
    """
    Abstract interface for a blob store.

    Contract:
        - put() stores bytes and returns a URL that identifies the object
        - delete() removes an object by that URL and reports whether it did;
          URLs the store does not own are answered with False, not an error
        - Implementation-specific failures of put() surface as StorageBackendError
    """

    @abstractmethod
    async def put(self, content: bytes, name: str, content_type: str, category: str) -> str:
        ...

    @abstractmethod
    async def delete(self, url: str) -> bool:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...


class LocalObjectStore(ObjectStore):
    """Object store backed by a directory on the local file system."""

    def __init__(self, storage_root: str, base_url: str = "/media"):
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/")
        logger.info("LocalObjectStore initialized with storage_root=%s", self.storage_root)

    def ensure_layout(self) -> None:
        """Create the root and category directories (idempotent)."""
        try:
            for category in CATEGORIES:
                (self.storage_root / category).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBackendError(
                message="Media storage is not writable. Check STORAGE_ROOT.",
                context={"storage_root": str(self.storage_root), "os_error": str(e)},
            )

    def _object_name(self, name: str) -> str:
        safe = _UNSAFE_NAME_CHARS.sub("_", name or "upload")
        return f"{uuid.uuid4()}-{safe}"

    def url_for(self, category: str, object_name: str) -> str:
        return f"{self.base_url}/{category}/{object_name}"

    def resolve_url(self, url: str) -> Optional[Tuple[str, str]]:
        """
        Split a URL issued by this store into (category, object_name).

        Returns None for foreign URLs, unknown categories, or names that try
        to escape the category directory.
        """
        if not url or not url.startswith(self.base_url + "/"):
            return None
        remainder = url[len(self.base_url) + 1:]
        parts = remainder.split("/")
        if len(parts) != 2:
            return None
        category, object_name = parts
        if category not in CATEGORIES or object_name in ("", ".", ".."):
            return None
        return category, object_name

    def path_for(self, category: str, object_name: str) -> Optional[Path]:
        """Absolute path of an object, or None if it would leave the storage root."""
        if category not in CATEGORIES:
            return None
        path = (self.storage_root / category / object_name).resolve()
        if path.parent != self.storage_root / category:
            return None
        return path

    async def put(self, content: bytes, name: str, content_type: str, category: str) -> str:
        """
        Write an object and return its URL.

        Raises:
            StorageBackendError if the directory or file cannot be written
        """
        if category not in CATEGORIES:
            category = category_for(content_type)
        object_name = self._object_name(name)
        path = self.storage_root / category / object_name

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store object at %s: %s", path, str(e))
            raise StorageBackendError(
                message="failed to upload media file to storage",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Object stored: %s/%s (%d bytes, %s)", category, object_name, len(content), content_type)
        return self.url_for(category, object_name)

    async def delete(self, url: str) -> bool:
        """
        Remove an object by URL.

        Returns:
            True if a file was removed; False for foreign URLs or missing files.
        Raises:
            StorageBackendError if the file exists but cannot be removed
        """
        resolved = self.resolve_url(url)
        if resolved is None:
            return False
        path = self.path_for(*resolved)
        if path is None or not path.exists():
            logger.debug("Delete: object already gone: %s", url)
            return False
        try:
            os.remove(path)
        except OSError as e:
            raise StorageBackendError(
                message="failed to delete media file from storage",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Object deleted: %s/%s", *resolved)
        return True

    async def health_check(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)
