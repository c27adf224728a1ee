"""
FeedHub Backend — Object Store Unit Tests
==========================================

What we test:
    ✅ Category selection (gif > video > image)
    ✅ Upload validation: content family and size limits, with client messages
    ✅ put() writes under <root>/<category>/ and returns a /media URL
    ✅ Object names are unique and stripped of path separators
    ✅ delete() removes own objects; foreign/missing/traversal URLs → False
    ✅ OS failures surface as StorageBackendError
"""

from unittest.mock import patch

import pytest

from feedhub.exceptions import StorageBackendError, ValidationError
from feedhub.services.storage_service import (
    CATEGORY_GIFS,
    CATEGORY_IMAGES,
    CATEGORY_VIDEOS,
    LocalObjectStore,
    MediaUpload,
    category_for,
    validate_media,
)


class TestCategoryFor:

    @pytest.mark.parametrize(
        "content_type, post_type, expected",
        [
            ("image/gif", None, CATEGORY_GIFS),
            ("image/png", "gif", CATEGORY_GIFS),
            ("video/mp4", None, CATEGORY_VIDEOS),
            ("image/jpeg", "video", CATEGORY_VIDEOS),
            ("image/jpeg", "image", CATEGORY_IMAGES),
            (None, None, CATEGORY_IMAGES),
        ],
    )
    def test_precedence(self, content_type, post_type, expected):
        assert category_for(content_type, post_type) == expected


class TestValidateMedia:

    def test_image_and_video_accepted(self):
        validate_media(MediaUpload("a.png", "image/png", b"x"), max_size=10)
        validate_media(MediaUpload("a.mp4", "video/mp4", b"x"), max_size=10)

    def test_other_types_rejected(self):
        with pytest.raises(ValidationError, match="Only image and video files are allowed"):
            validate_media(MediaUpload("a.pdf", "application/pdf", b"x"), max_size=10)

    def test_size_limit_message(self):
        upload = MediaUpload("big.mp4", "video/mp4", b"x" * (50 * 1024 * 1024 + 1))
        with pytest.raises(ValidationError, match="file too large, max 50MB"):
            validate_media(upload, max_size=50 * 1024 * 1024)

    def test_size_limit_is_inclusive(self):
        validate_media(MediaUpload("a.png", "image/png", b"x" * 10), max_size=10)

    def test_profile_image_must_be_image(self):
        with pytest.raises(ValidationError, match="profile image must be an image file") as exc_info:
            validate_media(MediaUpload("a.mp4", "video/mp4", b"x"), max_size=10, image_only=True)
        assert exc_info.value.field == "profileImage"


class TestLocalObjectStore:

    @pytest.mark.asyncio
    async def test_put_writes_file_and_returns_media_url(self, object_store):
        url = await object_store.put(b"hello", "photo.jpg", "image/jpeg", CATEGORY_IMAGES)

        assert url.startswith("/media/images/")
        assert url.endswith("-photo.jpg")
        category, name = object_store.resolve_url(url)
        assert object_store.path_for(category, name).read_bytes() == b"hello"

    @pytest.mark.asyncio
    async def test_names_are_unique_and_sanitized(self, object_store):
        first = await object_store.put(b"1", "../../etc/passwd", "image/png", CATEGORY_IMAGES)
        second = await object_store.put(b"2", "../../etc/passwd", "image/png", CATEGORY_IMAGES)

        assert first != second
        for url in (first, second):
            _, name = object_store.resolve_url(url)
            assert "/" not in name
            assert object_store.path_for(CATEGORY_IMAGES, name) is not None

    @pytest.mark.asyncio
    async def test_unknown_category_falls_back_to_content_type(self, object_store):
        url = await object_store.put(b"x", "clip.mp4", "video/mp4", "somewhere")
        assert url.startswith("/media/videos/")

    @pytest.mark.asyncio
    async def test_delete_removes_object(self, object_store):
        url = await object_store.put(b"x", "a.gif", "image/gif", CATEGORY_GIFS)
        path = object_store.path_for(*object_store.resolve_url(url))

        assert await object_store.delete(url) is True
        assert not path.exists()
        assert await object_store.delete(url) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.com/images/a.jpg",
            "/media/secrets/a.jpg",
            "/media/images/../config.py",
            "/media/images/",
            "",
        ],
    )
    async def test_delete_ignores_foreign_urls(self, object_store, url):
        assert await object_store.delete(url) is False

    @pytest.mark.asyncio
    async def test_put_failure_is_storage_error(self, object_store):
        with patch("feedhub.services.storage_service.aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(StorageBackendError, match="failed to upload media file to storage"):
                await object_store.put(b"x", "a.jpg", "image/jpeg", CATEGORY_IMAGES)

    def test_path_for_rejects_traversal(self, object_store):
        assert object_store.path_for(CATEGORY_IMAGES, "../../x") is None
        assert object_store.path_for("nope", "a.jpg") is None

    @pytest.mark.asyncio
    async def test_health_check(self, object_store, tmp_path):
        assert await object_store.health_check() is True
        missing = LocalObjectStore(str(tmp_path / "does-not-exist"))
        assert await missing.health_check() is False
