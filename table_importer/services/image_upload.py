from __future__ import annotations

import logging
from typing import BinaryIO, Protocol

from .safe_name import build_safe_file_name

"""Image upload validation in front of an object-storage client.

The storage client itself (S3 / MinIO wrapper) lives outside this package;
anything with a matching ``put_object`` works.
"""

__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "ALLOWED_SUFFIXES",
    "MULTIPART_PART_SIZE",
    "ObjectStorageClient",
    "UploadError",
    "ImageUploadService",
]

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = (
    "image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp", "image/svg+xml",
)
ALLOWED_SUFFIXES = ("png", "jpg", "jpeg")
OBJECT_KEY_PREFIX = "icon/user/"
# MinIO/S3 multipart の最小パートサイズ
MULTIPART_PART_SIZE = 5 * 1024 * 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadError(Exception):
    pass


class ObjectStorageClient(Protocol):
    def put_object(
        self,
        key: str,
        stream: BinaryIO,
        size: int,
        content_type: str,
        part_size: int | None = None,
    ) -> None: ...


def normalize_content_type(content_type: str | None) -> str:
    if content_type is None or not content_type.strip():
        return DEFAULT_CONTENT_TYPE
    return content_type.strip()


def is_allowed_type(content_type: str | None) -> bool:
    if content_type is None:
        return False
    lowered = content_type.lower()
    if lowered in ALLOWED_CONTENT_TYPES:
        return True
    return lowered.startswith("image/")


def check_image_suffix(file_name: str | None) -> str:
    """Return the lowercased suffix or raise UploadError for non png/jpg names."""
    if not file_name or "." not in file_name:
        raise UploadError("Invalid file format, please upload an image in png or jpg format")
    suffix = file_name.rsplit(".", 1)[1].lower()
    if suffix not in ALLOWED_SUFFIXES:
        raise UploadError("Invalid file format, please upload an image in png or jpg format")
    return suffix


class ImageUploadService:
    """Validate an image and store it under a generated object key."""

    def __init__(self, client: ObjectStorageClient, key_prefix: str = OBJECT_KEY_PREFIX) -> None:
        self.client = client
        self.key_prefix = key_prefix

    def upload(
        self,
        stream: BinaryIO | None,
        original_name: str | None,
        content_type: str | None,
        size: int,
    ) -> str:
        """Upload and return the object key.

        size <= 0 means unknown; the client is then asked for a multipart
        upload with MULTIPART_PART_SIZE parts.
        """
        if stream is None:
            raise UploadError("Empty file")
        try:
            if size == 0:
                raise UploadError("Empty file")
            check_image_suffix(original_name)
            ctype = normalize_content_type(content_type)
            if not is_allowed_type(ctype):
                raise UploadError(f"Unsupported content type: {ctype}")

            key = self.key_prefix + build_safe_file_name(original_name, ctype)
            try:
                if size > 0:
                    self.client.put_object(key, stream, size, ctype)
                else:
                    self.client.put_object(key, stream, -1, ctype, part_size=MULTIPART_PART_SIZE)
            except Exception as e:
                logger.error(
                    "upload image failed name=%s size=%d type=%s err=%s", original_name, size, ctype, e,
                    exc_info=True,
                )
                raise UploadError(f"object storage upload failed: {e}") from e
        finally:
            stream.close()
        logger.info("image uploaded key=%s type=%s", key, ctype)
        return key
