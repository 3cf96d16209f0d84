# src/infrastructure/object_storage.py
"""
Blob storage for uploaded media. Cloudflare R2 (S3 API via boto3) OR local
filesystem, selected by STORAGE_BACKEND.

Keys look like "images/<uuid>.<ext>" or "videos/<uuid>.<ext>". The backends
validate type and size before anything is written.
"""
import asyncio
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, Sequence

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from src.exceptions import (
    PayloadTooLargeError,
    TooManyFilesError,
    UnsupportedMediaTypeError,
    UpstreamError,
    ValidationError,
)
from src.models.media_asset import MEDIA_TYPE_IMAGE, MEDIA_TYPE_VIDEO

logger = structlog.get_logger(__name__)

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").lower()
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID", "")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "social-media-uploads")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")
LOCAL_STORAGE_PATH = os.getenv("LOCAL_STORAGE_PATH", "./local_storage")
LOCAL_STORAGE_URL = os.getenv("LOCAL_STORAGE_URL", "/static")

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
ALLOWED_VIDEO_TYPES = ("video/mp4", "video/webm", "video/mov", "video/avi")

MAX_IMAGE_SIZE = 5 * 1024 * 1024
MAX_VIDEO_SIZE = 15 * 1024 * 1024
MAX_FILES_PER_UPLOAD = 10

EXTENSIONS: Dict[str, str] = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/mov": "mov",
    "video/avi": "avi",
}


@dataclass
class IncomingFile:
    file_name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class StoredObject:
    key: str
    url: str


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    DELETE_FAILED_NON_FATAL = "delete_failed_non_fatal"


def media_type_for(mime_type: str) -> str:
    if mime_type in ALLOWED_VIDEO_TYPES:
        return MEDIA_TYPE_VIDEO
    if mime_type in ALLOWED_IMAGE_TYPES:
        return MEDIA_TYPE_IMAGE
    raise UnsupportedMediaTypeError(
        f"Unsupported file type: {mime_type}. Only images (JPEG, PNG, GIF, WebP) "
        "and videos (MP4, WebM, MOV, AVI) are allowed.",
        details={
            "mimeType": mime_type,
            "allowedTypes": {"images": list(ALLOWED_IMAGE_TYPES), "videos": list(ALLOWED_VIDEO_TYPES)},
        },
    )


def validate_file(file_name: str, mime_type: str, size: int) -> str:
    """Check one file against the allow-list and size ceilings; returns its media type."""
    media_type = media_type_for(mime_type)
    limit = MAX_VIDEO_SIZE if media_type == MEDIA_TYPE_VIDEO else MAX_IMAGE_SIZE
    if size > limit:
        raise PayloadTooLargeError(
            f'{media_type.capitalize()} file "{file_name}" exceeds {limit // (1024 * 1024)}MB limit',
            details={"fileName": file_name, "size": size, "limit": limit},
        )
    return media_type


def validate_batch(files: Sequence[IncomingFile]) -> None:
    if not files:
        raise ValidationError("No files uploaded", error_code="NO_FILES")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise TooManyFilesError(
            f"Maximum {MAX_FILES_PER_UPLOAD} files allowed per upload",
            details={"count": len(files), "limit": MAX_FILES_PER_UPLOAD},
        )
    for f in files:
        validate_file(f.file_name, f.mime_type, f.size)


def build_key(mime_type: str) -> str:
    folder = "videos" if mime_type.startswith("video/") else "images"
    return f"{folder}/{uuid.uuid4()}.{EXTENSIONS.get(mime_type, 'bin')}"


class StorageBackend(ABC):
    @abstractmethod
    async def _put(self, key: str, data: bytes, mime_type: str, metadata: Dict[str, str]) -> None:
        ...

    @abstractmethod
    async def _remove(self, key: str) -> None:
        ...

    @abstractmethod
    def url_for(self, key: str) -> str:
        ...

    async def store(self, data: bytes, mime_type: str, owner_id: str, file_name: str = "") -> StoredObject:
        """Validate and upload one blob. Raises UpstreamError if the backend call fails."""
        validate_file(file_name or "upload", mime_type, len(data))
        key = build_key(mime_type)
        # S3 user metadata must be ASCII
        metadata = {"userId": str(owner_id), "originalName": file_name.encode("ascii", "ignore").decode()}
        try:
            await self._put(key, data, mime_type, metadata)
        except (BotoCoreError, ClientError, OSError) as e:
            logger.exception("object_store_put_failed", key=key, error=str(e))
            raise UpstreamError("File upload failed")
        logger.info("object_stored", key=key, size=len(data), owner_id=str(owner_id))
        return StoredObject(key=key, url=self.url_for(key))

    async def delete(self, key: str) -> DeleteOutcome:
        """Best-effort removal; a failure is logged and reported, never raised."""
        try:
            await self._remove(key)
        except (BotoCoreError, ClientError, OSError) as e:
            logger.warning("object_store_delete_failed", key=key, error=str(e))
            return DeleteOutcome.DELETE_FAILED_NON_FATAL
        logger.info("object_deleted", key=key)
        return DeleteOutcome.DELETED


class R2Storage(StorageBackend):
    def __init__(self, bucket: str = R2_BUCKET_NAME, public_url: str = R2_PUBLIC_URL):
        self.bucket = bucket
        self.endpoint = f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
        self.public_url = public_url.rstrip("/")
        self._client = None

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name="auto",
                endpoint_url=self.endpoint,
                aws_access_key_id=R2_ACCESS_KEY_ID,
                aws_secret_access_key=R2_SECRET_ACCESS_KEY,
            )
        return self._client

    async def _put(self, key: str, data: bytes, mime_type: str, metadata: Dict[str, str]) -> None:
        client = self._get_client()
        await asyncio.to_thread(
            client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=mime_type,
            Metadata=metadata,
        )

    async def _remove(self, key: str) -> None:
        client = self._get_client()
        await asyncio.to_thread(client.delete_object, Bucket=self.bucket, Key=key)

    def url_for(self, key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{key}"
        return f"{self.endpoint}/{self.bucket}/{key}"


class LocalStorage(StorageBackend):
    def __init__(self, base_path: str = LOCAL_STORAGE_PATH, base_url: str = LOCAL_STORAGE_URL):
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/")

    def _write(self, key: str, data: bytes) -> None:
        path = self.base_path / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def _put(self, key: str, data: bytes, mime_type: str, metadata: Dict[str, str]) -> None:
        await asyncio.to_thread(self._write, key, data)

    async def _remove(self, key: str) -> None:
        await asyncio.to_thread((self.base_path / key).unlink)

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"


@lru_cache(maxsize=1)
def get_object_storage() -> StorageBackend:
    if STORAGE_BACKEND == "r2":
        return R2Storage()
    return LocalStorage()
