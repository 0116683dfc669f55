"""
Binary object storage for uploaded documents.

The bucket is an external collaborator; the API only needs upload, download and
delete by path. LocalObjectStorage keeps each bucket as a directory tree, which is
what development and tests run against.
"""
from __future__ import annotations

import asyncio
from pathlib import Path

from config import settings
from utils.log import get_logger

logger = get_logger(__name__)


class ObjectStorageError(Exception):
    """A storage call failed; nothing about the stored object should be assumed."""


class ObjectStorageNotConfigured(ObjectStorageError):
    pass


class ObjectStorage:
    """Interface the document endpoints depend on."""

    async def upload_from_bytes(self, path: str, data: bytes) -> None:
        raise NotImplementedError

    async def download_as_bytes(self, path: str) -> bytes:
        raise NotImplementedError

    async def delete(self, path: str) -> None:
        raise NotImplementedError


class LocalObjectStorage(ObjectStorage):
    def __init__(self, root: str | Path, bucket_id: str):
        self.bucket_dir = (Path(root) / bucket_id).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.bucket_dir / path.lstrip("/")).resolve()
        if self.bucket_dir not in target.parents:
            raise ObjectStorageError(f"Path escapes bucket: {path}")
        return target

    async def upload_from_bytes(self, path: str, data: bytes) -> None:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise ObjectStorageError(f"Upload failed for {path}: {e}") from e

    async def download_as_bytes(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise ObjectStorageError(f"Download failed for {path}: {e}") from e

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            # Already gone; the row can follow.
            logger.warning("Object %s was already missing from storage", path)
        except OSError as e:
            raise ObjectStorageError(f"Delete failed for {path}: {e}") from e


class UnconfiguredObjectStorage(ObjectStorage):
    """Stands in until a bucket is configured; every call reports the missing setting."""

    async def upload_from_bytes(self, path: str, data: bytes) -> None:
        raise ObjectStorageNotConfigured("OBJECT_STORAGE_BUCKET_ID is required")

    async def download_as_bytes(self, path: str) -> bytes:
        raise ObjectStorageNotConfigured("OBJECT_STORAGE_BUCKET_ID is required")

    async def delete(self, path: str) -> None:
        raise ObjectStorageNotConfigured("OBJECT_STORAGE_BUCKET_ID is required")


def get_object_storage() -> ObjectStorage:
    """FastAPI dependency; tests override it with an in-memory store."""
    if not settings.object_storage_bucket_id:
        return UnconfiguredObjectStorage()
    return LocalObjectStorage(settings.object_storage_root, settings.object_storage_bucket_id)


def get_private_object_dir() -> str:
    if not settings.private_object_dir:
        raise ObjectStorageNotConfigured("PRIVATE_OBJECT_DIR is required")
    return settings.private_object_dir.strip("/")
