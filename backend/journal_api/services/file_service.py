"""
Journal API — Local File Blob Store
====================================

What:  BlobStore implementation that keeps attachment bytes on local disk.
Why:   Simple, dependency-free storage for single-node deployments and tests.
How:   Keys map to paths under STORAGE_ROOT; reads and writes use aiofiles so
       the event loop is never blocked on disk I/O.
Who:   Injected into routes through `get_blob_store`.

Directory Structure:
    storage/
    └── attachments/
        └── <userId>/
            └── <journalId>/
                ├── 3f2a...-9c.pdf
                └── 7b1e...-42.png

Security Model:
    Keys are produced by AttachmentService from ids (no user-supplied path
    segments except the file extension). `_resolve` still refuses any key
    that would escape the storage root.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles

from journal_api.config import settings
from journal_api.exceptions import BlobStorageError
from journal_api.services.blob_base import BlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """
    Stores blobs as files beneath a root directory.

    The content type is not persisted: the database row is the source of
    truth for MIME type and original filename.
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()

    def _resolve(self, key: str) -> Path:
        """Maps a key to an absolute path, rejecting traversal outside the root."""
        path = (self.storage_root / key).resolve()
        if path != self.storage_root and self.storage_root not in path.parents:
            raise BlobStorageError(
                message="Invalid storage key",
                context={"key": key},
            )
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to store blob %s: %s", key, str(e))
            raise BlobStorageError(
                message="Failed to upload file",
                context={"key": key, "os_error": str(e)},
            )
        logger.info("Blob stored: %s (%d bytes, %s)", key, len(data), content_type)

    async def get(self, key: str) -> Optional[bytes]:
        path = self._resolve(key)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read blob %s: %s", key, str(e))
            raise BlobStorageError(
                message="Failed to retrieve file",
                context={"key": key, "os_error": str(e)},
            )

    async def delete(self, key: str) -> None:
        path = self._resolve(key)
        if not path.exists():
            logger.debug("Blob already gone: %s", key)
            return
        try:
            os.remove(path)
        except OSError as e:
            logger.error("Failed to delete blob %s: %s", key, str(e))
            raise BlobStorageError(
                message="Failed to delete file",
                context={"key": key, "os_error": str(e)},
            )
        logger.info("Blob deleted: %s", key)

    async def health_check(self) -> bool:
        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            return os.access(self.storage_root, os.W_OK)
        except OSError:
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
blob_store = LocalBlobStore()


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the process-wide blob store."""
    return blob_store
