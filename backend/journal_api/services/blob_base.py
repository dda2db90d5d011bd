"""
Journal API — Abstract Blob Store Interface
============================================

What:  Abstract base class defining the contract for attachment byte storage.
Why:   Attachment metadata lives in the database while the bytes live
       elsewhere (local disk today, an object store tomorrow). Services only
       depend on this interface.
How:   Concrete implementations inherit from BlobStore and implement put(),
       get(), delete() and health_check().
Who:   Called by AttachmentService, JournalService and CascadeService.

Key scheme (chosen by callers, opaque to the store):
    attachments/{userId}/{journalId}/{attachmentId}.{ext}
"""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStore(ABC):
    """
    Abstract interface for storing attachment bytes under string keys.

    Contract:
        - Every call is a single fallible operation; no retries inside.
        - put() overwrites an existing key.
        - get() returns None for a missing key instead of raising.
        - delete() on a missing key is a no-op (idempotent).
        - Implementation-specific failures are wrapped in BlobStorageError.

    Implementations:
        - LocalBlobStore: files under STORAGE_ROOT (file_service.py)
    """

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """
        Store `data` under `key`.

        Raises:
            BlobStorageError: the bytes could not be written.
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Return the bytes stored under `key`, or None when the key is absent.

        Raises:
            BlobStorageError: the key exists but could not be read.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove `key`. Missing keys are ignored.

        Raises:
            BlobStorageError: the key exists but could not be removed.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the store is reachable and writable."""
        ...
