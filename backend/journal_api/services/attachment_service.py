"""
Journal API — Attachment Service
=================================

What:  Upload, download and delete files attached to journal entries.
Why:   Attachment bytes live in the blob store while their metadata lives in
       the database; this service keeps the two in step and enforces that
       only the owner of the parent entry can touch either.
How:   Ownership is always established through the parent entry
       (attachment → journal_entries.user_id). Uploads are validated in
       full before the blob store is touched.
Who:   Called by routes/attachments.py.

Upload Pipeline:
    ┌──────────┐   ┌──────────┐   ┌───────────┐   ┌───────────┐   ┌──────────┐
    │ Owner    │ → │ File     │ → │ MIME      │ → │ Size      │ → │ put blob │
    │ check    │   │ present? │   │ allowed?  │   │ ≤ 10 MiB? │   │ + insert │
    │ (404)    │   │ (400)    │   │ (400)     │   │ (400)     │   │ row      │
    └──────────┘   └──────────┘   └───────────┘   └───────────┘   └──────────┘

Storage Key Layout:
    attachments/{userId}/{journalId}/{attachmentId}.{ext}
    ext is taken from the original filename; "bin" when it has none.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.config import settings
from journal_api.exceptions import (
    BlobStorageError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from journal_api.models.journal import Attachment, JournalEntry
from journal_api.schemas.common import MessageResponse
from journal_api.schemas.journal import AttachmentResponse
from journal_api.services.blob_base import BlobStore
from journal_api.services.journal_service import journal_service
from journal_api.utils import generate_id, utcnow

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "text/markdown",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

ATTACHMENT_NOT_FOUND = "Attachment not found"


def file_extension(filename: str) -> str:
    """
    Extension used in the storage key.

    Example:
        "notes.final.pdf" → "pdf", "README" → "bin", "trailing." → "bin"
    """
    if "." not in filename:
        return "bin"
    return filename.rsplit(".", 1)[1] or "bin"


def build_storage_key(user_id: str, journal_id: str, attachment_id: str, ext: str) -> str:
    return f"attachments/{user_id}/{journal_id}/{attachment_id}.{ext}"


def content_disposition(filename: str) -> str:
    """
    Download header for an original filename.

    Names that survive percent-quoting unchanged go out as a plain quoted
    `filename=`; anything else (non-ASCII, quotes, spaces, CR/LF) is sent
    as RFC 5987 `filename*=utf-8''...` so the header stays latin-1 safe.
    """
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


@dataclass(frozen=True)
class AttachmentDownload:
    """Bytes plus the metadata needed to build the download response."""
    content: bytes
    mime_type: str
    original_filename: str
    size: int


class AttachmentService:
    """
    Business logic for attachments.

    The allow-list and size ceiling are instance attributes so tests can
    construct a service with a smaller limit.
    """

    def __init__(self, max_file_size: Optional[int] = None):
        self.max_file_size = max_file_size or settings.max_file_size
        self.allowed_mime_types = ALLOWED_MIME_TYPES

    def validate_upload(self, content_type: Optional[str], reported_size: Optional[int]) -> None:
        """
        Checks MIME type, then the size the client reported, before any
        bytes are read.

        Raises:
            ValidationError: with `allowedTypes` or `maxSize` in the response.
        """
        if content_type not in self.allowed_mime_types:
            raise ValidationError(
                "File type not allowed",
                field="file",
                context={"content_type": content_type},
                details={"allowedTypes": list(self.allowed_mime_types)},
            )
        if reported_size:
            self.validate_size(reported_size)

    def validate_size(self, size: int) -> None:
        """Checks the actual byte count; clients can misreport the size."""
        if size > self.max_file_size:
            raise ValidationError(
                "File size too large",
                field="file",
                context={"size": size},
                details={"maxSize": self.max_file_size},
            )

    async def _get_owned_attachment(
        self, db: AsyncSession, user_id: str, attachment_id: str
    ) -> Attachment:
        try:
            result = await db.execute(
                select(Attachment)
                .join(JournalEntry, JournalEntry.id == Attachment.journal_entry_id)
                .where(Attachment.id == attachment_id, JournalEntry.user_id == user_id)
            )
            attachment = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching attachment %s: %s", attachment_id, str(e))
            raise DatabaseError(message="Could not retrieve the attachment.")
        if attachment is None:
            raise NotFoundError(ATTACHMENT_NOT_FOUND, resource_id=attachment_id)
        return attachment

    async def upload(
        self,
        db: AsyncSession,
        store: BlobStore,
        user_id: str,
        journal_id: str,
        upload: Optional[UploadFile],
    ) -> AttachmentResponse:
        """
        Store a file against one of the caller's entries.

        Steps:
            1. Parent entry must belong to the caller (NotFoundError otherwise)
            2. Validate presence, MIME type and reported size before reading,
               then the actual size; nothing is written yet
            3. Put the bytes, then insert the metadata row
            4. If the insert fails, remove the blob and report a storage error
        """
        await journal_service.get_owned_entry(db, user_id, journal_id)

        if upload is None or not upload.filename:
            raise ValidationError("No file provided", field="file")

        self.validate_upload(upload.content_type, upload.size)
        content = await upload.read()
        self.validate_size(len(content))

        attachment_id = generate_id()
        ext = file_extension(upload.filename)
        filename = f"{attachment_id}.{ext}"
        storage_key = build_storage_key(user_id, journal_id, attachment_id, ext)

        try:
            await store.put(storage_key, content, upload.content_type)
        except BlobStorageError as e:
            logger.error("Attachment upload failed for entry %s: %s", journal_id, e.context)
            raise BlobStorageError(message="Failed to upload file", context=e.context)

        attachment = Attachment(
            id=attachment_id,
            journal_entry_id=journal_id,
            filename=filename,
            original_filename=upload.filename,
            mime_type=upload.content_type,
            size=len(content),
            storage_key=storage_key,
            created_at=utcnow(),
        )
        try:
            db.add(attachment)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Attachment metadata insert failed for %s: %s", storage_key, str(e))
            try:
                await store.delete(storage_key)
            except BlobStorageError:
                logger.warning("Orphaned blob left behind: %s", storage_key)
            raise BlobStorageError(
                message="Failed to upload file",
                context={"key": storage_key},
            )

        logger.info(
            "Attachment uploaded: %s (entry=%s, %d bytes, %s)",
            attachment_id,
            journal_id,
            attachment.size,
            attachment.mime_type,
        )
        return AttachmentResponse.model_validate(attachment)

    async def fetch(
        self,
        db: AsyncSession,
        store: BlobStore,
        user_id: str,
        attachment_id: str,
    ) -> AttachmentDownload:
        """
        Load an owned attachment's bytes.

        Raises:
            NotFoundError: "Attachment not found" when the row is missing or
                foreign-owned; "File not found in storage" when the row exists
                but the bytes do not.
        """
        attachment = await self._get_owned_attachment(db, user_id, attachment_id)
        content = await store.get(attachment.storage_key)
        if content is None:
            logger.warning(
                "Attachment %s has no blob at %s", attachment_id, attachment.storage_key
            )
            raise NotFoundError("File not found in storage", resource_id=attachment_id)
        return AttachmentDownload(
            content=content,
            mime_type=attachment.mime_type,
            original_filename=attachment.original_filename,
            size=len(content),
        )

    async def delete(
        self,
        db: AsyncSession,
        store: BlobStore,
        user_id: str,
        attachment_id: str,
    ) -> MessageResponse:
        """Delete the bytes (best-effort), then the metadata row."""
        attachment = await self._get_owned_attachment(db, user_id, attachment_id)

        try:
            await store.delete(attachment.storage_key)
        except BlobStorageError as e:
            logger.warning(
                "Could not delete blob %s: %s", attachment.storage_key, e.message
            )

        try:
            await db.execute(delete(Attachment).where(Attachment.id == attachment_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting attachment %s: %s", attachment_id, str(e))
            raise DatabaseError(message="Could not delete the attachment.")

        logger.info("Attachment deleted: %s (user=%s)", attachment_id, user_id)
        return MessageResponse(message="Attachment deleted successfully")


# ── Singleton Instance ────────────────────────────────────────────────────
attachment_service = AttachmentService()
