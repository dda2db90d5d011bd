"""
Journal API — Journal Entry and Attachment Models
==================================================

What:  ORM models for `journal_entries` and `attachments`.
Who:   Used by JournalService, AttachmentService and CascadeService.

Query Patterns:
    - List a user's entries: WHERE user_id = :uid ORDER BY created_at DESC
      → idx_journal_entries_user_created
    - Fetch one entry: WHERE id = :id AND user_id = :uid (ownership filter)
    - Fetch one attachment: attachments JOIN journal_entries ON entry id,
      WHERE attachments.id = :id AND journal_entries.user_id = :uid
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from journal_api.database import Base
from journal_api.utils import generate_id, utcnow


class JournalEntry(Base):
    """
    A Markdown journal entry owned by exactly one user.

    `user_id` is set at creation and never updated.
    """

    __tablename__ = "journal_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_journal_entries_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<JournalEntry(id={self.id}, user_id={self.user_id})>"


class Attachment(Base):
    """
    Metadata for a file attached to a journal entry.

    The bytes live in the blob store under `storage_key`
    (attachments/{userId}/{journalId}/{id}.{ext}); `filename` is the
    last path segment of that key.
    """

    __tablename__ = "attachments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    journal_entry_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("journal_entries.id"), nullable=False
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    storage_key: Mapped[str] = mapped_column(String(512), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_attachments_journal_entry_id", "journal_entry_id"),)

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, journal_entry_id={self.journal_entry_id})>"
