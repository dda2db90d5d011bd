"""
Journal API — Journal Service (User-Scoped Entry Repository)
=============================================================

What:  CRUD, listing and substring search over journal entries.
Why:   Every read and write is scoped to the caller: an entry is only
       visible to the user whose id is stored in `journal_entries.user_id`.
How:   Each query carries the ownership predicate in its WHERE clause, so a
       row owned by someone else is indistinguishable from a missing one.
Who:   Called by routes/journal.py; delete delegates to CascadeService.

Pagination (offset-based):
    offset = (page - 1) * limit
    ORDER BY created_at DESC, id DESC    ← id breaks ties between entries
                                           created in the same instant
    total_pages = ceil(total / limit)
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.exceptions import DatabaseError, NotFoundError, ValidationError
from journal_api.models.journal import JournalEntry
from journal_api.schemas.common import MessageResponse, Pagination
from journal_api.schemas.journal import (
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalSearchResponse,
)
from journal_api.services.blob_base import BlobStore
from journal_api.services.cascade_service import cascade_service
from journal_api.utils import total_pages, utcnow

logger = logging.getLogger(__name__)

ENTRY_NOT_FOUND = "Journal entry not found"


def _validate_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("page must be 1 or greater", field="page")
    if limit < 1:
        raise ValidationError("limit must be 1 or greater", field="limit")


def _validate_content(content: Optional[str]) -> str:
    if not content:
        raise ValidationError("Content is required", field="content")
    return content


class JournalService:
    """
    Business logic for journal entries.

    Error Handling Strategy:
        Our own exceptions propagate unchanged. SQLAlchemy failures are
        logged and wrapped in DatabaseError so no SQL reaches the client.
    """

    async def _page(
        self,
        db: AsyncSession,
        user_id: str,
        page: int,
        limit: int,
        content_filter: Optional[ColumnElement[bool]] = None,
    ) -> Tuple[list, int]:
        conditions = [JournalEntry.user_id == user_id]
        if content_filter is not None:
            conditions.append(content_filter)

        result = await db.execute(
            select(JournalEntry)
            .where(*conditions)
            .order_by(desc(JournalEntry.created_at), desc(JournalEntry.id))
            .limit(limit)
            .offset((page - 1) * limit)
        )
        entries = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count(JournalEntry.id)).where(*conditions)
        )
        total = count_result.scalar() or 0
        return entries, total

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = 20,
    ) -> JournalEntryListResponse:
        """
        List the caller's entries, newest first.

        Example:
            25 entries, limit=20 → page 1 holds 20, page 2 holds 5,
            totalPages == 2.
        """
        _validate_page(page, limit)
        try:
            entries, total = await self._page(db, user_id, page, limit)
        except SQLAlchemyError as e:
            logger.error("Database error listing entries for %s: %s", user_id, str(e))
            raise DatabaseError(message="Could not retrieve journal entries.")

        return JournalEntryListResponse(
            entries=[JournalEntryResponse.model_validate(entry) for entry in entries],
            pagination=Pagination(
                page=page, limit=limit, total=total, total_pages=total_pages(total, limit)
            ),
        )

    async def search_entries(
        self,
        db: AsyncSession,
        user_id: str,
        query: str,
        page: int = 1,
        limit: int = 20,
    ) -> JournalSearchResponse:
        """
        Like list_entries, filtered by `content LIKE %query%`.

        Case sensitivity is whatever the database's LIKE does (insensitive
        for ASCII on SQLite, sensitive on PostgreSQL). `%` and `_` inside the
        query keep their wildcard meaning.
        """
        if not query or not query.strip():
            raise ValidationError("Search query is required", field="q")
        _validate_page(page, limit)
        try:
            entries, total = await self._page(
                db, user_id, page, limit, JournalEntry.content.like(f"%{query}%")
            )
        except SQLAlchemyError as e:
            logger.error("Database error searching entries for %s: %s", user_id, str(e))
            raise DatabaseError(message="Could not search journal entries.")

        return JournalSearchResponse(
            entries=[JournalEntryResponse.model_validate(entry) for entry in entries],
            query=query,
            pagination=Pagination(
                page=page, limit=limit, total=total, total_pages=total_pages(total, limit)
            ),
        )

    async def create_entry(
        self, db: AsyncSession, user_id: str, content: str
    ) -> JournalEntryResponse:
        """Create an entry owned by the caller; created_at == updated_at."""
        content = _validate_content(content)
        now = utcnow()
        entry = JournalEntry(user_id=user_id, content=content, created_at=now, updated_at=now)
        try:
            db.add(entry)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating entry for %s: %s", user_id, str(e))
            raise DatabaseError(message="Could not save the journal entry.")
        logger.info("Journal entry created: %s (user=%s)", entry.id, user_id)
        return JournalEntryResponse.model_validate(entry)

    async def get_owned_entry(
        self, db: AsyncSession, user_id: str, entry_id: str
    ) -> JournalEntry:
        """
        Fetch an entry by id AND owner.

        Raises:
            NotFoundError: the id does not exist or belongs to another user
                (same message either way).
        """
        try:
            result = await db.execute(
                select(JournalEntry).where(
                    JournalEntry.id == entry_id,
                    JournalEntry.user_id == user_id,
                )
            )
            entry = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching entry %s: %s", entry_id, str(e))
            raise DatabaseError(message="Could not retrieve the journal entry.")

        if entry is None:
            raise NotFoundError(ENTRY_NOT_FOUND, resource_id=entry_id)
        return entry

    async def get_entry(
        self, db: AsyncSession, user_id: str, entry_id: str
    ) -> JournalEntryResponse:
        entry = await self.get_owned_entry(db, user_id, entry_id)
        return JournalEntryResponse.model_validate(entry)

    async def update_entry(
        self, db: AsyncSession, user_id: str, entry_id: str, content: str
    ) -> JournalEntryResponse:
        """Replace an owned entry's content and bump updated_at."""
        content = _validate_content(content)
        entry = await self.get_owned_entry(db, user_id, entry_id)
        entry.content = content
        entry.updated_at = utcnow()
        try:
            await db.flush()
            await db.refresh(entry)
        except SQLAlchemyError as e:
            logger.error("Database error updating entry %s: %s", entry_id, str(e))
            raise DatabaseError(message="Could not update the journal entry.")
        return JournalEntryResponse.model_validate(entry)

    async def delete_entry(
        self, db: AsyncSession, store: BlobStore, user_id: str, entry_id: str
    ) -> MessageResponse:
        """Delete an owned entry with its attachments (rows, then bytes)."""
        await self.get_owned_entry(db, user_id, entry_id)
        await cascade_service.delete_entry(db, store, entry_id)
        logger.info("Journal entry deleted: %s (user=%s)", entry_id, user_id)
        return MessageResponse(message="Journal entry deleted successfully")


journal_service = JournalService()
