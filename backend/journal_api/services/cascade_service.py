"""
Journal API — Cascade Deletion Protocol
========================================

What:  Removes a user (or a single entry) together with every dependent row.
Why:   Foreign keys are declared without ON DELETE CASCADE, so dependents
       must be removed explicitly, children before parents.
How:   Each step is an idempotent `DELETE ... WHERE` scoped to the target id.
       Steps run in order inside one transaction; any failure rolls the
       whole unit back. Blob bytes are reclaimed after the commit on a
       best-effort basis.

User deletion order:
    1. attachments     WHERE journal_entry_id IN (user's entries)
    2. journal_entries WHERE user_id = :uid
    3. oauth_tokens    WHERE user_id = :uid
    4. sessions        WHERE user_id = :uid
    5. users           WHERE id = :uid

Entry deletion order:
    1. attachments     WHERE journal_entry_id = :eid
    2. journal_entries WHERE id = :eid

On a store without multi-statement transactions the same ordered sequence
still never leaves a surviving row pointing at a deleted parent; a partial
failure can only orphan children, and re-running the sequence finishes the
job because every step is a no-op once its rows are gone.
"""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Delete

from journal_api.exceptions import BlobStorageError, DatabaseError
from journal_api.models.journal import Attachment, JournalEntry
from journal_api.models.user import OAuthToken, Session, User
from journal_api.services.blob_base import BlobStore

logger = logging.getLogger(__name__)

CascadeStep = Tuple[str, Callable[[str], Delete]]


def _delete_user_attachments(user_id: str) -> Delete:
    owned_entries = select(JournalEntry.id).where(JournalEntry.user_id == user_id)
    return delete(Attachment).where(Attachment.journal_entry_id.in_(owned_entries))


def _delete_user_entries(user_id: str) -> Delete:
    return delete(JournalEntry).where(JournalEntry.user_id == user_id)


def _delete_user_oauth_tokens(user_id: str) -> Delete:
    return delete(OAuthToken).where(OAuthToken.user_id == user_id)


def _delete_user_sessions(user_id: str) -> Delete:
    return delete(Session).where(Session.user_id == user_id)


def _delete_user_row(user_id: str) -> Delete:
    return delete(User).where(User.id == user_id)


def _delete_entry_attachments(entry_id: str) -> Delete:
    return delete(Attachment).where(Attachment.journal_entry_id == entry_id)


def _delete_entry_row(entry_id: str) -> Delete:
    return delete(JournalEntry).where(JournalEntry.id == entry_id)


USER_CASCADE_STEPS: Sequence[CascadeStep] = (
    ("attachments", _delete_user_attachments),
    ("journal_entries", _delete_user_entries),
    ("oauth_tokens", _delete_user_oauth_tokens),
    ("sessions", _delete_user_sessions),
    ("users", _delete_user_row),
)

ENTRY_CASCADE_STEPS: Sequence[CascadeStep] = (
    ("attachments", _delete_entry_attachments),
    ("journal_entries", _delete_entry_row),
)


class CascadeService:
    """
    Executes cascade step sequences as one atomic unit.

    Stateless; every call receives the request's session and blob store.
    """

    async def _run_steps(
        self,
        db: AsyncSession,
        steps: Sequence[CascadeStep],
        target_id: str,
    ) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        table = "commit"
        try:
            for table, build in steps:
                statement = build(target_id).execution_options(synchronize_session=False)
                result = await db.execute(statement)
                counts[table] = result.rowcount
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Cascade delete for %s failed at %s: %s",
                target_id,
                table,
                str(e),
            )
            raise DatabaseError(
                context={"target_id": target_id, "failed_step": table},
            )
        return counts

    async def _storage_keys(self, db: AsyncSession, query) -> List[str]:
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Could not list attachment keys: %s", str(e))
            raise DatabaseError()
        return list(result.scalars().all())

    async def reclaim_blobs(self, store: BlobStore, keys: List[str]) -> int:
        """
        Deletes blob keys one by one after their rows are gone.

        Failures are logged and skipped; the metadata is already consistent
        and an orphaned blob is only wasted storage.
        """
        removed = 0
        for key in keys:
            try:
                await store.delete(key)
                removed += 1
            except BlobStorageError as e:
                logger.warning("Could not reclaim blob %s: %s", key, e.message)
        return removed

    async def delete_user(
        self, db: AsyncSession, store: BlobStore, user_id: str
    ) -> Dict[str, int]:
        """
        Delete a user and everything they own.

        Returns:
            Rows deleted per table, keyed by table name.

        Raises:
            DatabaseError: a step failed; nothing was deleted.
        """
        keys = await self._storage_keys(
            db,
            select(Attachment.storage_key)
            .join(JournalEntry, JournalEntry.id == Attachment.journal_entry_id)
            .where(JournalEntry.user_id == user_id),
        )
        counts = await self._run_steps(db, USER_CASCADE_STEPS, user_id)
        reclaimed = await self.reclaim_blobs(store, keys)
        logger.info(
            "Deleted user %s: %s, %d/%d blobs reclaimed",
            user_id,
            counts,
            reclaimed,
            len(keys),
        )
        return counts

    async def delete_entry(
        self, db: AsyncSession, store: BlobStore, entry_id: str
    ) -> Dict[str, int]:
        """
        Delete one journal entry and its attachments.

        Ownership must already have been checked by the caller.
        """
        keys = await self._storage_keys(
            db,
            select(Attachment.storage_key).where(Attachment.journal_entry_id == entry_id),
        )
        counts = await self._run_steps(db, ENTRY_CASCADE_STEPS, entry_id)
        await self.reclaim_blobs(store, keys)
        return counts


cascade_service = CascadeService()
