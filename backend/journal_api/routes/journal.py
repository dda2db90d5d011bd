"""
Journal API — Journal Entry Routes
===================================

What:  CRUD, listing and search over the caller's journal entries.
How:   Every handler depends on `require_user`; the resolved user id is the
       only owner filter ever passed to JournalService.
Who:   Called by the journal client apps with a bearer token.

Route order matters: /journal/search is registered before /journal/{entry_id}
so "search" is never captured as an entry id.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.database import get_db_session
from journal_api.dependencies import require_user
from journal_api.schemas.common import ErrorResponse, MessageResponse
from journal_api.schemas.journal import (
    JournalEntryCreate,
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalEntryUpdate,
    JournalSearchResponse,
)
from journal_api.services.auth_base import ResolvedIdentity
from journal_api.services.blob_base import BlobStore
from journal_api.services.file_service import get_blob_store
from journal_api.services.journal_service import journal_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/journal", tags=["Journal"])

_AUTH_RESPONSES = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=JournalEntryListResponse,
    responses=_AUTH_RESPONSES,
    summary="List journal entries",
)
async def list_entries(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=100, description="Entries per page (max 100)"),
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryListResponse:
    """Newest first; ties on created_at are broken by id."""
    return await journal_service.list_entries(db, user.id, page=page, limit=limit)


@router.post(
    "",
    status_code=201,
    response_model=JournalEntryResponse,
    responses={**_AUTH_RESPONSES, 400: {"model": ErrorResponse}},
    summary="Create a journal entry",
)
async def create_entry(
    body: JournalEntryCreate,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryResponse:
    return await journal_service.create_entry(db, user.id, body.content)


@router.get(
    "/search",
    response_model=JournalSearchResponse,
    responses={**_AUTH_RESPONSES, 400: {"model": ErrorResponse}},
    summary="Search journal entries by substring",
)
async def search_entries(
    q: str = Query(default="", description="Substring to look for in entry content"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> JournalSearchResponse:
    return await journal_service.search_entries(db, user.id, q, page=page, limit=limit)


@router.get(
    "/{entry_id}",
    response_model=JournalEntryResponse,
    responses={**_AUTH_RESPONSES, 404: {"model": ErrorResponse}},
    summary="Get a journal entry",
)
async def get_entry(
    entry_id: str,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryResponse:
    return await journal_service.get_entry(db, user.id, entry_id)


@router.put(
    "/{entry_id}",
    response_model=JournalEntryResponse,
    responses={**_AUTH_RESPONSES, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Replace a journal entry's content",
)
async def update_entry(
    entry_id: str,
    body: JournalEntryUpdate,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryResponse:
    return await journal_service.update_entry(db, user.id, entry_id, body.content)


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    responses={**_AUTH_RESPONSES, 404: {"model": ErrorResponse}},
    summary="Delete a journal entry and its attachments",
)
async def delete_entry(
    entry_id: str,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    store: BlobStore = Depends(get_blob_store),
) -> MessageResponse:
    return await journal_service.delete_entry(db, store, user.id, entry_id)
