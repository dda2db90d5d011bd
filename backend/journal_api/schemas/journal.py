"""
Journal API — Journal Entry & Attachment Schemas
=================================================

Request bodies are validated before any handler logic runs; a body that
fails here never reaches the store.
"""

from datetime import datetime
from typing import List

from pydantic import Field

from journal_api.schemas.common import APIModel, Pagination


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class JournalEntryCreate(APIModel):
    """Body of POST /journal."""
    content: str = Field(min_length=1, description="Markdown content of the entry")


class JournalEntryUpdate(APIModel):
    """Body of PUT /journal/{id}. Content is replaced wholesale."""
    content: str = Field(min_length=1, description="New Markdown content")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class JournalEntryResponse(APIModel):
    """A single journal entry as returned to its owner."""
    id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime


class JournalEntryListResponse(APIModel):
    """Page of entries for GET /journal."""
    entries: List[JournalEntryResponse]
    pagination: Pagination


class JournalSearchResponse(JournalEntryListResponse):
    """Page of entries for GET /journal/search, echoing the query."""
    query: str


class AttachmentResponse(APIModel):
    """Attachment metadata returned after upload."""
    id: str
    journal_entry_id: str
    filename: str
    original_filename: str
    mime_type: str
    size: int
    storage_key: str
    created_at: datetime
