"""
Journal API — Attachment Routes
================================

What:  Upload files to an entry, download them, delete them.
Why:   The download route is an authenticated proxy: blobs are never
       exposed directly, so ownership is checked on every read.
How:   Thin handlers over AttachmentService; the multipart field is `file`.

Routes:
    POST   /journal/{journal_id}/attachments   (multipart upload)
    GET    /attachments/{attachment_id}        (bytes, as a download)
    DELETE /attachments/{attachment_id}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.database import get_db_session
from journal_api.dependencies import require_user
from journal_api.schemas.common import ErrorResponse, MessageResponse
from journal_api.schemas.journal import AttachmentResponse
from journal_api.services.attachment_service import attachment_service, content_disposition
from journal_api.services.auth_base import ResolvedIdentity
from journal_api.services.blob_base import BlobStore
from journal_api.services.file_service import get_blob_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attachments"])


@router.post(
    "/journal/{journal_id}/attachments",
    status_code=201,
    response_model=AttachmentResponse,
    responses={
        400: {"description": "Missing file, disallowed type or too large", "model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"description": "Journal entry not found", "model": ErrorResponse},
        500: {"description": "Failed to upload file", "model": ErrorResponse},
    },
    summary="Attach a file to a journal entry",
)
async def upload_attachment(
    journal_id: str,
    file: Optional[UploadFile] = File(default=None, description="File to attach (max 10 MiB)"),
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    store: BlobStore = Depends(get_blob_store),
) -> AttachmentResponse:
    try:
        return await attachment_service.upload(db, store, user.id, journal_id, file)
    finally:
        if file is not None:
            await file.close()


@router.get(
    "/attachments/{attachment_id}",
    response_class=Response,
    responses={
        200: {"description": "Attachment bytes"},
        401: {"model": ErrorResponse},
        404: {"description": "Attachment or stored file not found", "model": ErrorResponse},
    },
    summary="Download an attachment",
)
async def get_attachment(
    attachment_id: str,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    store: BlobStore = Depends(get_blob_store),
) -> Response:
    """
    Caching:
        private, max-age=3600. Attachments never change after upload, but
        they are personal data and must stay out of shared caches.
    """
    download = await attachment_service.fetch(db, store, user.id, attachment_id)
    return Response(
        content=download.content,
        media_type=download.mime_type,
        headers={
            "Content-Disposition": content_disposition(download.original_filename),
            "Cache-Control": "private, max-age=3600",
        },
    )


@router.delete(
    "/attachments/{attachment_id}",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete an attachment",
)
async def delete_attachment(
    attachment_id: str,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    store: BlobStore = Depends(get_blob_store),
) -> MessageResponse:
    return await attachment_service.delete(db, store, user.id, attachment_id)
