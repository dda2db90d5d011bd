"""
Journal API — Liveness and Health Routes
=========================================

What:  GET / (liveness banner) and GET /health (dependency probe).
Why:   Load balancers and container health checks need a cheap way to tell
       whether this instance can serve traffic.
How:   /health runs `SELECT 1` against the database and asks the blob store
       whether it is writable.

Status levels:
    healthy    database and storage both fine             (HTTP 200)
    degraded   database fine, storage unavailable         (HTTP 200)
    unhealthy  database unreachable                       (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from journal_api import __version__
from journal_api.database import engine
from journal_api.schemas.common import HealthResponse, MessageResponse
from journal_api.services.blob_base import BlobStore
from journal_api.services.file_service import get_blob_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="Liveness banner")
async def root() -> MessageResponse:
    return MessageResponse(message="Journal API is running")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    store: BlobStore = Depends(get_blob_store),
) -> HealthResponse:
    """Lightweight probes only; never touches user data."""
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await store.health_check():
        storage_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"
        logger.warning("Health check: blob storage unavailable")

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
