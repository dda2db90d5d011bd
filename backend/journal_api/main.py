"""
Journal API — FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error mapping
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Served by uvicorn (`uvicorn journal_api.main:app`); tests import
       `app` and drive it through httpx's ASGITransport.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌────────────┐ ┌────────────┐ ┌──────┐ ┌──────┐             │
    │  │ Request ID │→│ Access Log │→│ GZip │→│ CORS │             │
    │  └────────────┘ └────────────┘ └──────┘ └──────┘             │
    │                                                              │
    │  Routes (trust level):                                       │
    │  /, /health, /auth/*, /bootstrap-admin,                      │
    │  /admin/login, /admin/auth, /admin/logout      public        │
    │  /journal/*, /attachments/*, /user/*           user          │
    │  /admin, /admin/users*                         admin         │
    │                                                              │
    │  Exception Handlers:                                         │
    │  JournalAPIError → its status_code                           │
    │  RequestValidationError → 400   HTTPException → its status   │
    │  Exception → 500                                             │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration warnings, storage directory check
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from journal_api import __version__
from journal_api.config import settings
from journal_api.database import dispose_engine
from journal_api.exceptions import JournalAPIError
from journal_api.middleware.logging import RequestLoggingMiddleware
from journal_api.middleware.request_id import RequestIDMiddleware, request_id_var
from journal_api.routes import admin, attachments, auth, bootstrap, health, journal, user
from journal_api.services.file_service import blob_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    Third-party loggers that are chatty at INFO (uvicorn's access log, the
    SQLAlchemy engine, httpx in tests) are raised to WARNING; our own
    access log replaces uvicorn's.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Journal API %s starting up...", __version__)

    # Unsafe settings are reported, not fatal: the service still answers
    # health checks so the problem is visible from outside.
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("Configuration warning: %s", str(e))

    if await blob_store.health_check():
        logger.info("Blob storage: %s", blob_store.storage_root)
    else:
        logger.error("Blob storage is not writable: %s", blob_store.storage_root)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Journal API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(message: str, **extra: Any) -> Dict[str, Any]:
    """Uniform error payload: {"error": ..., "request_id": ..., **safe extras}."""
    return {"error": message, "request_id": request_id_var.get(""), **extra}


def format_validation_error(exc: RequestValidationError) -> str:
    """
    Collapses pydantic's error list into one readable sentence.

    Example:
        body.content: String should have at least 1 character
    """
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

    Handler hierarchy:
        JournalAPIError         → exc.status_code (400/401/403/404/409/500)
        RequestValidationError  → 400 (malformed body, query or path)
        HTTPException           → its own status (unknown route, bad method)
        Exception (fallback)    → 500, stack trace logged server-side only

    Debug `context` is logged; only `details` (allowedTypes, maxSize) is
    ever merged into the response.
    """

    @app.exception_handler(JournalAPIError)
    async def handle_journal_api_error(request: Request, exc: JournalAPIError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
        else:
            logger.info(
                "[%s] %s on %s %s: %s",
                rid, type(exc).__name__, request.method, request.url.path, exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, **exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = format_validation_error(exc)
        logger.info("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("An unexpected error occurred. Please try again later."),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Journal API",
        description=(
            "Journaling backend: user-scoped Markdown entries with file "
            "attachments, email/password sessions and a small admin panel."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS → routes.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(bootstrap.router)
    app.include_router(admin.router)
    app.include_router(journal.router)
    app.include_router(attachments.router)
    app.include_router(user.router)

    return app


app = create_app()
