"""
Journal API — Admin Panel Routes
=================================

What:  The browser-facing admin panel (login page, dashboard) and the JSON
       endpoints it calls to manage users.
Why:   User administration needs a surface that works from a plain browser
       session, without the bearer tokens the journal clients use.
How:   POST /admin/auth checks credentials and writes the admin_session
       cookie (base64 JSON, unsigned). The JSON endpoints depend on
       `require_admin`, which accepts that cookie or a bearer session whose
       user is currently an admin.

Routes:
    GET    /admin/login          public, HTML
    POST   /admin/auth           public
    POST   /admin/logout         public
    GET    /admin                HTML; redirects to /admin/login when the
                                 caller is not an admin
    GET    /admin/users          admin
    POST   /admin/users          admin
    DELETE /admin/users/{id}     admin
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.config import settings
from journal_api.database import get_db_session
from journal_api.dependencies import get_session_resolver, require_admin
from journal_api.exceptions import ForbiddenError, UnauthenticatedError
from journal_api.schemas.common import ErrorResponse, MessageResponse
from journal_api.schemas.user import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminUser,
    AdminUserCreate,
)
from journal_api.services.auth_base import ResolvedIdentity
from journal_api.services.blob_base import BlobStore
from journal_api.services.file_service import get_blob_store
from journal_api.services.session_resolver import (
    ADMIN_SESSION_COOKIE,
    SessionResolver,
    encode_admin_session,
)
from journal_api.services.user_service import user_service
from journal_api.templates import DASHBOARD_PAGE, LOGIN_PAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

_ADMIN_RESPONSES = {
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Signed in without admin rights", "model": ErrorResponse},
}


# ── Panel session ─────────────────────────────────────────────────────────


@router.get("/login", response_class=HTMLResponse, summary="Admin login page")
async def login_page() -> HTMLResponse:
    return HTMLResponse(LOGIN_PAGE)


@router.post(
    "/auth",
    response_model=AdminLoginResponse,
    responses={
        400: {"description": "Password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials or not an admin", "model": ErrorResponse},
    },
    summary="Sign in to the admin panel",
)
async def admin_auth(
    body: AdminLoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AdminLoginResponse:
    admin = await user_service.authenticate_admin(db, body.email, body.password)
    token = encode_admin_session(admin.id, admin.email, admin.name)
    response.headers["Set-Cookie"] = (
        f"{ADMIN_SESSION_COOKIE}={token}; HttpOnly; Path=/; "
        f"Max-Age={settings.admin_session_max_age}"
    )
    return AdminLoginResponse(user=admin)


@router.post("/logout", response_model=MessageResponse, summary="Sign out of the admin panel")
async def admin_logout(response: Response) -> MessageResponse:
    response.headers["Set-Cookie"] = f"{ADMIN_SESSION_COOKIE}=; HttpOnly; Path=/; Max-Age=0"
    return MessageResponse(message="Logged out successfully")


@router.get("", response_class=HTMLResponse, summary="Admin dashboard")
async def dashboard(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Response:
    """Serves the dashboard, or sends the browser to the login page (303)."""
    try:
        await require_admin(request, db, resolver)
    except (UnauthenticatedError, ForbiddenError):
        return RedirectResponse("/admin/login", status_code=303)
    return HTMLResponse(DASHBOARD_PAGE)


# ── User management ───────────────────────────────────────────────────────


@router.get(
    "/users",
    response_model=List[AdminUser],
    responses=_ADMIN_RESPONSES,
    summary="List all users, newest first",
)
async def list_users(
    admin: ResolvedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[AdminUser]:
    return await user_service.list_users(db)


@router.post(
    "/users",
    status_code=201,
    response_model=AdminUser,
    responses={**_ADMIN_RESPONSES, 409: {"description": "Email already used", "model": ErrorResponse}},
    summary="Create a pre-verified user",
)
async def create_user(
    body: AdminUserCreate,
    admin: ResolvedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminUser:
    return await user_service.create_user(db, body.email, body.name, body.is_admin)


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    responses={**_ADMIN_RESPONSES, 404: {"description": "User not found", "model": ErrorResponse}},
    summary="Delete a user and everything they own",
)
async def delete_user(
    user_id: str,
    admin: ResolvedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    store: BlobStore = Depends(get_blob_store),
) -> MessageResponse:
    logger.info("Admin %s deleting user %s", admin.id, user_id)
    return await user_service.delete_user(db, store, user_id)
