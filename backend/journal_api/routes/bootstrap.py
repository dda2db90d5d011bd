"""
Journal API — Bootstrap Admin Route
====================================

What:  POST /bootstrap-admin creates the first administrator.
Why:   A fresh deployment has no admin, so nobody could sign in to the
       panel to create one.
How:   Public, but self-gating: it succeeds only while zero admins exist
       and answers 409 on every later call.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.database import get_db_session
from journal_api.schemas.common import ErrorResponse
from journal_api.schemas.user import AdminUser, BootstrapAdminRequest
from journal_api.services.user_service import user_service

router = APIRouter(tags=["Admin"])


@router.post(
    "/bootstrap-admin",
    status_code=201,
    response_model=AdminUser,
    responses={409: {"description": "An admin already exists", "model": ErrorResponse}},
    summary="Create the first admin user",
)
async def bootstrap_admin(
    body: BootstrapAdminRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AdminUser:
    return await user_service.bootstrap_admin(db, body.email, body.name, body.password)
