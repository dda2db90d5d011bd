"""
Journal API — User Routes
==========================

What:  The signed-in user's own profile and account.
How:   All routes require a verified bearer session. Password and
       verification flows belong to the auth provider; the endpoints here
       only point clients at it.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.database import get_db_session
from journal_api.dependencies import require_user
from journal_api.schemas.common import ErrorResponse, MessageResponse
from journal_api.schemas.user import (
    ChangePasswordRequest,
    PasswordResetRequest,
    ProfileUpdate,
    UserProfile,
    VerificationResponse,
)
from journal_api.services.auth_base import ResolvedIdentity
from journal_api.services.blob_base import BlobStore
from journal_api.services.file_service import get_blob_store
from journal_api.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/user",
    tags=["User"],
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
)


@router.get("/profile", response_model=UserProfile, summary="Get own profile")
async def get_profile(
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await user_service.get_profile(db, user.id)


@router.put(
    "/profile",
    response_model=UserProfile,
    responses={409: {"description": "Email already in use", "model": ErrorResponse}},
    summary="Update own profile",
)
async def update_profile(
    body: ProfileUpdate,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    """Changing the email resets emailVerified to false."""
    return await user_service.update_profile(db, user.id, body)


@router.delete(
    "/account",
    response_model=MessageResponse,
    summary="Delete own account and all owned data",
)
async def delete_account(
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    store: BlobStore = Depends(get_blob_store),
) -> MessageResponse:
    logger.info("Account deletion requested by %s", user.id)
    return await user_service.delete_account(db, store, user.id)


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Points to the auth provider's change-password endpoint",
)
async def change_password(
    body: ChangePasswordRequest,
    user: ResolvedIdentity = Depends(require_user),
) -> MessageResponse:
    return MessageResponse(message="Use /auth/change-password endpoint with proper session")


@router.post(
    "/request-password-reset",
    response_model=MessageResponse,
    summary="Request a password reset email",
)
async def request_password_reset(
    body: PasswordResetRequest,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Same answer whether or not the address has an account."""
    return await user_service.request_password_reset(db, body.email)


@router.post(
    "/resend-verification",
    response_model=VerificationResponse,
    summary="Resend the email verification message",
)
async def resend_verification(
    user: ResolvedIdentity = Depends(require_user),
) -> VerificationResponse:
    return user_service.resend_verification(user.email)
