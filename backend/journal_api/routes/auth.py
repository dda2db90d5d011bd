"""
Journal API — Auth Provider Routes
===================================

What:  Email/password sign-up and sign-in, sign-out, session introspection
       and password change.
Why:   These endpoints are the only way to obtain a verified (bearer)
       session. Everything else in the API only consumes sessions.
How:   Thin wrappers over the configured AuthProvider. Sign-up and sign-in
       return `{token, user}`; clients send the token back as
       `Authorization: Bearer <token>`.

Routes:
    POST /auth/sign-up/email      public
    POST /auth/sign-in/email      public
    POST /auth/sign-out           bearer
    GET  /auth/get-session        bearer
    POST /auth/change-password    bearer
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.database import get_db_session
from journal_api.dependencies import require_user
from journal_api.exceptions import UnauthenticatedError
from journal_api.schemas.common import ErrorResponse, MessageResponse
from journal_api.schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    SessionInfo,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserProfile,
)
from journal_api.services.auth_base import AuthProvider, ResolvedIdentity, extract_bearer_token
from journal_api.services.auth_service import get_auth_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _bearer_token(request: Request) -> str:
    token = extract_bearer_token(request.headers)
    if token is None:
        raise UnauthenticatedError("Authorization token required")
    return token


@router.post(
    "/sign-up/email",
    status_code=201,
    response_model=AuthResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create an account with email and password",
)
async def sign_up(
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db_session),
    provider: AuthProvider = Depends(get_auth_provider),
) -> AuthResponse:
    token, user = await provider.sign_up(db, body.email, body.name, body.password)
    return AuthResponse(token=token, user=UserProfile.model_validate(user))


@router.post(
    "/sign-in/email",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def sign_in(
    body: SignInRequest,
    db: AsyncSession = Depends(get_db_session),
    provider: AuthProvider = Depends(get_auth_provider),
) -> AuthResponse:
    token, user = await provider.sign_in(db, body.email, body.password)
    return AuthResponse(token=token, user=UserProfile.model_validate(user))


@router.post("/sign-out", response_model=MessageResponse, summary="End the current session")
async def sign_out(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    provider: AuthProvider = Depends(get_auth_provider),
) -> MessageResponse:
    await provider.sign_out(db, _bearer_token(request))
    return MessageResponse(message="Signed out successfully")


@router.get(
    "/get-session",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Describe the current session",
)
async def get_session(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    provider: AuthProvider = Depends(get_auth_provider),
) -> SessionResponse:
    found = await provider.get_session(db, _bearer_token(request))
    if found is None:
        raise UnauthenticatedError("Invalid or expired token")
    session, user = found
    return SessionResponse(
        session=SessionInfo.model_validate(session),
        user=UserProfile.model_validate(user),
    )


@router.post(
    "/change-password",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Change the signed-in user's password",
)
async def change_password(
    body: ChangePasswordRequest,
    user: ResolvedIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    provider: AuthProvider = Depends(get_auth_provider),
) -> MessageResponse:
    await provider.change_password(db, user.id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
