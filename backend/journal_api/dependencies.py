"""
Journal API — Authorization Gate
=================================

What:  FastAPI dependencies enforcing each route's trust level.
How:   Routers declare `Depends(require_user)` or `Depends(require_admin)`;
       public routes declare nothing. The dependency resolves the caller
       through SessionResolver and then applies `check_trust`.

Trust levels (increasing strictness):
    PUBLIC  no identity required
    USER    a verified (bearer) session
    ADMIN   a verified session whose user row has is_admin = true, re-read
            from the store on every request; or an unsigned admin_session
            cookie while ALLOW_UNSIGNED_ADMIN_SESSION is enabled

Ordering rule: "not logged in" (401) is always decided before
"logged in but not allowed" (403).
"""

import enum
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.config import settings
from journal_api.database import get_db_session
from journal_api.exceptions import ForbiddenError, UnauthenticatedError
from journal_api.models.user import User
from journal_api.services.auth_base import AuthProvider, ResolvedIdentity
from journal_api.services.auth_service import get_auth_provider
from journal_api.services.session_resolver import (
    ResolvedSession,
    SessionResolver,
    UnsignedSession,
    VerifiedSession,
)


class TrustLevel(str, enum.Enum):
    PUBLIC = "public"
    USER = "user"
    ADMIN = "admin"


def check_trust(
    level: TrustLevel,
    session: Optional[ResolvedSession],
    fresh_is_admin: Optional[bool] = None,
    allow_unsigned_admin: bool = True,
) -> Optional[ResolvedIdentity]:
    """
    Decide whether `session` satisfies `level`.

    Args:
        level:                the route's required trust level
        session:              resolved session, or None for anonymous callers
        fresh_is_admin:       admin flag re-read from the store for the
                              session's user (None if the user row is gone)
        allow_unsigned_admin: policy for UnsignedSession on ADMIN routes

    Returns:
        The caller's identity (None for anonymous callers on PUBLIC routes).

    Raises:
        UnauthenticatedError: no acceptable session for this level.
        ForbiddenError:       verified session without admin rights.
    """
    if level is TrustLevel.PUBLIC:
        return session.identity if session is not None else None

    if session is None:
        raise UnauthenticatedError("Authentication required")

    if level is TrustLevel.USER:
        if not isinstance(session, VerifiedSession):
            raise UnauthenticatedError("Authentication required")
        return session.identity

    if isinstance(session, UnsignedSession):
        if allow_unsigned_admin:
            return session.identity
        raise UnauthenticatedError("Authentication required")

    if not fresh_is_admin:
        raise ForbiddenError("Admin access required")
    return ResolvedIdentity(
        id=session.identity.id,
        email=session.identity.email,
        name=session.identity.name,
        is_admin=True,
    )


def get_session_resolver(
    provider: AuthProvider = Depends(get_auth_provider),
) -> SessionResolver:
    return SessionResolver(provider)


async def require_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> ResolvedIdentity:
    """Gate for USER routes: journal/*, attachments/*, user/*."""
    session = await resolver.resolve_verified(db, request.headers)
    return check_trust(TrustLevel.USER, session)


async def require_admin(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> ResolvedIdentity:
    """
    Gate for ADMIN routes: /admin/users*.

    The admin_session cookie is consulted first; without it (or with the
    unsigned policy disabled) the bearer channel is resolved and the user's
    admin flag is re-read by id.
    """
    unsigned = resolver.resolve_unsigned(request.cookies)
    if unsigned is not None and settings.allow_unsigned_admin_session:
        return check_trust(TrustLevel.ADMIN, unsigned)

    try:
        session: Optional[ResolvedSession] = await resolver.resolve_verified(
            db, request.headers
        )
    except UnauthenticatedError:
        session = None
    if session is None:
        return check_trust(TrustLevel.ADMIN, None)

    user = await db.get(User, session.identity.id, populate_existing=True)
    return check_trust(
        TrustLevel.ADMIN,
        session,
        fresh_is_admin=user.is_admin if user is not None else None,
        allow_unsigned_admin=settings.allow_unsigned_admin_session,
    )
