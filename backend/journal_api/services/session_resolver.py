"""
Journal API — Session Resolver
===============================

What:  Turns an inbound request's credentials into a resolved session.
Why:   Two independent credential channels exist and must never be merged:

    ┌──────────────────────┬───────────────────────────┬──────────────────┐
    │ Channel              │ Credential                │ Result           │
    ├──────────────────────┼───────────────────────────┼──────────────────┤
    │ (a) verified         │ Authorization: Bearer ... │ VerifiedSession  │
    │ (b) unsigned (admin) │ admin_session cookie      │ UnsignedSession  │
    └──────────────────────┴───────────────────────────┴──────────────────┘

    Channel (a) is checked by the auth provider against the sessions table.
    Channel (b) is base64(JSON {userId, email, name}) written by
    POST /admin/auth. It carries no signature: anything that decodes to the
    right shape is accepted. It is a weaker trust channel and is kept
    separate so the gate can decide what it may unlock.

How:   Resolution is read-only. Channel (a) costs one store lookup through
       the provider; channel (b) costs none.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.exceptions import UnauthenticatedError
from journal_api.services.auth_base import AuthProvider, ResolvedIdentity, extract_bearer_token

logger = logging.getLogger(__name__)

ADMIN_SESSION_COOKIE = "admin_session"


@dataclass(frozen=True)
class VerifiedSession:
    """Identity validated by the auth provider (bearer token channel)."""
    identity: ResolvedIdentity


@dataclass(frozen=True)
class UnsignedSession:
    """Identity decoded from the unsigned admin_session cookie."""
    identity: ResolvedIdentity


ResolvedSession = Union[VerifiedSession, UnsignedSession]


def encode_admin_session(user_id: str, email: str, name: str) -> str:
    """Builds the admin_session cookie value: base64 of a compact JSON object."""
    payload = json.dumps({"userId": user_id, "email": email, "name": name})
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_admin_session(value: str) -> Optional[ResolvedIdentity]:
    """
    Decodes an admin_session cookie value.

    Returns None for anything that is not base64-encoded JSON with a string
    `userId`. No integrity check is possible: the payload is unsigned.
    """
    try:
        payload = json.loads(base64.b64decode(value).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id:
        return None
    return ResolvedIdentity(
        id=user_id,
        email=str(payload.get("email", "")),
        name=str(payload.get("name", "")),
        is_admin=None,
    )


class SessionResolver:
    """
    Resolves either channel for a single request.

    Usage:
        resolver = SessionResolver(auth_provider)
        session = await resolver.resolve_verified(db, request.headers)
        admin_cookie = resolver.resolve_unsigned(request.cookies)
    """

    def __init__(self, provider: AuthProvider):
        self.provider = provider

    async def resolve_verified(
        self, db: AsyncSession, headers: Mapping[str, str]
    ) -> VerifiedSession:
        """
        Resolve channel (a) or fail.

        Raises:
            UnauthenticatedError: no bearer token, or the token does not map
                to a live session.
        """
        if extract_bearer_token(headers) is None:
            raise UnauthenticatedError("Authorization token required")
        identity = await self.provider.resolve_session(db, headers)
        if identity is None:
            raise UnauthenticatedError("Invalid or expired token")
        return VerifiedSession(identity=identity)

    def resolve_unsigned(self, cookies: Mapping[str, str]) -> Optional[UnsignedSession]:
        """Resolve channel (b). Returns None when the cookie is absent or malformed."""
        raw = cookies.get(ADMIN_SESSION_COOKIE)
        if not raw:
            return None
        identity = decode_admin_session(raw)
        if identity is None:
            logger.info("Ignoring malformed admin_session cookie")
            return None
        return UnsignedSession(identity=identity)
