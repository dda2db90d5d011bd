"""
Journal API — Abstract Auth Provider Interface
===============================================

What:  Contract for the component that owns passwords and bearer sessions.
Why:   The rest of the backend only needs "who is calling?". Keeping the
       provider behind an interface lets the in-repo database provider be
       replaced by a hosted identity service without touching the routes.
How:   Concrete providers implement resolve_session() plus the sign-up /
       sign-in / sign-out / change-password flows exposed under /auth.
Who:   SessionResolver (resolve_session) and routes/auth.py (everything else).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.models.user import Session, User


@dataclass(frozen=True)
class ResolvedIdentity:
    """
    The caller as seen by the authorization gate.

    `is_admin` is None when the identity came from a channel that does not
    carry a trustworthy admin flag (the unsigned admin cookie).
    """

    id: str
    email: str
    name: str
    is_admin: Optional[bool] = None


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """
    Returns the token from an `Authorization: Bearer <token>` header.

    Returns None when the header is absent, uses another scheme, or carries
    an empty token.
    """
    authorization = headers.get("authorization") or headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class AuthProvider(ABC):
    """
    Abstract identity provider.

    Contract:
        - resolve_session() never mutates state and performs at most one
          store lookup.
        - Credential problems raise UnauthenticatedError; duplicate accounts
          raise ConflictError; store failures raise DatabaseError.
        - Plain-text passwords and tokens are never logged.

    Implementations:
        - DatabaseAuthProvider: passwords hashed with passlib, opaque tokens
          stored in the `sessions` table (auth_service.py)
    """

    @abstractmethod
    async def resolve_session(
        self, db: AsyncSession, headers: Mapping[str, str]
    ) -> Optional[ResolvedIdentity]:
        """Return the identity behind the request's bearer token, or None."""
        ...

    @abstractmethod
    async def get_session(
        self, db: AsyncSession, token: str
    ) -> Optional[Tuple[Session, User]]:
        """Return the live session row and its user for `token`, or None."""
        ...

    @abstractmethod
    async def sign_up(
        self, db: AsyncSession, email: str, name: str, password: str
    ) -> Tuple[str, User]:
        """Create an account and open a session. Returns (token, user)."""
        ...

    @abstractmethod
    async def sign_in(
        self, db: AsyncSession, email: str, password: str
    ) -> Tuple[str, User]:
        """Verify credentials and open a session. Returns (token, user)."""
        ...

    @abstractmethod
    async def sign_out(self, db: AsyncSession, token: str) -> None:
        """Destroy the session identified by `token` (idempotent)."""
        ...

    @abstractmethod
    async def change_password(
        self, db: AsyncSession, user_id: str, current_password: str, new_password: str
    ) -> None:
        """Replace the user's password after verifying the current one."""
        ...
