"""
Journal API — Database Auth Provider
=====================================

What:  AuthProvider backed by the `users` and `sessions` tables.
How:   Passwords are hashed with passlib (pbkdf2_sha256). Sign-in mints an
       opaque URL-safe token, stores it in `sessions` with an expiry of
       SESSION_TTL_SECONDS, and returns it to the client as a bearer token.
       Resolution is one joined SELECT over sessions and users that ignores
       expired rows.
"""

import logging
import secrets
from datetime import timedelta
from typing import Mapping, Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.config import settings
from journal_api.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    UnauthenticatedError,
)
from journal_api.models.user import Session, User
from journal_api.services.auth_base import AuthProvider, ResolvedIdentity, extract_bearer_token
from journal_api.utils import utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


class DatabaseAuthProvider(AuthProvider):
    """Issues and validates bearer sessions stored in the application database."""

    async def _open_session(self, db: AsyncSession, user: User) -> str:
        now = utcnow()
        token = secrets.token_urlsafe(32)
        db.add(
            Session(
                token=token,
                user_id=user.id,
                expires_at=now + timedelta(seconds=settings.session_ttl_seconds),
                created_at=now,
                updated_at=now,
            )
        )
        await db.flush()
        return token

    async def _find_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_session(
        self, db: AsyncSession, token: str
    ) -> Optional[Tuple[Session, User]]:
        try:
            result = await db.execute(
                select(Session, User)
                .join(User, User.id == Session.user_id)
                .where(Session.token == token, Session.expires_at > utcnow())
            )
            row = result.first()
        except SQLAlchemyError as e:
            logger.error("Session lookup failed: %s", str(e))
            raise DatabaseError(context={"operation": "get_session"})
        if row is None:
            return None
        return row[0], row[1]

    async def resolve_session(
        self, db: AsyncSession, headers: Mapping[str, str]
    ) -> Optional[ResolvedIdentity]:
        token = extract_bearer_token(headers)
        if token is None:
            return None
        found = await self.get_session(db, token)
        if found is None:
            return None
        _, user = found
        return ResolvedIdentity(
            id=user.id, email=user.email, name=user.name, is_admin=user.is_admin
        )

    async def sign_up(
        self, db: AsyncSession, email: str, name: str, password: str
    ) -> Tuple[str, User]:
        try:
            if await self._find_user_by_email(db, email) is not None:
                raise ConflictError("User with this email already exists")
            now = utcnow()
            user = User(
                email=email,
                name=name,
                password_hash=hash_password(password),
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            await db.flush()
            token = await self._open_session(db, user)
        except IntegrityError:
            raise ConflictError("User with this email already exists")
        except SQLAlchemyError as e:
            logger.error("Sign-up failed: %s", str(e))
            raise DatabaseError(context={"operation": "sign_up"})
        logger.info("User signed up: %s", user.id)
        return token, user

    async def sign_in(
        self, db: AsyncSession, email: str, password: str
    ) -> Tuple[str, User]:
        try:
            user = await self._find_user_by_email(db, email)
            if (
                user is None
                or user.password_hash is None
                or not verify_password(password, user.password_hash)
            ):
                raise UnauthenticatedError("Invalid email or password")
            token = await self._open_session(db, user)
        except SQLAlchemyError as e:
            logger.error("Sign-in failed: %s", str(e))
            raise DatabaseError(context={"operation": "sign_in"})
        logger.info("User signed in: %s", user.id)
        return token, user

    async def sign_out(self, db: AsyncSession, token: str) -> None:
        try:
            await db.execute(delete(Session).where(Session.token == token))
        except SQLAlchemyError as e:
            logger.error("Sign-out failed: %s", str(e))
            raise DatabaseError(context={"operation": "sign_out"})

    async def change_password(
        self, db: AsyncSession, user_id: str, current_password: str, new_password: str
    ) -> None:
        try:
            user = await db.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found", resource_id=user_id)
            if user.password_hash is None or not verify_password(
                current_password, user.password_hash
            ):
                raise UnauthenticatedError("Current password is incorrect")
            user.password_hash = hash_password(new_password)
            user.updated_at = utcnow()
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Password change failed for %s: %s", user_id, str(e))
            raise DatabaseError(context={"operation": "change_password"})
        logger.info("Password changed for user %s", user_id)


# ── Singleton Instance ────────────────────────────────────────────────────
# Stateless: every call receives the request's database session.
auth_provider = DatabaseAuthProvider()


def get_auth_provider() -> AuthProvider:
    """FastAPI dependency returning the configured auth provider."""
    return auth_provider
