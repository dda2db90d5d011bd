"""
Journal API — User Service
===========================

What:  Profile management for signed-in users plus user administration
       (listing, creation, deletion, bootstrap of the first admin and the
       admin panel login).
Why:   Both audiences operate on the same `users` table; keeping the rules
       in one place guarantees the same email uniqueness and deletion
       semantics regardless of who triggers them.
How:   Plain query-then-write operations on an AsyncSession. Deletions go
       through CascadeService so every dependent row is removed first.
Who:   Called by routes/user.py, routes/admin.py and routes/bootstrap.py.

Bootstrap gate:
    SELECT count(*) FROM users WHERE is_admin
        > 0  → ConflictError("Admin user already exists")
        = 0  → INSERT admin (pre-verified)
    Two simultaneous first calls can both see zero admins; the unique
    index on users.email stops duplicates of the same address only, and
    a lost race there surfaces as ConflictError too.
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from journal_api.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from journal_api.models.user import User
from journal_api.schemas.common import MessageResponse
from journal_api.schemas.user import (
    AdminIdentity,
    AdminUser,
    ProfileUpdate,
    UserProfile,
    VerificationResponse,
)
from journal_api.services.auth_service import hash_password, verify_password
from journal_api.services.blob_base import BlobStore
from journal_api.services.cascade_service import cascade_service
from journal_api.utils import utcnow

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
DUPLICATE_EMAIL = "User with this email already exists"
INVALID_ADMIN_CREDENTIALS = "Invalid credentials or insufficient permissions"
PASSWORD_RESET_MESSAGE = "Password reset email sent if account exists"


class UserService:
    """
    Business logic for users.

    Error Handling Strategy:
        Domain errors (NotFound, Conflict, ...) propagate unchanged;
        SQLAlchemy failures are logged and wrapped in DatabaseError.
    """

    async def _get_user(self, db: AsyncSession, user_id: str) -> User:
        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading user %s: %s", user_id, str(e))
            raise DatabaseError(message="Could not retrieve the user.")
        if user is None:
            raise NotFoundError(USER_NOT_FOUND, resource_id=user_id)
        return user

    async def _email_taken(
        self, db: AsyncSession, email: str, exclude_id: Optional[str] = None
    ) -> bool:
        query = select(User.id).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await db.execute(query)
        return result.first() is not None

    # ── Profile (USER trust) ──────────────────────────────────────────────

    async def get_profile(self, db: AsyncSession, user_id: str) -> UserProfile:
        user = await self._get_user(db, user_id)
        return UserProfile.model_validate(user)

    async def update_profile(
        self, db: AsyncSession, user_id: str, update: ProfileUpdate
    ) -> UserProfile:
        """
        Apply a partial profile update.

        An email change marks the address unverified. Moving to an address
        that already belongs to another user raises ConflictError.
        """
        user = await self._get_user(db, user_id)
        try:
            if update.name:
                user.name = update.name
            if update.email and update.email != user.email:
                if await self._email_taken(db, update.email, exclude_id=user_id):
                    raise ConflictError(DUPLICATE_EMAIL)
                user.email = update.email
                user.email_verified = False
            user.updated_at = utcnow()
            await db.flush()
        except IntegrityError:
            raise ConflictError(DUPLICATE_EMAIL)
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", user_id, str(e))
            raise DatabaseError(message="Failed to update profile")
        return UserProfile.model_validate(user)

    async def delete_account(
        self, db: AsyncSession, store: BlobStore, user_id: str
    ) -> MessageResponse:
        await cascade_service.delete_user(db, store, user_id)
        return MessageResponse(message="Account deleted successfully")

    async def request_password_reset(self, db: AsyncSession, email: str) -> MessageResponse:
        """
        Always returns the same message so callers cannot probe which
        addresses have accounts. Lookup failures are logged and hidden.
        """
        try:
            result = await db.execute(select(User.id).where(User.email == email))
            found = result.first() is not None
        except SQLAlchemyError as e:
            logger.error("Password reset lookup failed: %s", str(e))
            return MessageResponse(message=PASSWORD_RESET_MESSAGE)
        if found:
            logger.info("Password reset requested for an existing account")
        return MessageResponse(message=PASSWORD_RESET_MESSAGE)

    def resend_verification(self, email: str) -> VerificationResponse:
        return VerificationResponse(
            message="Use /auth/send-verification-email endpoint for email verification",
            email=email,
        )

    # ── Administration (ADMIN trust) ──────────────────────────────────────

    async def list_users(self, db: AsyncSession) -> List[AdminUser]:
        """All users, newest first."""
        try:
            result = await db.execute(
                select(User).order_by(desc(User.created_at), desc(User.id))
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e))
            raise DatabaseError(message="Could not retrieve users.")
        return [AdminUser.model_validate(user) for user in result.scalars().all()]

    async def _insert_user(
        self,
        db: AsyncSession,
        email: str,
        name: str,
        is_admin: bool,
        password: Optional[str] = None,
    ) -> User:
        if await self._email_taken(db, email):
            raise ConflictError(DUPLICATE_EMAIL)
        now = utcnow()
        user = User(
            email=email,
            name=name,
            email_verified=True,
            is_admin=is_admin,
            password_hash=hash_password(password) if password else None,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same email.
            raise ConflictError(DUPLICATE_EMAIL)
        return user

    async def create_user(
        self, db: AsyncSession, email: str, name: str, is_admin: bool = False
    ) -> AdminUser:
        """
        Create a pre-verified user without a password.

        The account has no password hash, so email sign-in rejects it and
        sign-up answers 409 for the taken address: it cannot obtain a bearer
        session. If flagged admin it can still use the panel, where
        `authenticate_admin` accepts any non-empty password for hashless
        accounts.
        """
        try:
            user = await self._insert_user(db, email, name, is_admin)
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e))
            raise DatabaseError(message="Failed to create user")
        logger.info("User created by admin: %s (admin=%s)", user.id, is_admin)
        return AdminUser.model_validate(user)

    async def delete_user(
        self, db: AsyncSession, store: BlobStore, user_id: str
    ) -> MessageResponse:
        await self._get_user(db, user_id)
        await cascade_service.delete_user(db, store, user_id)
        return MessageResponse(message="User deleted successfully")

    async def bootstrap_admin(
        self,
        db: AsyncSession,
        email: str,
        name: str,
        password: Optional[str] = None,
    ) -> AdminUser:
        """
        Create the first admin. Succeeds only while no admin exists.

        Raises:
            ConflictError: an admin already exists, or the email is taken.
        """
        try:
            result = await db.execute(
                select(func.count(User.id)).where(User.is_admin.is_(True))
            )
            if (result.scalar() or 0) > 0:
                raise ConflictError("Admin user already exists")
            user = await self._insert_user(db, email, name, True, password)
        except SQLAlchemyError as e:
            logger.error("Database error bootstrapping admin: %s", str(e))
            raise DatabaseError(message="Failed to create admin user")
        logger.info("Bootstrap admin created: %s", user.id)
        return AdminUser.model_validate(user)

    async def authenticate_admin(
        self, db: AsyncSession, email: str, password: Optional[str]
    ) -> AdminIdentity:
        """
        Check admin panel credentials.

        Users without a stored password hash (bootstrap or admin-created
        accounts) pass on any non-empty password.
        """
        if not password:
            raise ValidationError("Password is required", field="password")
        try:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during admin login: %s", str(e))
            raise DatabaseError()

        if user is None or not user.is_admin:
            raise UnauthenticatedError(INVALID_ADMIN_CREDENTIALS)
        if user.password_hash is not None and not verify_password(
            password, user.password_hash
        ):
            raise UnauthenticatedError(INVALID_ADMIN_CREDENTIALS)

        logger.info("Admin panel login: %s", user.id)
        return AdminIdentity.model_validate(user)


user_service = UserService()
