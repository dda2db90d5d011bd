"""
Journal API — Identity Store Models
====================================

What:  ORM models for users, bearer sessions and OAuth client grants.
Who:   Read by the auth provider and session resolver; written by the auth
       routes, the admin panel and the cascade delete.

Table Design Rationale:
    - Text UUID primary keys: opaque, non-sequential, portable between
      PostgreSQL and SQLite.
    - Foreign keys are declared WITHOUT `ON DELETE CASCADE`. Dependent rows
      are removed explicitly, children first, by CascadeService.
    - All timestamps are timezone-aware UTC.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from journal_api.database import Base
from journal_api.utils import generate_id, utcnow


class User(Base):
    """
    A person who owns journal entries.

    `is_admin` grants the Admin trust level when the identity comes through
    the verified (bearer) channel; it is always re-read from this table.
    `password_hash` is NULL for users created by an admin or by the
    bootstrap endpoint without a password.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', is_admin={self.is_admin})>"


class Session(Base):
    """
    A bearer session issued at sign-in.

    One row per token; a user may hold several concurrent sessions.
    Destroyed by sign-out, by expiry checks (expired rows are ignored, not
    purged) and by account deletion.
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_sessions_user_id", "user_id"),)


class OAuthClient(Base):
    """An external application allowed to request grants on behalf of users."""

    __tablename__ = "oauth_clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    client_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    client_secret: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # JSON array of allowed redirect URIs
    redirect_uris: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class OAuthToken(Base):
    """A grant issued to one OAuthClient for one User."""

    __tablename__ = "oauth_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    access_token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("oauth_clients.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    scope: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_oauth_tokens_user_id", "user_id"),)
