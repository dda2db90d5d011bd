"""
Journal API — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before anything from journal_api is
       imported, so the settings singleton and the module-level engine
       never point at a real database or storage directory.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock standing in for an AsyncSession
    ├── db_engine:        in-memory SQLite engine with the schema created
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── blob_store:       LocalBlobStore under tmp_path
    ├── client:           httpx AsyncClient over ASGITransport, with the DB
    │                     session and blob store dependencies overridden
    └── create_user:      seeds a user (and a live bearer session)
"""

import os
import secrets
import tempfile
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

# Must run before journal_api is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="journal_api_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import journal_api.models  # noqa: F401
from journal_api.database import Base, get_db_session
from journal_api.models.user import Session, User
from journal_api.services.auth_service import hash_password
from journal_api.services.file_service import LocalBlobStore, get_blob_store
from journal_api.services.session_resolver import ADMIN_SESSION_COOKIE, encode_admin_session
from journal_api.utils import utcnow


@dataclass
class SeededUser:
    """A user row created directly in the test database."""
    id: str
    email: str
    name: str
    is_admin: bool
    token: Optional[str]

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def admin_cookie(self) -> Dict[str, str]:
        value = encode_admin_session(self.id, self.email, self.name)
        return {"Cookie": f"{ADMIN_SESSION_COOKIE}={value}"}


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session for service unit tests.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = entry
        await journal_service.get_owned_entry(mock_db_session, "u1", "e1")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection, so every session in the test
    (seeding, the app's request sessions, assertions) sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest_asyncio.fixture
async def client(session_factory, blob_store):
    """
    HTTPX AsyncClient wired to the app with test dependencies.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    from journal_api.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_factory):
    """
    Factory fixture seeding a user row plus, by default, a live session.

    Usage:
        alice = await create_user("alice@example.com")
        await client.get("/journal", headers=alice.headers)
    """

    async def _create(
        email: str,
        name: str = "Test User",
        is_admin: bool = False,
        password: Optional[str] = None,
        with_session: bool = True,
        expired: bool = False,
    ) -> SeededUser:
        now = utcnow()
        async with session_factory() as session:
            user = User(
                email=email,
                name=name,
                is_admin=is_admin,
                email_verified=False,
                password_hash=hash_password(password) if password else None,
                created_at=now,
                updated_at=now,
            )
            session.add(user)
            await session.flush()

            token = None
            if with_session:
                token = secrets.token_urlsafe(24)
                offset = timedelta(hours=-1) if expired else timedelta(days=1)
                session.add(
                    Session(
                        token=token,
                        user_id=user.id,
                        expires_at=now + offset,
                        created_at=now,
                        updated_at=now,
                    )
                )
            await session.commit()
            return SeededUser(
                id=user.id, email=email, name=name, is_admin=is_admin, token=token
            )

    return _create
