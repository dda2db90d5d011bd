"""
Journal API — Authorization Gate Tests
=======================================

What:  The trust-level decision (`check_trust`) and its enforcement on real
       routes.
Why:   Every protected route depends on this table being right:

    ┌──────────────┬──────────────┬─────────────────────┬──────────────┐
    │ Level        │ anonymous    │ verified (non-admin)│ unsigned     │
    ├──────────────┼──────────────┼─────────────────────┼──────────────┤
    │ USER         │ 401          │ ok                  │ 401          │
    │ ADMIN        │ 401          │ 403                 │ ok if policy │
    └──────────────┴──────────────┴─────────────────────┴──────────────┘
"""

from unittest.mock import patch

import pytest
from sqlalchemy import update

from journal_api.config import settings
from journal_api.dependencies import TrustLevel, check_trust
from journal_api.exceptions import ForbiddenError, UnauthenticatedError
from journal_api.models.user import User
from journal_api.services.auth_base import ResolvedIdentity
from journal_api.services.session_resolver import UnsignedSession, VerifiedSession

IDENTITY = ResolvedIdentity(id="u1", email="u1@example.com", name="U1", is_admin=False)


class TestCheckTrust:

    def test_public_allows_anonymous(self):
        assert check_trust(TrustLevel.PUBLIC, None) is None

    def test_user_rejects_anonymous(self):
        with pytest.raises(UnauthenticatedError):
            check_trust(TrustLevel.USER, None)

    def test_user_accepts_verified(self):
        assert check_trust(TrustLevel.USER, VerifiedSession(IDENTITY)) == IDENTITY

    def test_user_rejects_unsigned_cookie(self):
        with pytest.raises(UnauthenticatedError):
            check_trust(TrustLevel.USER, UnsignedSession(IDENTITY))

    def test_admin_rejects_anonymous_with_401_not_403(self):
        with pytest.raises(UnauthenticatedError):
            check_trust(TrustLevel.ADMIN, None)

    def test_admin_rejects_verified_non_admin(self):
        with pytest.raises(ForbiddenError):
            check_trust(TrustLevel.ADMIN, VerifiedSession(IDENTITY), fresh_is_admin=False)

    def test_admin_rejects_verified_user_that_no_longer_exists(self):
        with pytest.raises(ForbiddenError):
            check_trust(TrustLevel.ADMIN, VerifiedSession(IDENTITY), fresh_is_admin=None)

    def test_admin_accepts_verified_admin(self):
        identity = check_trust(
            TrustLevel.ADMIN, VerifiedSession(IDENTITY), fresh_is_admin=True
        )
        assert identity.id == "u1"
        assert identity.is_admin is True

    def test_admin_accepts_unsigned_when_allowed(self):
        identity = check_trust(
            TrustLevel.ADMIN, UnsignedSession(IDENTITY), allow_unsigned_admin=True
        )
        assert identity == IDENTITY

    def test_admin_rejects_unsigned_when_disallowed(self):
        with pytest.raises(UnauthenticatedError):
            check_trust(
                TrustLevel.ADMIN, UnsignedSession(IDENTITY), allow_unsigned_admin=False
            )


class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_no_token_is_401(self, client):
        response = await client.get("/journal")

        assert response.status_code == 401
        assert response.json()["error"] == "Authorization token required"
        assert "request_id" in response.json()

    @pytest.mark.asyncio
    async def test_unknown_token_is_401(self, client):
        response = await client.get(
            "/journal", headers={"Authorization": "Bearer not-a-real-token"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_session_is_401(self, client, create_user):
        alice = await create_user("alice@example.com", expired=True)

        response = await client.get("/journal", headers=alice.headers)

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_admin_cookie_does_not_unlock_user_routes(self, client, create_user):
        admin = await create_user("admin@example.com", is_admin=True)

        response = await client.get("/user/profile", headers=admin.admin_cookie)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_auth_is_checked_before_body_validation(self, client):
        response = await client.post("/journal", json={})
        assert response.status_code == 401


class TestAdminRoutes:

    @pytest.mark.asyncio
    async def test_anonymous_is_401(self, client):
        response = await client.get("/admin/users")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_verified_non_admin_is_403(self, client, create_user):
        alice = await create_user("alice@example.com")

        response = await client.get("/admin/users", headers=alice.headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_verified_admin_is_allowed(self, client, create_user):
        admin = await create_user("admin@example.com", is_admin=True)

        response = await client.get("/admin/users", headers=admin.headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_admin_cookie_is_allowed(self, client, create_user):
        admin = await create_user("admin@example.com", is_admin=True, with_session=False)

        response = await client.get("/admin/users", headers=admin.admin_cookie)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_admin_cookie_rejected_when_policy_disabled(self, client, create_user):
        admin = await create_user("admin@example.com", is_admin=True, with_session=False)

        with patch.object(settings, "allow_unsigned_admin_session", False):
            response = await client.get("/admin/users", headers=admin.admin_cookie)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_revoked_admin_flag_takes_effect_immediately(
        self, client, create_user, session_factory
    ):
        admin = await create_user("admin@example.com", is_admin=True)
        assert (await client.get("/admin/users", headers=admin.headers)).status_code == 200

        async with session_factory() as session:
            await session.execute(
                update(User).where(User.id == admin.id).values(is_admin=False)
            )
            await session.commit()

        response = await client.get("/admin/users", headers=admin.headers)
        assert response.status_code == 403
