"""
Journal API — Session Resolver Tests
=====================================

What:  Bearer-token extraction, admin cookie decoding and the two
       resolution channels of SessionResolver.
How:   The auth provider is an AsyncMock; no database is involved.
"""

import base64
import json
from unittest.mock import AsyncMock

import pytest

from journal_api.exceptions import UnauthenticatedError
from journal_api.services.auth_base import ResolvedIdentity, extract_bearer_token
from journal_api.services.session_resolver import (
    SessionResolver,
    UnsignedSession,
    VerifiedSession,
    decode_admin_session,
    encode_admin_session,
)


def _b64(raw: str) -> str:
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class TestExtractBearerToken:

    def test_bearer_header(self):
        assert extract_bearer_token({"authorization": "Bearer abc123"}) == "abc123"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token({"authorization": "bearer abc123"}) == "abc123"

    def test_missing_header(self):
        assert extract_bearer_token({}) is None

    def test_other_scheme(self):
        assert extract_bearer_token({"authorization": "Basic dXNlcjpwdw=="}) is None

    def test_empty_token(self):
        assert extract_bearer_token({"authorization": "Bearer   "}) is None


class TestAdminCookie:

    def test_encoded_cookie_decodes_to_same_identity(self):
        value = encode_admin_session("user-1", "admin@example.com", "Ada")

        identity = decode_admin_session(value)

        assert identity == ResolvedIdentity(
            id="user-1", email="admin@example.com", name="Ada", is_admin=None
        )

    def test_payload_format(self):
        value = encode_admin_session("user-1", "admin@example.com", "Ada")
        payload = json.loads(base64.b64decode(value))
        assert payload == {"userId": "user-1", "email": "admin@example.com", "name": "Ada"}

    def test_not_base64(self):
        assert decode_admin_session("%%%not-base64%%%") is None

    def test_base64_but_not_json(self):
        assert decode_admin_session(_b64("hello")) is None

    def test_json_array(self):
        assert decode_admin_session(_b64('["userId"]')) is None

    def test_missing_user_id(self):
        assert decode_admin_session(_b64('{"email": "a@b.c"}')) is None

    def test_non_string_user_id(self):
        assert decode_admin_session(_b64('{"userId": 42}')) is None


class TestSessionResolver:

    def setup_method(self):
        self.provider = AsyncMock()
        self.resolver = SessionResolver(self.provider)
        self.identity = ResolvedIdentity(
            id="u1", email="u1@example.com", name="U1", is_admin=False
        )

    @pytest.mark.asyncio
    async def test_missing_token_is_unauthenticated(self, mock_db_session):
        with pytest.raises(UnauthenticatedError, match="Authorization token required"):
            await self.resolver.resolve_verified(mock_db_session, {})
        self.provider.resolve_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_token_is_unauthenticated(self, mock_db_session):
        self.provider.resolve_session.return_value = None

        with pytest.raises(UnauthenticatedError, match="Invalid or expired token"):
            await self.resolver.resolve_verified(
                mock_db_session, {"authorization": "Bearer stale"}
            )

    @pytest.mark.asyncio
    async def test_valid_token_yields_verified_session(self, mock_db_session):
        self.provider.resolve_session.return_value = self.identity

        session = await self.resolver.resolve_verified(
            mock_db_session, {"authorization": "Bearer good"}
        )

        assert session == VerifiedSession(identity=self.identity)

    def test_unsigned_cookie_resolves(self):
        value = encode_admin_session("u1", "u1@example.com", "U1")

        session = self.resolver.resolve_unsigned({"admin_session": value})

        assert isinstance(session, UnsignedSession)
        assert session.identity.id == "u1"
        assert session.identity.is_admin is None

    def test_absent_cookie(self):
        assert self.resolver.resolve_unsigned({}) is None

    def test_malformed_cookie_is_ignored(self):
        assert self.resolver.resolve_unsigned({"admin_session": "garbage!"}) is None
