"""
Journal API — Journal Endpoint Tests
=====================================

What:  End-to-end behaviour of /journal against a real (SQLite) schema.
Key properties:
    - an entry is only ever visible to its owner; foreign ids look missing
    - pagination splits 25 entries into 20 + 5
    - search is a substring match scoped to the caller
"""

from datetime import datetime

import pytest
import pytest_asyncio


def _ts(value: str) -> datetime:
    """Parses an API timestamp, ignoring the offset (everything is UTC)."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


@pytest_asyncio.fixture
async def alice(create_user):
    return await create_user("alice@example.com", name="Alice")


@pytest_asyncio.fixture
async def bob(create_user):
    return await create_user("bob@example.com", name="Bob")


class TestCrud:

    @pytest.mark.asyncio
    async def test_create_then_fetch(self, client, alice):
        created = await client.post(
            "/journal", json={"content": "# Day one"}, headers=alice.headers
        )
        assert created.status_code == 201
        body = created.json()
        assert body["content"] == "# Day one"
        assert body["userId"] == alice.id

        fetched = await client.get(f"/journal/{body['id']}", headers=alice.headers)
        assert fetched.status_code == 200
        entry = fetched.json()
        assert entry["content"] == "# Day one"
        assert _ts(entry["createdAt"]) == _ts(entry["updatedAt"])

    @pytest.mark.asyncio
    async def test_empty_content_is_400(self, client, alice):
        response = await client.post("/journal", json={"content": ""}, headers=alice.headers)

        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_update_replaces_content_and_bumps_updated_at(self, client, alice):
        entry = (
            await client.post("/journal", json={"content": "draft"}, headers=alice.headers)
        ).json()
        assert _ts(entry["updatedAt"]) == _ts(entry["createdAt"])

        response = await client.put(
            f"/journal/{entry['id']}", json={"content": "final"}, headers=alice.headers
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["content"] == "final"
        assert _ts(updated["createdAt"]) == _ts(entry["createdAt"])
        assert _ts(updated["updatedAt"]) > _ts(entry["createdAt"])

    @pytest.mark.asyncio
    async def test_delete_then_fetch_is_404(self, client, alice):
        entry = (
            await client.post("/journal", json={"content": "bye"}, headers=alice.headers)
        ).json()

        deleted = await client.delete(f"/journal/{entry['id']}", headers=alice.headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Journal entry deleted successfully"}

        response = await client.get(f"/journal/{entry['id']}", headers=alice.headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, client, alice):
        response = await client.get("/journal/does-not-exist", headers=alice.headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Journal entry not found"


class TestOwnership:

    @pytest.mark.asyncio
    async def test_other_user_cannot_read_update_or_delete(self, client, alice, bob):
        entry = (
            await client.post("/journal", json={"content": "secret"}, headers=alice.headers)
        ).json()
        url = f"/journal/{entry['id']}"

        missing = await client.get("/journal/does-not-exist", headers=bob.headers)
        read = await client.get(url, headers=bob.headers)
        write = await client.put(url, json={"content": "pwned"}, headers=bob.headers)
        remove = await client.delete(url, headers=bob.headers)

        for response in (read, write, remove):
            assert response.status_code == 404
            assert response.json()["error"] == missing.json()["error"]

        still_there = await client.get(url, headers=alice.headers)
        assert still_there.status_code == 200
        assert still_there.json()["content"] == "secret"

    @pytest.mark.asyncio
    async def test_list_only_shows_own_entries(self, client, alice, bob):
        await client.post("/journal", json={"content": "alice's"}, headers=alice.headers)
        await client.post("/journal", json={"content": "bob's"}, headers=bob.headers)

        response = await client.get("/journal", headers=bob.headers)

        entries = response.json()["entries"]
        assert [e["content"] for e in entries] == ["bob's"]


class TestPagination:

    @pytest.mark.asyncio
    async def test_twenty_five_entries_make_two_pages(self, client, alice):
        for i in range(25):
            await client.post("/journal", json={"content": f"entry {i}"}, headers=alice.headers)

        first = (await client.get("/journal?page=1&limit=20", headers=alice.headers)).json()
        second = (await client.get("/journal?page=2&limit=20", headers=alice.headers)).json()

        assert len(first["entries"]) == 20
        assert len(second["entries"]) == 5
        assert first["pagination"] == {"page": 1, "limit": 20, "total": 25, "totalPages": 2}
        assert second["pagination"]["totalPages"] == 2

        ids = [e["id"] for e in first["entries"] + second["entries"]]
        assert len(set(ids)) == 25

    @pytest.mark.asyncio
    async def test_newest_first(self, client, alice):
        for content in ("first", "second", "third"):
            await client.post("/journal", json={"content": content}, headers=alice.headers)

        entries = (await client.get("/journal", headers=alice.headers)).json()["entries"]

        stamps = [_ts(e["createdAt"]) for e in entries]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_defaults(self, client, alice):
        body = (await client.get("/journal", headers=alice.headers)).json()

        assert body["entries"] == []
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 0, "totalPages": 0}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "page=abc"])
    async def test_out_of_range_parameters_are_400(self, client, alice, query):
        response = await client.get(f"/journal?{query}", headers=alice.headers)

        assert response.status_code == 400


class TestSearch:

    @pytest.mark.asyncio
    async def test_substring_match(self, client, alice):
        for content in ("my dog is happy", "cat", "dogs bark"):
            await client.post("/journal", json={"content": content}, headers=alice.headers)

        response = await client.get("/journal/search?q=dog", headers=alice.headers)

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == "dog"
        assert sorted(e["content"] for e in body["entries"]) == ["dogs bark", "my dog is happy"]
        assert body["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_search_is_scoped_to_caller(self, client, alice, bob):
        await client.post("/journal", json={"content": "dog walk"}, headers=alice.headers)

        body = (await client.get("/journal/search?q=dog", headers=bob.headers)).json()

        assert body["entries"] == []

    @pytest.mark.asyncio
    async def test_missing_query_is_400(self, client, alice):
        response = await client.get("/journal/search", headers=alice.headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Search query is required"
