"""
Journal API — Attachment Tests
===============================

What:  Upload validation, the download proxy, deletion, and the rule that
       a rejected upload never reaches the blob store.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from pydantic import ValidationError as SettingsValidationError
from sqlalchemy import func, select

from journal_api.config import Settings
from journal_api.exceptions import ValidationError
from journal_api.main import app
from journal_api.models.journal import Attachment
from journal_api.services.attachment_service import (
    ALLOWED_MIME_TYPES,
    AttachmentService,
    attachment_service,
    content_disposition,
    file_extension,
)
from journal_api.services.blob_base import BlobStore
from journal_api.services.file_service import get_blob_store
from journal_api.services.journal_service import journal_service

MIB = 1024 * 1024

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest_asyncio.fixture
async def alice(create_user):
    return await create_user("alice@example.com", name="Alice")


@pytest_asyncio.fixture
async def entry(client, alice):
    response = await client.post("/journal", json={"content": "with files"}, headers=alice.headers)
    return response.json()


async def _upload(client, user, entry_id, name="photo.png", data=PNG_BYTES, mime="image/png"):
    return await client.post(
        f"/journal/{entry_id}/attachments",
        files={"file": (name, data, mime)},
        headers=user.headers,
    )


async def _attachment_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(Attachment.id)))).scalar()


class TestFileExtension:

    @pytest.mark.parametrize(
        "filename,expected",
        [("photo.png", "png"), ("notes.final.pdf", "pdf"), ("README", "bin"), ("trailing.", "bin")],
    )
    def test_extension(self, filename, expected):
        assert file_extension(filename) == expected


class TestContentDisposition:

    def test_plain_ascii_name_is_quoted_as_is(self):
        assert content_disposition("photo.png") == 'attachment; filename="photo.png"'

    def test_non_ascii_name_uses_rfc5987_form(self):
        header = content_disposition("日記.png")

        assert header == "attachment; filename*=utf-8''%E6%97%A5%E8%A8%98.png"
        header.encode("latin-1")

    @pytest.mark.parametrize("name", ['say "hi".txt', "evil\r\nX-Injected: 1.txt"])
    def test_quotes_and_line_breaks_are_escaped(self, name):
        header = content_disposition(name)

        assert header.startswith("attachment; filename*=utf-8''")
        assert '"' not in header
        assert "\r" not in header and "\n" not in header


class TestUpload:

    @pytest.mark.asyncio
    async def test_upload_stores_metadata_and_bytes(self, client, alice, entry, blob_store):
        response = await _upload(client, alice, entry["id"])

        assert response.status_code == 201
        body = response.json()
        assert body["journalEntryId"] == entry["id"]
        assert body["originalFilename"] == "photo.png"
        assert body["mimeType"] == "image/png"
        assert body["size"] == len(PNG_BYTES)
        assert body["filename"] == f"{body['id']}.png"
        assert body["storageKey"] == f"attachments/{alice.id}/{entry['id']}/{body['id']}.png"
        assert await blob_store.get(body["storageKey"]) == PNG_BYTES

    @pytest.mark.asyncio
    async def test_disallowed_type_never_reaches_blob_store(
        self, client, alice, entry, session_factory
    ):
        store = AsyncMock(spec=BlobStore)
        app.dependency_overrides[get_blob_store] = lambda: store

        response = await _upload(
            client, alice, entry["id"], name="archive.zip", data=b"PK\x03\x04", mime="application/zip"
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "File type not allowed"
        assert body["allowedTypes"] == list(ALLOWED_MIME_TYPES)
        store.put.assert_not_awaited()
        assert await _attachment_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_oversized_file_is_rejected(self, client, alice, entry, blob_store):
        with patch.object(attachment_service, "max_file_size", 16):
            response = await _upload(client, alice, entry["id"], data=b"x" * 17)

        assert response.status_code == 400
        assert response.json()["error"] == "File size too large"
        assert response.json()["maxSize"] == 16
        assert not (blob_store.storage_root / "attachments").exists()

    @pytest.mark.asyncio
    async def test_missing_file_is_400(self, client, alice, entry):
        response = await client.post(
            f"/journal/{entry['id']}/attachments",
            data={"note": "no file here"},
            headers=alice.headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No file provided"

    @pytest.mark.asyncio
    async def test_upload_to_foreign_entry_is_404(self, client, create_user, entry):
        mallory = await create_user("mallory@example.com")

        response = await _upload(client, mallory, entry["id"])

        assert response.status_code == 404
        assert response.json()["error"] == "Journal entry not found"

    @pytest.mark.asyncio
    async def test_metadata_failure_removes_blob(self, client, alice, entry, blob_store):
        from sqlalchemy.exc import OperationalError

        with patch(
            "sqlalchemy.ext.asyncio.AsyncSession.flush",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            response = await _upload(client, alice, entry["id"])

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to upload file"
        leftovers = list((blob_store.storage_root / "attachments").rglob("*.png"))
        assert leftovers == []


class TestSizeChecks:

    def _upload_file(self, reported_size, content):
        upload = MagicMock(filename="big.png", content_type="image/png", size=reported_size)
        upload.read = AsyncMock(return_value=content)
        return upload

    @pytest.mark.asyncio
    async def test_reported_size_rejected_before_reading(self, mock_db_session):
        service = AttachmentService(max_file_size=MIB)
        upload = self._upload_file(2 * MIB, b"")
        store = AsyncMock(spec=BlobStore)

        with patch.object(journal_service, "get_owned_entry", AsyncMock()):
            with pytest.raises(ValidationError, match="File size too large"):
                await service.upload(mock_db_session, store, "u1", "e1", upload)

        upload.read.assert_not_awaited()
        store.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_understated_size_caught_after_reading(self, mock_db_session):
        service = AttachmentService(max_file_size=MIB)
        upload = self._upload_file(10, b"x" * (MIB + 1))
        store = AsyncMock(spec=BlobStore)

        with patch.object(journal_service, "get_owned_entry", AsyncMock()):
            with pytest.raises(ValidationError, match="File size too large"):
                await service.upload(mock_db_session, store, "u1", "e1", upload)

        upload.read.assert_awaited_once()
        store.put.assert_not_awaited()

    def test_ceiling_cannot_be_raised_above_ten_mib(self):
        with pytest.raises(SettingsValidationError):
            Settings(max_file_size=20 * MIB)

    def test_ceiling_can_be_lowered(self):
        assert Settings(max_file_size=2 * MIB).max_file_size == 2 * MIB


class TestDownloadAndDelete:

    @pytest.mark.asyncio
    async def test_download_returns_bytes_with_headers(self, client, alice, entry):
        attachment = (await _upload(client, alice, entry["id"])).json()

        response = await client.get(f"/attachments/{attachment['id']}", headers=alice.headers)

        assert response.status_code == 200
        assert response.content == PNG_BYTES
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-disposition"] == 'attachment; filename="photo.png"'
        assert response.headers["cache-control"] == "private, max-age=3600"

    @pytest.mark.asyncio
    async def test_non_ascii_filename_downloads(self, client, alice, entry):
        attachment = (await _upload(client, alice, entry["id"], name="日記.png")).json()
        assert attachment["originalFilename"] == "日記.png"

        response = await client.get(f"/attachments/{attachment['id']}", headers=alice.headers)

        assert response.status_code == 200
        assert response.content == PNG_BYTES
        assert response.headers["content-disposition"] == (
            "attachment; filename*=utf-8''%E6%97%A5%E8%A8%98.png"
        )

    @pytest.mark.asyncio
    async def test_other_user_cannot_download(self, client, create_user, alice, entry):
        attachment = (await _upload(client, alice, entry["id"])).json()
        mallory = await create_user("mallory@example.com")

        response = await client.get(f"/attachments/{attachment['id']}", headers=mallory.headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Attachment not found"

    @pytest.mark.asyncio
    async def test_missing_bytes_is_404(self, client, alice, entry, blob_store):
        attachment = (await _upload(client, alice, entry["id"])).json()
        await blob_store.delete(attachment["storageKey"])

        response = await client.get(f"/attachments/{attachment['id']}", headers=alice.headers)

        assert response.status_code == 404
        assert response.json()["error"] == "File not found in storage"

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_bytes(
        self, client, alice, entry, blob_store, session_factory
    ):
        attachment = (await _upload(client, alice, entry["id"])).json()

        response = await client.delete(f"/attachments/{attachment['id']}", headers=alice.headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Attachment deleted successfully"}
        assert await blob_store.get(attachment["storageKey"]) is None
        assert await _attachment_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_deleting_entry_removes_its_attachments(
        self, client, alice, entry, blob_store, session_factory
    ):
        attachment = (await _upload(client, alice, entry["id"])).json()

        response = await client.delete(f"/journal/{entry['id']}", headers=alice.headers)

        assert response.status_code == 200
        assert await _attachment_count(session_factory) == 0
        assert await blob_store.get(attachment["storageKey"]) is None
