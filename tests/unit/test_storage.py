"""Tests for photo storage backends."""

from __future__ import annotations

import httpx
import pytest

from sitecheck.config import StorageConfig
from sitecheck.errors import StorageError
from sitecheck.services.storage import HttpBlobStorage, LocalBlobStorage, build_storage


class TestLocalBlobStorage:
    @pytest.mark.asyncio
    async def test_upload_and_url(self, tmp_path):
        storage = LocalBlobStorage(tmp_path, "http://localhost:8000/media/")

        stored = await storage.upload("/abc/1700000000000_door.jpg", b"data")

        assert stored == "abc/1700000000000_door.jpg"
        assert (tmp_path / "abc" / "1700000000000_door.jpg").read_bytes() == b"data"
        assert storage.get_public_url(stored) == (
            "http://localhost:8000/media/abc/1700000000000_door.jpg"
        )

    @pytest.mark.asyncio
    async def test_existing_object_is_not_overwritten(self, tmp_path):
        storage = LocalBlobStorage(tmp_path, "http://localhost/media")
        await storage.upload("a/b.jpg", b"first")

        with pytest.raises(StorageError, match="already exists"):
            await storage.upload("a/b.jpg", b"second")

        assert (tmp_path / "a" / "b.jpg").read_bytes() == b"first"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["../escape.jpg", "a/../../b.jpg", "", "/"])
    async def test_rejects_unsafe_paths(self, tmp_path, path):
        storage = LocalBlobStorage(tmp_path, "http://localhost/media")

        with pytest.raises(StorageError, match="Invalid storage path"):
            await storage.upload(path, b"x")


class TestHttpBlobStorage:
    @pytest.mark.asyncio
    async def test_upload_posts_to_bucket(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = request.content
            return httpx.Response(200, json={"Key": "checklist-photos/c1/1_a.png"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        storage = HttpBlobStorage(
            "https://project.supabase.co/", "checklist-photos", api_key="anon-key", client=client
        )

        stored = await storage.upload("c1/1_a.png", b"png")
        await client.aclose()

        assert stored == "c1/1_a.png"
        assert seen["method"] == "POST"
        assert seen["url"] == (
            "https://project.supabase.co/storage/v1/object/checklist-photos/c1/1_a.png"
        )
        assert seen["headers"]["authorization"] == "Bearer anon-key"
        assert seen["headers"]["apikey"] == "anon-key"
        assert seen["headers"]["content-type"] == "image/png"
        assert seen["headers"]["x-upsert"] == "false"
        assert seen["body"] == b"png"

    def test_public_url(self):
        storage = HttpBlobStorage(
            "https://project.supabase.co", "checklist-photos",
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))),
        )

        assert storage.get_public_url("c1/1_a b.png") == (
            "https://project.supabase.co/storage/v1/object/public/checklist-photos/c1/1_a%20b.png"
        )

    @pytest.mark.asyncio
    async def test_http_error_maps_to_storage_error(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(409, text="Duplicate"))
        )
        storage = HttpBlobStorage("https://s.example.com", "b", client=client)

        with pytest.raises(StorageError, match="HTTP 409"):
            await storage.upload("x/y.jpg", b"x")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_maps_to_storage_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        storage = HttpBlobStorage("https://s.example.com", "b", client=client)

        with pytest.raises(StorageError, match="failed"):
            await storage.upload("x/y.jpg", b"x")
        await client.aclose()


class TestBuildStorage:
    def test_local_backend_uses_bucket_subdirectory(self, tmp_path):
        storage = build_storage(
            StorageConfig(local_root=tmp_path, public_base_url="http://host/media/")
        )

        assert isinstance(storage, LocalBlobStorage)
        assert storage.root == tmp_path / "checklist-photos"
        assert storage.get_public_url("a.jpg") == "http://host/media/checklist-photos/a.jpg"

    @pytest.mark.asyncio
    async def test_http_backend(self):
        storage = build_storage(StorageConfig(backend="http", url="https://s.example.com"))

        assert isinstance(storage, HttpBlobStorage)
        await storage.aclose()

    def test_http_backend_requires_url(self):
        with pytest.raises(KeyError, match="STORAGE_URL"):
            build_storage(StorageConfig(backend="http"))
