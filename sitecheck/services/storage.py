"""Blob storage for inspection photos.

Two backends:
- ``LocalBlobStorage`` writes under a directory served at a public base URL
- ``HttpBlobStorage`` talks to a Supabase-compatible storage API over httpx
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import httpx

from sitecheck.config import StorageConfig
from sitecheck.errors import StorageError

logger = logging.getLogger(__name__)


def _clean_path(path: str) -> str:
    posix = PurePosixPath(path.strip("/"))
    if not posix.parts or any(part in ("..", ".") for part in posix.parts):
        raise StorageError(f"Invalid storage path: {path!r}")
    return str(posix)


class BlobStorage(ABC):
    """Stores photo bytes and resolves stable public URLs."""

    @abstractmethod
    async def upload(self, path: str, data: bytes) -> str:
        """Store ``data`` at ``path`` and return the stored path."""

    @abstractmethod
    def get_public_url(self, stored_path: str) -> str:
        """Return the public URL of a previously uploaded object."""

    async def aclose(self) -> None:
        return None


class LocalBlobStorage(BlobStorage):
    def __init__(self, root: Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload(self, path: str, data: bytes) -> str:
        stored_path = _clean_path(path)
        target = self.root / stored_path
        if target.exists():
            raise StorageError(f"Object already exists: {stored_path}")

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to store {stored_path}: {e}") from e

        logger.info("Stored photo %s (%d bytes)", stored_path, len(data))
        return stored_path

    def get_public_url(self, stored_path: str) -> str:
        return f"{self.public_base_url}/{quote(_clean_path(stored_path))}"


class HttpBlobStorage(BlobStorage):
    """Client for a Supabase-style storage bucket."""

    def __init__(
        self,
        base_url: str,
        bucket: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket

        headers = {}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
            headers["apikey"] = api_key

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.client.headers.update(headers)

    async def upload(self, path: str, data: bytes) -> str:
        stored_path = _clean_path(path)
        content_type = mimetypes.guess_type(stored_path)[0] or "application/octet-stream"
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(stored_path)}"

        try:
            response = await self.client.post(
                url,
                content=data,
                headers={"Content-Type": content_type, "x-upsert": "false"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"Upload of {stored_path} rejected with HTTP {e.response.status_code}: "
                f"{e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(f"Upload of {stored_path} failed: {e}") from e

        logger.info("Uploaded photo %s to bucket %s", stored_path, self.bucket)
        return stored_path

    def get_public_url(self, stored_path: str) -> str:
        return (
            f"{self.base_url}/storage/v1/object/public/{self.bucket}/"
            f"{quote(_clean_path(stored_path))}"
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def build_storage(config: StorageConfig) -> BlobStorage:
    """Create the storage backend selected by configuration."""
    if config.backend == "http":
        if not config.url:
            raise KeyError("STORAGE_URL is required when PHOTO_STORAGE_BACKEND=http")
        return HttpBlobStorage(
            base_url=config.url,
            bucket=config.bucket,
            api_key=config.api_key,
            timeout=config.timeout_seconds,
        )
    return LocalBlobStorage(
        root=config.local_root / config.bucket,
        public_base_url=f"{config.public_base_url.rstrip('/')}/{config.bucket}",
    )
