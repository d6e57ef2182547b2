"""Google Cloud Storage blob storage backend."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, cast

from tether.storage.base import BlobStorage

if TYPE_CHECKING:
    from tether.blob import Blob

logger = logging.getLogger(__name__)


class GcsBlobStorage(BlobStorage):
    """GCS blob storage implementation.

    Uses google-cloud-storage with asyncio.to_thread for non-blocking I/O.
    """

    storage_type = "gcs"

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        project: str | None = None,
        credentials_path: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.project = project
        self.credentials_path = credentials_path
        self._client: Any | None = None

    async def _get_client(self) -> Any:
        """Get or create GCS client."""
        if self._client is None:
            try:
                from google.cloud import storage
            except ImportError as exc:
                raise RuntimeError("google-cloud-storage is required for GCS blob storage") from exc

            if self.credentials_path:
                self._client = storage.Client.from_service_account_json(
                    self.credentials_path, project=self.project
                )
            else:
                self._client = storage.Client(project=self.project)
        return self._client

    async def _get_object(self, blob: Blob) -> Any:
        client = await self._get_client()
        return client.bucket(self.bucket).blob(f"{self.prefix}{self.object_key(blob)}")

    def costs_to_check_existence(self) -> bool:
        return True

    async def load(self, blob: Blob) -> bytes:
        """Load blob content from GCS."""
        obj = await self._get_object(blob)

        exists = await asyncio.to_thread(obj.exists)
        if not exists:
            raise FileNotFoundError(f"Blob not found: gs://{self.bucket}/{obj.name}")

        data = await asyncio.to_thread(obj.download_as_bytes)
        return cast(bytes, data)

    async def save(self, blob: Blob) -> None:
        """Upload blob content to GCS."""
        content = self.require_content(blob)
        obj = await self._get_object(blob)
        obj.metadata = {
            "file-name": blob.file_name,
            "content-hash": self.compute_hash(content),
        }
        await asyncio.to_thread(obj.upload_from_string, content, content_type=blob.mime_type)
        logger.debug(f"Stored blob at gs://{self.bucket}/{obj.name} ({len(content)} bytes)")

    async def delete(self, blob: Blob) -> None:
        """Delete a blob from GCS."""
        if blob.owner_id() is None:
            return
        obj = await self._get_object(blob)

        exists = await asyncio.to_thread(obj.exists)
        if not exists:
            return

        await asyncio.to_thread(obj.delete)
        logger.debug(f"Deleted blob at gs://{self.bucket}/{obj.name}")

    async def exists(self, blob: Blob) -> bool:
        """Check if a blob exists in GCS."""
        if blob.owner_id() is None:
            return False
        obj = await self._get_object(blob)
        return cast(bool, await asyncio.to_thread(obj.exists))
