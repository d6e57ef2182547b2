"""Azure Blob Storage backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from tether.storage.base import BlobStorage

if TYPE_CHECKING:
    from tether.blob import Blob

logger = logging.getLogger(__name__)


class AzureBlobStorage(BlobStorage):
    """Azure Blob Storage implementation using azure-storage-blob aio client."""

    storage_type = "azure"

    def __init__(
        self,
        container: str,
        prefix: str = "",
        connection_string: str | None = None,
        account_url: str | None = None,
        credential: str | None = None,
    ) -> None:
        self.container = container
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.connection_string = connection_string
        self.account_url = account_url
        self.credential = credential
        self._client: Any | None = None

    async def _get_client(self) -> Any:
        """Get or create BlobServiceClient."""
        if self._client is None:
            try:
                from azure.storage.blob.aio import BlobServiceClient
            except ImportError as exc:
                raise RuntimeError(
                    "azure-storage-blob is required for Azure blob storage"
                ) from exc

            if self.connection_string:
                self._client = BlobServiceClient.from_connection_string(
                    self.connection_string
                )
            elif self.account_url:
                self._client = BlobServiceClient(
                    account_url=self.account_url, credential=self.credential
                )
            else:
                raise ValueError(
                    "Azure storage requires AZURE_STORAGE_CONNECTION_STRING or AZURE_ACCOUNT_URL"
                )

        return self._client

    async def _get_blob_client(self, blob: Blob) -> Any:
        client = await self._get_client()
        return client.get_blob_client(
            container=self.container, blob=f"{self.prefix}{self.object_key(blob)}"
        )

    def costs_to_check_existence(self) -> bool:
        return True

    async def load(self, blob: Blob) -> bytes:
        """Load blob content from Azure Blob Storage."""
        blob_client = await self._get_blob_client(blob)

        try:
            stream = await blob_client.download_blob()
            data = await stream.readall()
            return cast(bytes, data)
        except Exception as exc:
            from azure.core.exceptions import ResourceNotFoundError

            if isinstance(exc, ResourceNotFoundError):
                raise FileNotFoundError(f"Blob not found: {self.object_key(blob)}") from exc
            raise

    async def save(self, blob: Blob) -> None:
        """Upload blob content to Azure Blob Storage."""
        content = self.require_content(blob)
        blob_client = await self._get_blob_client(blob)

        from azure.storage.blob import ContentSettings

        await blob_client.upload_blob(
            content,
            overwrite=True,
            content_settings=ContentSettings(content_type=blob.mime_type),
            metadata={
                "file-name": blob.file_name,
                "content-hash": self.compute_hash(content),
            },
        )
        logger.debug(f"Stored blob at azure://{self.container}/{self.object_key(blob)}")

    async def delete(self, blob: Blob) -> None:
        """Delete a blob from Azure Blob Storage."""
        if blob.owner_id() is None:
            return
        blob_client = await self._get_blob_client(blob)

        try:
            await blob_client.delete_blob()
        except Exception as exc:
            from azure.core.exceptions import ResourceNotFoundError

            if isinstance(exc, ResourceNotFoundError):
                return
            raise
        logger.debug(f"Deleted blob at azure://{self.container}/{self.object_key(blob)}")

    async def exists(self, blob: Blob) -> bool:
        """Check if a blob exists in Azure Blob Storage."""
        if blob.owner_id() is None:
            return False
        blob_client = await self._get_blob_client(blob)
        return cast(bool, await blob_client.exists())

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
