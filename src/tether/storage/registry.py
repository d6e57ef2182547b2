"""Blob storage provider registry.

Resolves logical folder names (``"Invoice.Attachment"``) to storage
providers. One provider can serve many folders; folders without a mapping
fall back to the default provider.

Example:
    registry = ProviderRegistry(default=LocalBlobStorage("./blobs"))
    registry.register(S3BlobStorage(bucket="media"), "Customer.Photo")

    provider = registry.resolve("Customer.Photo")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tether.config import Settings, get_settings
from tether.errors import ProviderNotConfiguredError
from tether.storage.azure import AzureBlobStorage
from tether.storage.gcs import GcsBlobStorage
from tether.storage.local import LocalBlobStorage
from tether.storage.memory import InMemoryBlobStorage
from tether.storage.s3 import S3BlobStorage

if TYPE_CHECKING:
    from tether.storage.base import BlobStorage

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Maps logical folders to storage providers."""

    def __init__(self, default: BlobStorage | None = None) -> None:
        self._default = default
        self._folders: dict[str, BlobStorage] = {}

    @property
    def default(self) -> BlobStorage | None:
        return self._default

    def set_default(self, provider: BlobStorage) -> None:
        """Set the provider used for folders without an explicit mapping."""
        self._default = provider

    def register(self, provider: BlobStorage, *folders: str) -> None:
        """Serve the given folders from ``provider``."""
        for folder in folders:
            self._folders[folder] = provider
            logger.debug(f"Folder {folder} served by {provider.storage_type} storage")

    def resolve(self, folder_name: str | None) -> BlobStorage:
        """Return the provider for a folder.

        Raises:
            ProviderNotConfiguredError: If the folder is unmapped and there is no default
        """
        if folder_name is not None:
            provider = self._folders.get(folder_name)
            if provider is not None:
                return provider
        if self._default is None:
            raise ProviderNotConfiguredError(folder_name)
        return self._default

    def folders(self) -> dict[str, BlobStorage]:
        """Return the explicit folder mappings."""
        return dict(self._folders)

    async def close(self) -> None:
        """Close every distinct provider."""
        providers = {id(p): p for p in self._folders.values()}
        if self._default is not None:
            providers[id(self._default)] = self._default
        for provider in providers.values():
            await provider.close()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ProviderRegistry:
        """Build a registry from the default storage type and the folder mapping."""
        settings = settings or get_settings()
        built: dict[str, BlobStorage] = {}

        def provider_for(kind: str) -> BlobStorage:
            if kind not in built:
                built[kind] = build_storage(kind, settings)
            return built[kind]

        registry = cls(default=provider_for(settings.storage_type))
        for folder, kind in settings.folder_storage_map().items():
            registry.register(provider_for(kind), folder)
        return registry


def build_storage(storage_type: str, settings: Settings) -> BlobStorage:
    """Create a storage provider of the given type from settings."""
    storage_type = storage_type.lower()
    if storage_type in {"s3", "minio"}:
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET is required for storage type 's3' or 'minio'")
        return S3BlobStorage(
            bucket=settings.s3_bucket,
            prefix=settings.s3_prefix,
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
        )
    if storage_type == "gcs":
        if not settings.gcs_bucket:
            raise ValueError("GCS_BUCKET is required for storage type 'gcs'")
        return GcsBlobStorage(
            bucket=settings.gcs_bucket,
            prefix=settings.gcs_prefix,
            project=settings.gcs_project,
            credentials_path=settings.gcs_credentials_path,
        )
    if storage_type == "azure":
        if not settings.azure_container:
            raise ValueError("AZURE_CONTAINER is required for storage type 'azure'")
        credential = settings.azure_account_key or settings.azure_sas_token
        return AzureBlobStorage(
            container=settings.azure_container,
            prefix=settings.azure_prefix,
            connection_string=settings.azure_connection_string,
            account_url=settings.azure_account_url,
            credential=credential,
        )
    if storage_type == "local":
        return LocalBlobStorage(base_path=settings.storage_path)
    if storage_type == "memory":
        return InMemoryBlobStorage()
    raise ValueError(
        "Unsupported storage type. Supported values: local, memory, s3, minio, gcs, azure."
    )


_registry: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """Return a singleton ProviderRegistry based on settings."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry.from_settings()
    return _registry


def reset_provider_registry() -> None:
    """Reset the registry instance (for testing)."""
    global _registry
    _registry = None
