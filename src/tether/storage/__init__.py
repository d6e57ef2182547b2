"""Storage providers for tether blobs.

Provides pluggable backends for blob content:
- Local filesystem storage (default)
- S3-compatible storage (MinIO, AWS S3)
- Google Cloud Storage
- Azure Blob Storage
- In-memory storage for tests and development

Providers are selected per logical folder through a ProviderRegistry.
"""

from tether.storage.azure import AzureBlobStorage
from tether.storage.base import BlobStorage
from tether.storage.gcs import GcsBlobStorage
from tether.storage.local import LocalBlobStorage
from tether.storage.memory import InMemoryBlobStorage
from tether.storage.registry import (
    ProviderRegistry,
    build_storage,
    get_provider_registry,
    reset_provider_registry,
)
from tether.storage.s3 import S3BlobStorage

__all__ = [
    "BlobStorage",
    "LocalBlobStorage",
    "InMemoryBlobStorage",
    "S3BlobStorage",
    "GcsBlobStorage",
    "AzureBlobStorage",
    "ProviderRegistry",
    "build_storage",
    "get_provider_registry",
    "reset_provider_registry",
]
