"""tether: blob attachments for records, with pluggable storage providers."""

import importlib.metadata as importlib_metadata

from tether.binder import AttachmentBinder, get_default_binder, reset_default_binder
from tether.blob import EMPTY_FILE, Blob
from tether.database import EntityDatabase, InMemoryDatabase
from tether.entities import (
    BlobField,
    Entity,
    EntityType,
    EntityTypeRegistry,
    KeyStrategy,
    LifecycleEvent,
    LifecycleSignal,
)
from tether.errors import (
    ContentDecodeError,
    InvalidArgumentError,
    InvalidReferenceError,
    InvalidStateError,
    NotFoundError,
    OwnerNotFoundError,
    OwnerTypeNotFoundError,
    PropertyNotFoundError,
    ProviderNotConfiguredError,
    TetherError,
)
from tether.references import resolve_reference
from tether.safety import UNSAFE_EXTENSIONS, is_unsafe_extension, to_safe_file_name
from tether.storage import BlobStorage, ProviderRegistry


def _detect_version() -> str:
    """Return installed package version or a local fallback when metadata is unavailable."""
    try:
        return importlib_metadata.version("tether-blobs")
    except importlib_metadata.PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _detect_version()

__all__ = [
    "AttachmentBinder",
    "Blob",
    "BlobField",
    "BlobStorage",
    "ContentDecodeError",
    "EMPTY_FILE",
    "Entity",
    "EntityDatabase",
    "EntityType",
    "EntityTypeRegistry",
    "InMemoryDatabase",
    "InvalidArgumentError",
    "InvalidReferenceError",
    "InvalidStateError",
    "KeyStrategy",
    "LifecycleEvent",
    "LifecycleSignal",
    "NotFoundError",
    "OwnerNotFoundError",
    "OwnerTypeNotFoundError",
    "PropertyNotFoundError",
    "ProviderNotConfiguredError",
    "ProviderRegistry",
    "TetherError",
    "UNSAFE_EXTENSIONS",
    "get_default_binder",
    "is_unsafe_extension",
    "reset_default_binder",
    "resolve_reference",
    "to_safe_file_name",
]
