"""Base blob storage interface.

Defines the abstract interface every storage provider implements. Providers
work on a Blob handle: the handle supplies the logical folder, the owner id
and the file extension that together address the stored object.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from tether.errors import InvalidStateError

if TYPE_CHECKING:
    from tether.blob import Blob


class BlobStorage(ABC):
    """Abstract base class for blob storage backends."""

    #: Short name used in configuration and logs.
    storage_type: str = "abstract"

    @abstractmethod
    async def load(self, blob: Blob) -> bytes:
        """Load the stored content of a blob.

        Args:
            blob: Attached blob to load

        Returns:
            Binary content

        Raises:
            FileNotFoundError: If nothing is stored for the blob
        """
        ...

    @abstractmethod
    async def save(self, blob: Blob) -> None:
        """Persist the in-memory content of a blob, replacing any previous version.

        Args:
            blob: Attached blob whose ``raw_data`` is written
        """
        ...

    @abstractmethod
    async def delete(self, blob: Blob) -> None:
        """Delete the stored content of a blob.

        Deleting content that does not exist is not an error.
        """
        ...

    @abstractmethod
    async def exists(self, blob: Blob) -> bool:
        """Check whether content is stored for a blob.

        Detached blobs, and blobs whose owner has no id yet, never exist.
        """
        ...

    def costs_to_check_existence(self) -> bool:
        """Whether an existence probe is expensive for this backend.

        When True, blobs assume their content is present instead of probing.
        """
        return False

    @staticmethod
    def object_key(blob: Blob) -> str:
        """Build the object key ``<folder>/<owner_id><extension>`` for a blob."""
        owner_id = blob.owner_id()
        if owner_id is None:
            raise InvalidStateError("Blob is not attached to a saved owner record.")
        return f"{blob.folder_name}/{owner_id}{blob.file_extension}"

    @staticmethod
    def compute_hash(content: bytes) -> str:
        """Compute SHA256 hash of content."""
        return hashlib.sha256(content).hexdigest()

    @staticmethod
    def require_content(blob: Blob) -> bytes:
        """Return the in-memory content of a blob that is about to be saved."""
        data = blob.raw_data
        if not data:
            raise InvalidStateError(f"Blob {blob.file_name!r} has no content to save.")
        return data

    async def close(self) -> None:
        """Release client resources held by the backend."""
        return None
