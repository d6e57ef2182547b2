"""Local filesystem blob storage.

Stores blobs in a local directory structure:
    {base_path}/{folder_name}/{owner_id}{extension}

This provides:
- Simple deployment (no external services)
- Paths that mirror public blob URLs
- Easy backup and inspection
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, cast

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]

from tether.storage.base import BlobStorage

if TYPE_CHECKING:
    from tether.blob import Blob

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """Local filesystem blob storage backend."""

    storage_type = "local"

    def __init__(self, base_path: str | Path = "./blobs"):
        """Initialize local blob storage.

        Args:
            base_path: Base directory for blob storage
        """
        self.base_path = Path(base_path)

    def _get_blob_path(self, blob: Blob) -> Path:
        """Get the full path for a blob, confined to the base directory."""
        root = self.base_path.resolve()
        candidate = (self.base_path / self.object_key(blob)).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            raise ValueError(f"Invalid blob path: {candidate} (outside base directory)")
        return candidate

    async def _ensure_directory(self, path: Path) -> None:
        """Ensure directory exists."""
        if not await aiofiles.os.path.exists(path):
            await aiofiles.os.makedirs(path, exist_ok=True)

    async def _versions(self, blob_path: Path, owner_id: str) -> list[Path]:
        """List every stored file for the owner, whatever its extension."""
        folder = blob_path.parent
        if not await aiofiles.os.path.exists(folder):
            return []
        entries = await aiofiles.os.listdir(folder)
        return [
            folder / entry
            for entry in entries
            if entry == owner_id or entry.startswith(f"{owner_id}.")
        ]

    async def load(self, blob: Blob) -> bytes:
        """Load blob content from the local filesystem."""
        blob_path = self._get_blob_path(blob)

        if not await aiofiles.os.path.exists(blob_path):
            raise FileNotFoundError(f"Blob not found: {blob_path}")

        async with aiofiles.open(blob_path, "rb") as f:
            content = await f.read()

        return cast(bytes, content)

    async def save(self, blob: Blob) -> None:
        """Write blob content, dropping versions stored under another extension."""
        content = self.require_content(blob)
        blob_path = self._get_blob_path(blob)
        owner_id = cast(str, blob.owner_id())

        await self._ensure_directory(blob_path.parent)

        for stale in await self._versions(blob_path, owner_id):
            if stale != blob_path:
                await aiofiles.os.remove(stale)

        async with aiofiles.open(blob_path, "wb") as f:
            await f.write(content)

        logger.debug(f"Stored blob {blob.folder_name}/{owner_id} at {blob_path} ({len(content)} bytes)")

    async def delete(self, blob: Blob) -> None:
        """Delete every stored version of a blob from the local filesystem."""
        owner_id = blob.owner_id()
        if owner_id is None:
            return

        blob_path = self._get_blob_path(blob)
        for path in await self._versions(blob_path, owner_id):
            await aiofiles.os.remove(path)
            logger.debug(f"Deleted blob at {path}")

    async def exists(self, blob: Blob) -> bool:
        """Check if a blob exists in the local filesystem."""
        if blob.owner_id() is None:
            return False
        blob_path = self._get_blob_path(blob)
        return cast(bool, await aiofiles.os.path.exists(blob_path))
