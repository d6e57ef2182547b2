"""InMemoryBlobStorage: dict-based blob storage for development and testing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tether.storage.base import BlobStorage

if TYPE_CHECKING:
    from tether.blob import Blob


class InMemoryBlobStorage(BlobStorage):
    """In-memory blob storage keyed by object key.

    Keeps per-operation call counts so tests can assert how often the
    backend was reached.
    """

    storage_type = "memory"

    def __init__(self, *, expensive_existence: bool = False) -> None:
        self._objects: dict[str, bytes] = {}
        self._expensive_existence = expensive_existence
        self.calls: dict[str, int] = {"load": 0, "save": 0, "delete": 0, "exists": 0}

    @property
    def objects(self) -> dict[str, bytes]:
        """Return a copy of the stored objects."""
        return dict(self._objects)

    def costs_to_check_existence(self) -> bool:
        return self._expensive_existence

    async def load(self, blob: Blob) -> bytes:
        self.calls["load"] += 1
        key = self.object_key(blob)
        data = self._objects.get(key)
        if data is None:
            raise FileNotFoundError(f"Blob not found: {key}")
        return data

    async def save(self, blob: Blob) -> None:
        self.calls["save"] += 1
        content = self.require_content(blob)
        key = self.object_key(blob)
        prefix = key[: len(key) - len(blob.file_extension)]
        self._drop_versions(prefix)
        self._objects[key] = bytes(content)

    async def delete(self, blob: Blob) -> None:
        self.calls["delete"] += 1
        if blob.owner_id() is None:
            return
        key = self.object_key(blob)
        self._drop_versions(key[: len(key) - len(blob.file_extension)])

    async def exists(self, blob: Blob) -> bool:
        self.calls["exists"] += 1
        if blob.owner_id() is None:
            return False
        return self.object_key(blob) in self._objects

    def _drop_versions(self, prefix: str) -> None:
        for key in [k for k in self._objects if k == prefix or k.startswith(f"{prefix}.")]:
            del self._objects[key]
