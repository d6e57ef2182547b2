"""Global pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from tether.binder import AttachmentBinder, reset_default_binder
from tether.config import reset_settings
from tether.database import InMemoryDatabase
from tether.storage.memory import InMemoryBlobStorage
from tether.storage.registry import ProviderRegistry, reset_provider_registry


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep every test away from real configuration and shared singletons."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BLOB_STORAGE_TYPE", "memory")
    monkeypatch.setenv("BLOB_STORAGE_PATH", str(tmp_path / "blobs"))
    monkeypatch.delenv("BLOB_FOLDER_STORAGE", raising=False)
    monkeypatch.delenv("BLOB_SUPPRESS_PERSISTENCE", raising=False)
    for name in ("BLOB_BASE_URL", "S3_BUCKET", "GCS_BUCKET", "AZURE_CONTAINER"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    reset_provider_registry()
    reset_default_binder()
    yield
    reset_settings()
    reset_provider_registry()
    reset_default_binder()


@pytest.fixture
def memory_storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def registry(memory_storage: InMemoryBlobStorage) -> ProviderRegistry:
    return ProviderRegistry(default=memory_storage)


@pytest.fixture
def binder(registry: ProviderRegistry) -> AttachmentBinder:
    return AttachmentBinder(registry, base_url="/files/")


@pytest.fixture
def database() -> InMemoryDatabase:
    return InMemoryDatabase()
