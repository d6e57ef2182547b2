"""Blob: a binary attachment on a record field.

A Blob holds (or lazily loads) the bytes of one file attached to a record.
Content is stored through the provider that serves the blob's logical folder
(``<OwnerType>.<OwnerProperty>`` unless overridden), addressed by the owner's
id and the file extension.

Example:
    invoice = Invoice(binder=binder)
    invoice.attachment = Blob(b"%PDF-1.7 ...", "invoice.pdf")
    await database.save(invoice)  # writes Invoice.attachment/1.pdf

    invoice.attachment.url()  # "/files/Invoice.attachment/1.pdf"
"""

from __future__ import annotations

import logging
import mimetypes
import weakref
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import aiofiles  # type: ignore[import-untyped]

from tether.entities import KeyStrategy
from tether.errors import (
    ContentDecodeError,
    InvalidArgumentError,
    InvalidStateError,
)
from tether.observability.logging import LogContext
from tether.safety import file_extension, is_unsafe_extension, to_safe_file_name
from tether.storage.registry import get_provider_registry

if TYPE_CHECKING:
    from tether.binder import AttachmentBinder
    from tether.database import EntityDatabase
    from tether.entities import Entity, EntityTypeRegistry, LifecycleHandler
    from tether.storage.base import BlobStorage
    from tether.storage.registry import ProviderRegistry

logger = logging.getLogger(__name__)

EMPTY_FILE = "NoFile.Empty"


class Blob:
    """Binary attachment with lazy loading and provider-backed persistence."""

    def __init__(
        self,
        data: bytes | None = None,
        file_name: str | None = None,
        *,
        providers: ProviderRegistry | None = None,
    ) -> None:
        self._data = data
        self._file_name = to_safe_file_name(file_name)
        self._folder_name: str | None = None
        self._owner_ref: weakref.ref[Entity] | None = None
        self._owner_property: str | None = None
        self._is_empty_marker = False
        self._has_value = False  # Existence confirmed; skips further probes
        self._providers = providers
        self._base_url = ""
        self._binder: AttachmentBinder | None = None
        self._subscriptions: tuple[LifecycleHandler, LifecycleHandler] | None = None

    @classmethod
    def empty(cls) -> Blob:
        """Return a new empty marker blob."""
        blob = cls(None, EMPTY_FILE)
        blob._is_empty_marker = True
        return blob

    @classmethod
    async def from_file(cls, path: str | Path, **kwargs: Any) -> Blob:
        """Create a detached blob from a file on disk."""
        path = Path(path)
        async with aiofiles.open(path, "rb") as f:
            data = await f.read()
        return cls(data, path.name, **kwargs)

    @staticmethod
    async def from_reference(
        reference: str,
        *,
        types: EntityTypeRegistry,
        database: EntityDatabase,
    ) -> Blob:
        """Return the blob addressed by a ``Type/Id/Property`` reference."""
        from tether.references import resolve_reference

        return await resolve_reference(reference, types=types, database=database)

    # -- Names and locations -------------------------------------------------

    @property
    def file_name(self) -> str:
        return self._file_name or EMPTY_FILE

    @file_name.setter
    def file_name(self, value: str | None) -> None:
        self._file_name = to_safe_file_name(value)

    @property
    def file_extension(self) -> str:
        """Extension with its leading dot, or an empty string."""
        return file_extension(self._file_name)

    @property
    def file_name_without_extension(self) -> str:
        name = self.file_name
        extension = file_extension(name)
        return name[: len(name) - len(extension)] if extension else name

    @property
    def mime_type(self) -> str:
        mime_type, _ = mimetypes.guess_type(self.file_name)
        return mime_type or "application/octet-stream"

    def is_media(self) -> bool:
        """Determine if the file extension is for audio or video."""
        return self.mime_type.startswith(("audio/", "video/"))

    def has_unsafe_extension(self) -> bool:
        """Determine whether the extension of this file is potentially unsafe."""
        return is_unsafe_extension(self.file_name)

    @property
    def folder_name(self) -> str | None:
        """Logical storage folder, ``<OwnerType>.<OwnerProperty>`` unless overridden."""
        if self._folder_name is not None:
            return self._folder_name
        owner = self.owner
        if owner is None:
            return self._owner_property
        return f"{owner.entity_type.name}.{self._owner_property}"

    @folder_name.setter
    def folder_name(self, value: str | None) -> None:
        self._folder_name = value

    # -- Ownership -----------------------------------------------------------

    @property
    def owner(self) -> Entity | None:
        if self._owner_ref is None:
            return None
        return self._owner_ref()

    @property
    def owner_property(self) -> str | None:
        return self._owner_property

    @property
    def is_attached(self) -> bool:
        """Whether the blob follows its owner's save and delete."""
        return self._subscriptions is not None

    @property
    def is_empty_marker(self) -> bool:
        return self._is_empty_marker

    @property
    def raw_data(self) -> bytes | None:
        """In-memory content, None until loaded or set."""
        return self._data

    def _bind(self, owner: Entity, property_name: str, binder: AttachmentBinder) -> None:
        self._owner_ref = weakref.ref(owner)
        self._owner_property = property_name
        self._binder = binder
        self._providers = binder.providers
        self._base_url = binder.base_url

    def owner_id(self) -> str | None:
        """Return the owner's id as text, None while it has none."""
        owner = self.owner
        if owner is None:
            return None
        if owner.entity_type.key_strategy is KeyStrategy.GENERATED and owner.is_new:
            return None
        if owner.id is None:
            return None
        return str(owner.id)

    def reference(self) -> str | None:
        """Return the ``Type/Id/Property`` reference of an attached blob."""
        from tether.references import format_reference

        return format_reference(self)

    def storage(self) -> BlobStorage:
        """Resolve the provider that serves this blob's folder."""
        providers = self._providers or get_provider_registry()
        return providers.resolve(self.folder_name)

    # -- Content -------------------------------------------------------------

    async def is_empty(self) -> bool:
        """Determine whether this blob has no content."""
        if self._has_value:
            return False

        if self._is_empty_marker or self.file_name == EMPTY_FILE:
            return True

        if self._data is not None:
            return len(self._data) == 0

        storage = self.storage()
        if storage.costs_to_check_existence() or await storage.exists(self):
            self._has_value = True
            return False

        return True

    async def has_value(self) -> bool:
        return not await self.is_empty()

    async def get_content(self) -> bytes:
        """Return the content, loading it from the provider on first access."""
        if await self.is_empty():
            return b""

        if self._data:
            return self._data

        self._data = await self.storage().load(self)
        return self._data

    def set_content(self, data: bytes | None) -> None:
        """Replace the in-memory content. Clearing is done with ``delete()``."""
        if not data:
            raise InvalidArgumentError("Blob content must be a non-empty byte sequence.")
        self._data = bytes(data)

    def unload(self) -> None:
        """Drop the in-memory content so the next read goes to the provider."""
        self._data = None

    async def get_content_text(self, encoding: str = "utf-8") -> str:
        """Return the content decoded as text."""
        if await self.is_empty():
            return ""

        data = await self.get_content()
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as exc:
            owner = self.owner
            raise ContentDecodeError(
                owner.entity_type.name if owner is not None else None,
                self.owner_id(),
                self._owner_property,
            ) from exc

    async def save(self) -> None:
        """Save this file to the storage provider."""
        if self._data:
            with self._log_context("save"):
                await self.storage().save(self)
                logger.debug(f"Saved {len(self._data)} bytes")
            self._has_value = True
        elif self._is_empty_marker:
            await self.delete()

    async def delete(self) -> None:
        """Delete this blob from the storage provider."""
        if self.owner is None:
            raise InvalidStateError("Cannot delete a blob that is not attached to a record.")

        with self._log_context("delete"):
            await self.storage().delete(self)
            logger.debug("Deleted stored content")
        self._data = None
        self._has_value = False

    def _log_context(self, operation: str) -> LogContext:
        return LogContext(
            operation=operation,
            folder=self.folder_name or "",
            owner=self.reference() or "",
        )

    async def clone(self, attach: bool = False, readonly: bool = False) -> Blob:
        """Create a copy of this blob with its own content buffer.

        Args:
            attach: Bind the copy to this blob's owner and property
            readonly: With ``attach``, only record the owner; the copy is never
                saved or deleted with the owner
        """
        if readonly and not attach:
            raise InvalidArgumentError("readonly can be set to true only when attaching.")

        owner = self.owner
        if owner is None:
            result = Blob(self._data or None, self.file_name, providers=self._providers)
            result._folder_name = self._folder_name
            return result

        result = Blob(await self.get_content() or None, self.file_name, providers=self._providers)
        result._folder_name = self._folder_name
        if not attach:
            return result

        if readonly:
            result._owner_ref = weakref.ref(owner)
            result._owner_property = self._owner_property
            result._base_url = self._base_url
            return result

        if self._binder is None:
            raise InvalidStateError("A read-only blob cannot hand its binding to a clone.")
        property_name = self._owner_property or ""
        if owner.__dict__.get(f"_blob_{property_name}") is self:
            setattr(owner, property_name, result)
        else:
            binder = self._binder
            binder.detach(self)
            binder.attach(result, owner, property_name)
        return result

    async def or_(self, other: Blob) -> Blob:
        """Return this blob if it has a value, otherwise ``other``."""
        if await self.is_empty():
            return other
        return self

    # -- URLs ----------------------------------------------------------------

    def url(self) -> str | None:
        """Return the public URL of this blob, None when detached."""
        if self.owner is None:
            return None
        return f"{self._base_url}{self.folder_name}/{self.owner_id() or ''}{self.file_extension}"

    async def url_or(self, default: str | None) -> str | None:
        """Return the URL, or ``default`` if this blob is empty."""
        if await self.is_empty():
            return default
        return self.url()

    def cache_safe_url(self) -> str | None:
        """Return the URL with a random query parameter appended."""
        result = self.url()
        if not result:
            return result
        separator = "&" if "?" in result else "?"
        return f"{result}{separator}RANDOM={uuid4()}"

    # -- Comparison ----------------------------------------------------------

    def _known_empty(self) -> bool:
        """Emptiness decidable without a provider round trip."""
        if self._has_value:
            return False
        if self._is_empty_marker or self.file_name == EMPTY_FILE:
            return True
        return self._data is not None and len(self._data) == 0

    def __eq__(self, other: object) -> bool:
        """Compare using local state only.

        An attached blob whose content lives only in its provider is not
        probed here, so it never equals an empty blob. Use ``equals()`` for
        the check that asks the provider.
        """
        if not isinstance(other, Blob):
            return NotImplemented
        if self is other:
            return True
        return self._known_empty() and other._known_empty()

    __hash__ = None  # type: ignore[assignment]

    async def equals(self, other: Blob | None) -> bool:
        """Equality including the provider existence probe."""
        if other is None:
            return False
        if self is other:
            return True
        return await self.is_empty() and await other.is_empty()

    async def compare_to(self, other: Blob | None) -> int:
        """Order blobs: empty first, then by in-memory content length."""
        if other is None:
            return 1

        if await self.is_empty():
            return 0 if await other.is_empty() else -1

        if await other.is_empty():
            return 1

        mine = len(self._data) if self._data is not None else None
        theirs = len(other._data) if other._data is not None else None
        if mine == theirs:
            return 0
        if mine is not None and theirs is not None and mine > theirs:
            return 1
        return -1

    def __str__(self) -> str:
        return self.url() or ""

    def __repr__(self) -> str:
        return f"<Blob {self.file_name!r} folder={self.folder_name!r} owner_id={self.owner_id()!r}>"
