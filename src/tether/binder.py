"""Binds blobs to their owner record's lifecycle.

When a blob is attached to a record field:
- its content is saved when the record is saved. Records with assigned keys
  save blobs in ``saving`` (the id already exists); records with generated
  keys save them in ``saved`` (the id exists only after the insert)
- its content is deleted when the record is deleted, unless the record type
  is soft-delete

Persistence can be suppressed for a whole binder (typically in tests), in
which case neither save nor delete reaches the storage provider.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tether.config import Settings, get_settings
from tether.entities import KeyStrategy
from tether.storage.registry import ProviderRegistry, get_provider_registry

if TYPE_CHECKING:
    from tether.blob import Blob
    from tether.entities import Entity, LifecycleEvent

logger = logging.getLogger(__name__)


class AttachmentBinder:
    """Subscribes blobs to record lifecycle signals."""

    def __init__(
        self,
        providers: ProviderRegistry | None = None,
        *,
        suppress_persistence: bool = False,
        base_url: str = "",
    ) -> None:
        self.providers = providers or get_provider_registry()
        self.suppress_persistence = suppress_persistence
        self.base_url = base_url

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AttachmentBinder:
        """Build a binder from settings (read once)."""
        settings = settings or get_settings()
        return cls(
            ProviderRegistry.from_settings(settings),
            suppress_persistence=settings.suppress_persistence,
            base_url=settings.base_url,
        )

    def attach(self, blob: Blob, owner: Entity, property_name: str) -> Blob:
        """Attach a blob to a record's field and follow the record's lifecycle."""
        if blob.is_attached:
            self.detach(blob)

        blob._bind(owner, property_name, self)

        async def on_owner_saved(event: LifecycleEvent) -> None:
            if self.suppress_persistence:
                logger.debug(f"Persistence suppressed; not saving {blob!r}")
                return
            await blob.save()

        async def on_owner_deleting(event: LifecycleEvent) -> None:
            if self.suppress_persistence:
                logger.debug(f"Persistence suppressed; not deleting {blob!r}")
                return
            if event.entity.entity_type.soft_delete:
                return
            await blob.delete()

        if owner.entity_type.key_strategy is KeyStrategy.ASSIGNED:
            owner.saving.handle(on_owner_saved)
        else:
            owner.saved.handle(on_owner_saved)
        owner.deleting.handle(on_owner_deleting)

        blob._subscriptions = (on_owner_saved, on_owner_deleting)
        return blob

    def detach(self, blob: Blob) -> None:
        """Stop following the owner's lifecycle. Stored content is kept."""
        owner = blob.owner
        if owner is None or blob._subscriptions is None:
            blob._subscriptions = None
            return

        on_saved, on_deleting = blob._subscriptions
        owner.saving.remove_handler(on_saved)
        owner.saved.remove_handler(on_saved)
        owner.deleting.remove_handler(on_deleting)
        blob._subscriptions = None


_binder: AttachmentBinder | None = None


def get_default_binder() -> AttachmentBinder:
    """Return a singleton AttachmentBinder based on settings."""
    global _binder
    if _binder is None:
        _binder = AttachmentBinder.from_settings()
    return _binder


def reset_default_binder() -> None:
    """Reset the binder instance (for testing)."""
    global _binder
    _binder = None
