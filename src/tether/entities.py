"""Owner records and their lifecycle signals.

Blobs hang off records through ``BlobField`` descriptors. A record exposes
three notification points that blobs subscribe to:
- ``saving``: before the record is persisted (cancellable)
- ``saved``: after the record is persisted
- ``deleting``: before the record is deleted (cancellable)

The record type carries an explicit descriptor with its key strategy and
soft-delete flag:

    class Invoice(Entity, key_strategy=KeyStrategy.GENERATED):
        attachment = BlobField()

    class Customer(Entity, key_strategy=KeyStrategy.ASSIGNED, soft_delete=True):
        photo = BlobField()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar
from uuid import uuid4

from tether.errors import InvalidStateError

if TYPE_CHECKING:
    from tether.binder import AttachmentBinder
    from tether.blob import Blob

logger = logging.getLogger(__name__)


class KeyStrategy(Enum):
    """How a record gets its identifier."""

    ASSIGNED = "assigned"  # Known before persistence (uuid keys)
    GENERATED = "generated"  # Assigned by the database on first save


@dataclass(frozen=True)
class EntityType:
    """Descriptor of a record type."""

    name: str
    key_strategy: KeyStrategy = KeyStrategy.GENERATED
    soft_delete: bool = False
    blob_fields: tuple[str, ...] = ()


@dataclass
class LifecycleEvent:
    """Event passed to lifecycle handlers."""

    entity: Entity
    cancellable: bool = False
    cancelled: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    def cancel(self) -> None:
        """Cancel the pending operation."""
        if not self.cancellable:
            raise InvalidStateError("This lifecycle event cannot be cancelled.")
        self.cancelled = True


LifecycleHandler = Callable[[LifecycleEvent], Awaitable[None]]


class LifecycleSignal:
    """Ordered list of async handlers for one lifecycle point.

    Handler errors propagate to whoever fires the signal, so a failing
    handler aborts the record operation.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[LifecycleHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, handler: object) -> bool:
        return handler in self._handlers

    def handle(self, handler: LifecycleHandler) -> None:
        """Subscribe a handler. Subscribing the same handler twice is a no-op."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def remove_handler(self, handler: LifecycleHandler) -> None:
        """Unsubscribe a handler if it is subscribed."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def fire(self, event: LifecycleEvent) -> None:
        """Run handlers in subscription order, stopping once the event is cancelled."""
        for handler in list(self._handlers):
            await handler(event)
            if event.cancelled:
                logger.debug(f"{self.name} cancelled for {event.entity!r}")
                break


class BlobField:
    """Descriptor for a blob-valued field on a record.

    Reading an unset field returns an attached blob with no file. Assigning
    a blob detaches the previous one and attaches the new one. Assigning
    ``None`` stores an empty marker, which purges stored content on the next
    save.
    """

    def __init__(self) -> None:
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    @property
    def _slot(self) -> str:
        return f"_blob_{self.name}"

    def __get__(self, instance: Entity | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        blob = instance.__dict__.get(self._slot)
        if blob is None:
            from tether.blob import Blob

            blob = instance.binder.attach(Blob(), instance, self.name)
            instance.__dict__[self._slot] = blob
        return blob

    def __set__(self, instance: Entity, value: Blob | None) -> None:
        current = instance.__dict__.get(self._slot)
        if current is value and value is not None:
            return
        if current is not None:
            instance.binder.detach(current)
        if value is None:
            from tether.blob import Blob

            value = Blob.empty()
        instance.__dict__[self._slot] = instance.binder.attach(value, instance, self.name)


class Entity:
    """Base class for records that own blobs."""

    entity_type: ClassVar[EntityType] = EntityType(name="Entity")

    def __init_subclass__(
        cls,
        *,
        key_strategy: KeyStrategy | None = None,
        soft_delete: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        parent = cls.entity_type
        blob_fields: list[str] = []
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, BlobField) and name not in blob_fields:
                    blob_fields.append(name)
        cls.entity_type = EntityType(
            name=cls.__name__,
            key_strategy=key_strategy or parent.key_strategy,
            soft_delete=parent.soft_delete if soft_delete is None else soft_delete,
            blob_fields=tuple(blob_fields),
        )

    def __init__(self, id: Any = None, *, binder: AttachmentBinder | None = None) -> None:
        if id is None and self.entity_type.key_strategy is KeyStrategy.ASSIGNED:
            id = uuid4()
        self.id = id
        self.is_new = True
        self.is_marked_deleted = False
        self._binder = binder
        self.saving = LifecycleSignal("saving")
        self.saved = LifecycleSignal("saved")
        self.deleting = LifecycleSignal("deleting")

    @property
    def binder(self) -> AttachmentBinder:
        """Binder used to attach this record's blobs."""
        if self._binder is None:
            from tether.binder import get_default_binder

            self._binder = get_default_binder()
        return self._binder

    def __repr__(self) -> str:
        return f"<{self.entity_type.name} id={self.id!r}>"


class EntityTypeRegistry:
    """Resolves record type names to record classes."""

    def __init__(self, *types: type[Entity]) -> None:
        self._types: dict[str, type[Entity]] = {}
        for entity_cls in types:
            self.register(entity_cls)

    def register(self, entity_cls: type[Entity]) -> type[Entity]:
        """Register a record class under its type name. Usable as a decorator."""
        self._types[entity_cls.entity_type.name] = entity_cls
        return entity_cls

    def get(self, name: str) -> type[Entity] | None:
        return self._types.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def names(self) -> list[str]:
        return sorted(self._types)

