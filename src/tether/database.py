"""Record persistence used by blob references.

``EntityDatabase`` is the narrow contract blob resolution needs. The
``InMemoryDatabase`` implements the full save/delete lifecycle for
development and testing: it fires the record's signals around each
operation the way an ORM would.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tether.entities import LifecycleEvent

if TYPE_CHECKING:
    from tether.entities import Entity

logger = logging.getLogger(__name__)


@runtime_checkable
class EntityDatabase(Protocol):
    """Loads records by type and id."""

    async def get_or_none(self, entity_cls: type[Entity], entity_id: Any) -> Entity | None:
        """Return the record with the given id, or None when there is none."""
        ...


class InMemoryDatabase:
    """Dict-backed record store that drives record lifecycle signals."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], Entity] = {}
        self._sequences: dict[str, itertools.count[int]] = {}

    def _key(self, entity: Entity) -> tuple[str, str]:
        return entity.entity_type.name, str(entity.id)

    def _next_id(self, type_name: str) -> int:
        sequence = self._sequences.setdefault(type_name, itertools.count(1))
        return next(sequence)

    async def save(self, entity: Entity) -> bool:
        """Persist a record.

        Fires ``saving`` (cancellable), assigns a generated id to new records
        that have none, stores the record and fires ``saved``.

        Returns:
            False if a ``saving`` handler cancelled the save
        """
        event = LifecycleEvent(entity, cancellable=True, data={"is_new": entity.is_new})
        await entity.saving.fire(event)
        if event.cancelled:
            return False

        if entity.id is None:
            entity.id = self._next_id(entity.entity_type.name)

        is_new = entity.is_new
        self._records[self._key(entity)] = entity
        entity.is_new = False
        logger.debug(f"Saved {entity!r}")

        await entity.saved.fire(LifecycleEvent(entity, data={"is_new": is_new}))
        return True

    async def delete(self, entity: Entity) -> bool:
        """Delete a record.

        Fires ``deleting`` (cancellable). Soft-delete record types are only
        marked as deleted; others are removed.

        Returns:
            False if a ``deleting`` handler cancelled the delete
        """
        event = LifecycleEvent(entity, cancellable=True)
        await entity.deleting.fire(event)
        if event.cancelled:
            return False

        if entity.entity_type.soft_delete:
            entity.is_marked_deleted = True
        else:
            self._records.pop(self._key(entity), None)
        logger.debug(f"Deleted {entity!r}")
        return True

    async def get_or_none(self, entity_cls: type[Entity], entity_id: Any) -> Entity | None:
        entity = self._records.get((entity_cls.entity_type.name, str(entity_id)))
        if entity is None or entity.is_marked_deleted:
            return None
        return entity

    def __len__(self) -> int:
        return sum(1 for entity in self._records.values() if not entity.is_marked_deleted)
