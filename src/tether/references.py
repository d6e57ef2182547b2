"""Blob references: ``<OwnerType>/<OwnerId>/<Property>`` strings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tether.errors import (
    InvalidReferenceError,
    OwnerNotFoundError,
    OwnerTypeNotFoundError,
    PropertyNotFoundError,
)

if TYPE_CHECKING:
    from tether.blob import Blob
    from tether.database import EntityDatabase
    from tether.entities import EntityTypeRegistry


def parse_reference(reference: str | None) -> tuple[str, str, str]:
    """Split a reference into type name, owner id and property name."""
    parts = (reference or "").split("/")
    if len(parts) != 3 or not all(parts):
        raise InvalidReferenceError(reference)
    type_name, owner_id, property_name = parts
    return type_name, owner_id, property_name


def format_reference(blob: Blob) -> str | None:
    """Build the reference of an attached blob, None while it has no owner id."""
    owner = blob.owner
    owner_id = blob.owner_id()
    if owner is None or owner_id is None or blob.owner_property is None:
        return None
    return f"{owner.entity_type.name}/{owner_id}/{blob.owner_property}"


async def resolve_reference(
    reference: str,
    *,
    types: EntityTypeRegistry,
    database: EntityDatabase,
) -> Blob:
    """Load the owner record named by a reference and return its blob.

    Raises:
        InvalidReferenceError: If the reference is not in ``Type/Id/Property`` form
        OwnerTypeNotFoundError: If the type name is not registered
        PropertyNotFoundError: If the type has no blob field with that name
        OwnerNotFoundError: If no record has that id
    """
    type_name, owner_id, property_name = parse_reference(reference)

    entity_cls = types.get(type_name)
    if entity_cls is None:
        raise OwnerTypeNotFoundError(type_name)

    if property_name not in entity_cls.entity_type.blob_fields:
        raise PropertyNotFoundError(type_name, property_name)

    entity = await database.get_or_none(entity_cls, owner_id)
    if entity is None:
        raise OwnerNotFoundError(type_name, owner_id)

    blob: Blob = getattr(entity, property_name)
    return blob
