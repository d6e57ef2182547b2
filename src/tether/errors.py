"""Typed errors for tether."""

from __future__ import annotations


class TetherError(Exception):
    """Base exception for all tether errors."""


class InvalidArgumentError(TetherError, ValueError):
    """Raised when a caller passes a value the operation cannot accept."""


class InvalidReferenceError(InvalidArgumentError):
    """Raised when a blob reference string is not in ``Type/Id/Property`` form."""

    def __init__(self, reference: str | None) -> None:
        self.reference = reference
        super().__init__(f"Expected format is Type/ID/Property, got {reference!r}.")


class InvalidStateError(TetherError, RuntimeError):
    """Raised when an operation is not valid for the blob's current state."""


class NotFoundError(TetherError, LookupError):
    """Base class for lookups that found nothing."""


class OwnerTypeNotFoundError(InvalidArgumentError, NotFoundError):
    """Raised when a reference names an owner type that is not registered."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"The type '{type_name}' is not a registered entity type.")


class OwnerNotFoundError(InvalidArgumentError, NotFoundError):
    """Raised when no owner record exists with the referenced id."""

    def __init__(self, type_name: str, owner_id: str) -> None:
        self.type_name = type_name
        self.owner_id = owner_id
        super().__init__(
            f"Could not load an instance of '{type_name}' with the ID of '{owner_id}'."
        )


class PropertyNotFoundError(NotFoundError):
    """Raised when an owner type has no blob field with the referenced name."""

    def __init__(self, type_name: str, property_name: str) -> None:
        self.type_name = type_name
        self.property_name = property_name
        super().__init__(f"The type {type_name} does not have a blob property named {property_name}.")


class ContentDecodeError(TetherError):
    """Raised when blob content cannot be read as text."""

    def __init__(self, owner_type: str | None, owner_id: str | None, property_name: str | None) -> None:
        self.owner_type = owner_type
        self.owner_id = owner_id
        self.property_name = property_name
        super().__init__(
            f"The {property_name} of the {owner_type} entity ({owner_id}) cannot be converted to text."
        )


class ProviderNotConfiguredError(TetherError):
    """Raised when no storage provider serves a folder."""

    def __init__(self, folder_name: str | None) -> None:
        self.folder_name = folder_name
        super().__init__(f"No blob storage provider is configured for folder {folder_name!r}.")
