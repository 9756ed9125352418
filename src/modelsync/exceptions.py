"""Custom exceptions for modelsync.

Errors carry a human-readable message plus a machine-readable context dict, so
callers (and the CLI in --json mode) can report exactly which entity failed.
"""

from __future__ import annotations

from typing import Any


class ModelSyncError(Exception):
    """Base exception for all modelsync errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConnectionError(ModelSyncError):
    """Failed to connect to the database."""

    pass


class ConfigurationError(ModelSyncError):
    """Entity or attribute definitions are malformed.

    Raised during initialization, before any synchronization begins.
    """

    pass


class EntityNotFoundError(ModelSyncError):
    """Entity is not registered."""

    def __init__(self, entity_name: str, available_entities: list[str] | None = None) -> None:
        available = available_entities or []
        if available:
            message = (
                f"Entity '{entity_name}' not found. Available entities: {', '.join(available)}"
            )
        else:
            message = f"Entity '{entity_name}' not found. No entities registered yet."

        super().__init__(message, {"entity_name": entity_name, "available_entities": available})
        self.entity_name = entity_name
        self.available_entities = available


class AttributeNotFoundError(ModelSyncError):
    """Attribute does not exist on entity."""

    def __init__(
        self, attribute_name: str, entity_name: str, available_attributes: list[str] | None = None
    ) -> None:
        available = available_attributes or []
        message = (
            f"Attribute '{attribute_name}' not found on '{entity_name}'. "
            f"Available attributes: {', '.join(available) or '(none)'}"
        )
        super().__init__(
            message,
            {
                "attribute_name": attribute_name,
                "entity_name": entity_name,
                "available_attributes": available,
            },
        )
        self.attribute_name = attribute_name
        self.entity_name = entity_name
        self.available_attributes = available


class StructuralSyncError(ModelSyncError):
    """The storage backend rejected creating or recreating an entity's table."""

    def __init__(self, entity_name: str, reason: str) -> None:
        message = f"Cannot synchronize entity '{entity_name}': {reason}"
        super().__init__(message, {"entity_name": entity_name, "reason": reason})
        self.entity_name = entity_name
        self.reason = reason


class FixtureError(ModelSyncError):
    """Loading a fixture failed. Isolated to that fixture."""

    def __init__(self, entity_name: str, reason: str, context: dict[str, Any] | None = None) -> None:
        message = f"Fixture for '{entity_name}' failed: {reason}"
        super().__init__(message, {"entity_name": entity_name, "reason": reason, **(context or {})})
        self.entity_name = entity_name
        self.reason = reason


class FixtureReadError(FixtureError):
    """Fixture source is unreadable or malformed."""

    def __init__(self, entity_name: str, source: str, reason: str) -> None:
        super().__init__(entity_name, f"cannot read {source}: {reason}", {"source": source})
        self.source = source


class RowInsertError(FixtureError):
    """A single fixture row could not be inserted.

    The remaining rows of the same fixture are not attempted.
    """

    def __init__(self, entity_name: str, row_index: int, reason: str) -> None:
        super().__init__(
            entity_name,
            f"row {row_index} rejected: {reason}",
            {"row_index": row_index, "rows_inserted": row_index},
        )
        self.row_index = row_index
