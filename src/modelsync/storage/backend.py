"""Storage backend boundary consumed by the sync engine and fixture pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from modelsync.schema.registry import Entity, EntityRegistry


@runtime_checkable
class StorageBackend(Protocol):
    """Capabilities the core needs from a relational engine.

    Every coroutine is a suspension point; the core never runs two of them
    concurrently.
    """

    def bind(self, registry: EntityRegistry) -> None:
        """Attach the registry whose entities this backend stores."""
        ...

    async def sync_entity(self, entity: Entity, force: bool = False) -> None:
        """Create the entity's storage if needed; ``force`` recreates it."""
        ...

    async def count_rows(self, entity: Entity) -> int: ...

    async def insert_row(self, entity: Entity, values: dict[str, Any]) -> None: ...

    async def fetch_rows(
        self, entity: Entity, where: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]: ...

    def resolve_reference_target(self, table_name: str) -> Entity | None:
        """Entity stored in ``table_name``, or None when it is not managed here."""
        ...

    async def close(self) -> None: ...
