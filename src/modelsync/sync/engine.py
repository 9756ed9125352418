"""Synchronization engine.

Ensures every entity's storage exists, creating referenced entities first.
Each entity is synchronized at most once per run:

- the ledger records entities whose structural sync completed;
- the in-progress set marks entities whose dependencies are being walked,
  which is what terminates reference cycles (A -> B -> A, or A -> A).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from modelsync.exceptions import EntityNotFoundError, ModelSyncError, StructuralSyncError
from modelsync.schema.ordering import order_entities

if TYPE_CHECKING:
    from modelsync.schema.registry import Entity, EntityRegistry
    from modelsync.schema.resolver import ReferenceResolver
    from modelsync.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class SyncLedger:
    """Names of entities synchronized in this run, in completion order.

    Only grows.
    """

    def __init__(self) -> None:
        self._names: list[str] = []
        self._index: set[str] = set()

    def add(self, name: str) -> None:
        if name not in self._index:
            self._index.add(name)
            self._names.append(name)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)


class SyncEngine:
    """Drives structural synchronization in dependency order."""

    def __init__(
        self,
        registry: EntityRegistry,
        resolver: ReferenceResolver,
        backend: StorageBackend,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._backend = backend
        self._ledger = SyncLedger()
        self._in_progress: set[str] = set()

    @property
    def ledger(self) -> SyncLedger:
        return self._ledger

    async def sync(self, entity: Entity, force: bool = False) -> None:
        """Synchronize ``entity`` after everything it references.

        No-op if the entity was already synchronized in this run, or if it is
        currently being synchronized further up the call stack (a cycle).

        Raises:
            StructuralSyncError: If the backend rejects this or a referenced entity
            EntityNotFoundError: If a referenced entity is not registered
        """
        name = entity.name
        if name in self._ledger or name in self._in_progress:
            return

        self._in_progress.add(name)
        try:
            for ref in self._resolver.references_of(entity):
                target = self._registry.get(ref)
                if target is None:
                    raise EntityNotFoundError(ref, self._registry.names())
                await self.sync(target, force)

            logger.debug(f"Synchronizing {name} (force={force})")
            try:
                await self._backend.sync_entity(entity, force)
            except ModelSyncError:
                raise
            except Exception as e:
                raise StructuralSyncError(name, str(e)) from e

            self._ledger.add(name)
        finally:
            self._in_progress.discard(name)

    async def sync_all(self, force: bool = False) -> list[str]:
        """Synchronize every registered entity.

        The topological order only makes the run predictable; the recursive
        walk in :meth:`sync` is what guarantees referenced entities go first.

        Returns:
            Names synchronized by this call, in completion order
        """
        before = len(self._ledger)
        for entity in order_entities(self._registry, self._resolver):
            await self.sync(entity, force)
        return list(self._ledger)[before:]
