"""Dependency resolver: which entities does an entity reference?"""

from __future__ import annotations

import logging
from collections.abc import Callable

from modelsync.schema.registry import Entity, EntityRegistry

logger = logging.getLogger(__name__)

TableLookup = Callable[[str], Entity | None]


class ReferenceResolver:
    """Derives reference edges from attribute descriptors.

    Edges are computed on every call and never cached, so they always reflect
    the registry's current definitions.
    """

    def __init__(self, registry: EntityRegistry, table_lookup: TableLookup | None = None) -> None:
        """Initialize the resolver.

        Args:
            registry: Entity registry
            table_lookup: Resolves a table name to an entity. Defaults to a
                reverse lookup over the registry.
        """
        self._registry = registry
        self._table_lookup = table_lookup or registry.find_by_table

    def resolve_table(self, table_name: str) -> Entity | None:
        """Get the entity stored in ``table_name``, if it is managed here."""
        return self._table_lookup(table_name)

    def references_of(self, entity: Entity) -> list[str]:
        """Names of the entities ``entity`` directly references.

        Deduplicated, in attribute declaration order. Self-references are kept.
        Table references that resolve to no known entity are dropped: the
        target is managed outside this registry.
        """
        refs: list[str] = []
        for attr in entity.spec.attributes:
            ref = attr.references
            if ref is None:
                continue

            target: str | None = None
            if ref.entity is not None:
                target = ref.entity
            elif ref.table is not None:
                found = self.resolve_table(ref.table)
                if found is None:
                    logger.debug(
                        f"{entity.name}.{attr.name} references unmanaged table {ref.table}, ignored"
                    )
                    continue
                target = found.name

            if target is not None and target not in refs:
                refs.append(target)
        return refs
