"""Topological ordering of entities by their references."""

from __future__ import annotations

import heapq
import logging

from modelsync.schema.registry import Entity, EntityRegistry
from modelsync.schema.resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def order_entities(registry: EntityRegistry, resolver: ReferenceResolver) -> list[Entity]:
    """Order entities so referenced ones come before referencing ones.

    Kahn's algorithm; among entities that are ready at the same time the
    earliest registered goes first. Cycles do not raise: when nothing is
    ready, the earliest registered remaining entity is released. The
    synchronization engine handles the cycle itself.
    """
    entities = registry.all()
    position = {entity.name: registry.index_of(entity.name) for entity in entities}

    # dependency -> dependents, and count of unresolved dependencies per entity
    dependents: dict[str, list[str]] = {entity.name: [] for entity in entities}
    pending: dict[str, int] = {}
    for entity in entities:
        deps = [
            name
            for name in resolver.references_of(entity)
            if name != entity.name and name in position
        ]
        pending[entity.name] = len(deps)
        for dep in deps:
            dependents[dep].append(entity.name)

    ready = [position[name] for name, count in pending.items() if count == 0]
    heapq.heapify(ready)

    result: list[Entity] = []
    done: set[str] = set()
    while len(result) < len(entities):
        if not ready:
            # Only cycles left
            stuck = min((n for n in pending if n not in done), key=position.__getitem__)
            logger.debug(f"Reference cycle through {stuck}, releasing it early")
            heapq.heappush(ready, position[stuck])

        name = entities[heapq.heappop(ready)].name
        if name in done:
            continue
        done.add(name)
        result.append(entities[position[name]])

        for dependent in dependents[name]:
            pending[dependent] -= 1
            if pending[dependent] == 0 and dependent not in done:
                heapq.heappush(ready, position[dependent])

    return result
