"""Entity registry: the single source of truth for loaded entity definitions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from modelsync.core.types import AttributeSpec, EntitySpec
from modelsync.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def to_table_name(entity_name: str) -> str:
    """Convert entity name to table name (e.g., CustomerOrder -> customer_order)."""
    result = []
    for i, char in enumerate(entity_name):
        if char.isupper() and i > 0 and entity_name[i - 1] != "_":
            result.append("_")
        result.append(char.lower())
    safe_name = "".join(result).replace(" ", "_").replace("-", "_")
    while "__" in safe_name:
        safe_name = safe_name.replace("__", "_")
    return safe_name


@dataclass
class Entity:
    """A registered entity definition plus runtime metadata.

    ``spec`` holds the persisted shape. Everything else (features,
    fixture, functions, behaviors) is attached after registration and never
    changes the table structure.
    """

    spec: EntitySpec
    features: set[str] = field(default_factory=set)
    fixture: Any = None
    functions: dict[str, Callable[..., Any]] = field(default_factory=dict)
    behaviors: dict[str, Callable[..., Any]] = field(default_factory=dict)
    behavior_chain: dict[str, list[str]] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def table_name(self) -> str:
        return self.spec.table_name or to_table_name(self.spec.name)

    @property
    def attributes(self) -> dict[str, AttributeSpec]:
        """Attributes keyed by name, in declaration order."""
        return {attr.name: attr for attr in self.spec.attributes}

    @property
    def primary_key(self) -> str | None:
        """Name of the primary key attribute. The first one declared wins."""
        for attr in self.spec.attributes:
            if attr.primary_key:
                return attr.name
        return None

    @property
    def stringable(self) -> list[str] | None:
        return self.spec.stringable

    def call(self, behavior: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke a composed instance behavior.

        Raises:
            AttributeError: If no extension provides the behavior
        """
        fn = self.behaviors.get(behavior)
        if fn is None:
            raise AttributeError(f"Entity '{self.name}' has no behavior '{behavior}'")
        return fn(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        # Static functions attached by extensions, e.g. entity.find_active()
        functions = self.__dict__.get("functions")
        if functions is not None and name in functions:
            return functions[name]
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")


class EntityRegistry:
    """Mapping of entity name to Entity, in registration order.

    ``version`` increments on every registration so consumers that derive
    structures from the registry (e.g. table metadata) know to rebuild them.
    """

    def __init__(self) -> None:
        self._entities: dict[str, Entity] = {}
        self.version = 0

    def register(self, entity: Entity | EntitySpec) -> Entity:
        """Insert or replace an entity.

        Raises:
            ConfigurationError: If attribute names are not unique
        """
        if isinstance(entity, EntitySpec):
            entity = Entity(spec=entity)
        self.validate(entity)

        if entity.name in self._entities:
            logger.debug(f"Replacing entity {entity.name}")
        self._entities[entity.name] = entity
        self.version += 1
        return entity

    def validate(self, entity: Entity) -> None:
        """Check an entity can be registered without touching the registry.

        Raises:
            ConfigurationError: If attribute names are not unique
        """
        seen: set[str] = set()
        for attr in entity.spec.attributes:
            if attr.name in seen:
                raise ConfigurationError(
                    f"Attribute '{attr.name}' is declared twice on '{entity.name}'",
                    {"entity_name": entity.name, "attribute": attr.name},
                )
            seen.add(attr.name)

    def get(self, name: str) -> Entity | None:
        return self._entities.get(name)

    def all(self) -> list[Entity]:
        """All entities in the order they were registered."""
        return list(self._entities.values())

    def names(self) -> list[str]:
        return list(self._entities)

    def index_of(self, name: str) -> int:
        """Registration position of an entity, used as ordering tie-break."""
        return list(self._entities).index(name)

    def find_by_table(self, table_name: str) -> Entity | None:
        """Reverse lookup: entity whose table is ``table_name``."""
        for entity in self._entities.values():
            if entity.table_name == table_name:
                return entity
        return None

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)
