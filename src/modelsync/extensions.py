"""Entity extensions.

An extension is an object passed explicitly to the manager. It may provide
any of three capabilities:

* ``get_attributes(entity)``: attribute specs merged into the entity
  (existing attributes are updated, new ones appended);
* ``get_functions(entity)``: static functions, reachable as ``entity.<name>``;
* ``get_instance_functions(entity)``: wrapper factories. Each factory receives
  the previous implementation (or None) and returns the new one, so several
  extensions can decorate the same behavior. The composition order is kept in
  ``entity.behavior_chain``.

Example:

    class Titled(Extension):
        name = "titled"

        def get_instance_functions(self, entity):
            def to_string(previous):
                def render(row):
                    return row["title"].title()
                return render
            return {"to_string": to_string}
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from modelsync.core.types import AttributeSpec
from modelsync.exceptions import ConfigurationError

if TYPE_CHECKING:
    from modelsync.schema.registry import Entity

logger = logging.getLogger(__name__)

BehaviorFactory = Callable[[Callable[..., Any] | None], Callable[..., Any]]


class Extension:
    """Base class for extensions. Override only the capabilities you provide."""

    name: str = "extension"

    def get_attributes(self, entity: Entity) -> list[AttributeSpec | dict[str, Any]] | None:
        return None

    def get_functions(self, entity: Entity) -> Mapping[str, Callable[..., Any]] | None:
        return None

    def get_instance_functions(self, entity: Entity) -> Mapping[str, BehaviorFactory] | None:
        return None


def _merge_attributes(
    entity: Entity, extension: Extension, attributes: list[AttributeSpec | dict[str, Any]]
) -> None:
    """Merge extension attributes into the entity.

    Raises:
        ConfigurationError: If a merged attribute is malformed
    """
    merged = list(entity.spec.attributes)
    positions = {attr.name: i for i, attr in enumerate(merged)}
    for item in attributes:
        if isinstance(item, AttributeSpec):
            data = item.model_dump(exclude_unset=True)
        else:
            data = dict(item)
        name = data.get("name")
        try:
            if name in positions:
                current = merged[positions[name]]
                merged[positions[name]] = AttributeSpec.model_validate(
                    {**current.model_dump(), **data}
                )
            else:
                positions[name] = len(merged)
                merged.append(AttributeSpec.model_validate(data))
        except ValidationError as e:
            raise ConfigurationError(
                f"Extension {extension.name} gave an invalid attribute '{name}' "
                f"for entity '{entity.name}': {e}",
                {"entity_name": entity.name, "extension": extension.name, "attribute": name},
            ) from e
    entity.spec = entity.spec.model_copy(update={"attributes": merged})


def apply_extension(entity: Entity, extension: Extension, feature: str = "extended") -> int:
    """Apply one extension to an entity.

    Returns:
        Number of capabilities the extension provided

    Raises:
        ConfigurationError: If the extension gives a malformed attribute
    """
    count = 0

    attributes = extension.get_attributes(entity)
    if attributes is not None:
        _merge_attributes(entity, extension, attributes)
        count += 1

    functions = extension.get_functions(entity)
    if functions is not None:
        entity.functions.update(functions)
        count += 1

    factories = extension.get_instance_functions(entity)
    if factories is not None:
        for name, factory in factories.items():
            entity.behaviors[name] = factory(entity.behaviors.get(name))
            entity.behavior_chain.setdefault(name, []).append(extension.name)
        count += 1

    if count == 0:
        logger.warning(
            f"Not extending {entity.name} with {extension.name}, may be missing "
            "get_attributes(), get_functions(), or get_instance_functions()"
        )
    else:
        entity.features.add(feature)
    return count
