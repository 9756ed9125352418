"""Entity definitions and their reference graph."""

from modelsync.schema.ordering import order_entities
from modelsync.schema.registry import Entity, EntityRegistry, to_table_name
from modelsync.schema.resolver import ReferenceResolver

__all__ = [
    "Entity",
    "EntityRegistry",
    "ReferenceResolver",
    "order_entities",
    "to_table_name",
]
