"""modelsync - dependency-ordered schema synchronization and fixture seeding.

Entities are declared as data (name, attributes, references). modelsync
creates their tables so that every referenced table exists before the tables
pointing at it, then seeds empty tables from JSON fixtures in the same order.

Example:
    from modelsync import ModelManager

    async with ModelManager("sqlite:///library.db", fixture_dir="fixtures") as manager:
        manager.initialize([
            {
                "name": "Author",
                "attributes": [
                    {"name": "id", "type": "int", "primary_key": True},
                    {"name": "name", "type": "string", "nullable": False},
                ],
                "stringable": ["name"],
            },
            {
                "name": "Book",
                "attributes": [
                    {"name": "id", "type": "int", "primary_key": True},
                    {"name": "title", "type": "string"},
                    {"name": "author_id", "type": "int", "references": {"entity": "Author"}},
                ],
            },
        ])

        await manager.sync_all()           # Author, then Book
        await manager.load_fixtures()      # fixtures/Author.json, then fixtures/Book.json
        authors = await manager.get_values("author")   # {1: "Ursula Le Guin", ...}
"""

from modelsync.core.config import ModelSyncSettings
from modelsync.core.manager import ModelManager
from modelsync.core.types import (
    AttributeSpec,
    EntityInfo,
    EntitySpec,
    FieldType,
    FixtureResult,
    OnDeleteActionType,
    ReferenceSpec,
    SyncReport,
)
from modelsync.exceptions import (
    AttributeNotFoundError,
    ConfigurationError,
    EntityNotFoundError,
    FixtureError,
    FixtureReadError,
    ModelSyncError,
    RowInsertError,
    StructuralSyncError,
)
from modelsync.extensions import Extension, apply_extension
from modelsync.fixtures import FixtureRecord
from modelsync.schema import Entity, EntityRegistry, ReferenceResolver, order_entities
from modelsync.storage import SQLAlchemyBackend, StorageBackend
from modelsync.sync import SyncEngine, SyncLedger

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "ModelManager",
    "ModelSyncSettings",
    "Entity",
    "EntityRegistry",
    "ReferenceResolver",
    "SyncEngine",
    "SyncLedger",
    "FixtureRecord",
    "order_entities",
    # Storage
    "StorageBackend",
    "SQLAlchemyBackend",
    # Extensions
    "Extension",
    "apply_extension",
    # Types
    "FieldType",
    "OnDeleteActionType",
    "AttributeSpec",
    "ReferenceSpec",
    "EntitySpec",
    "EntityInfo",
    "SyncReport",
    "FixtureResult",
    # Exceptions
    "ModelSyncError",
    "ConfigurationError",
    "EntityNotFoundError",
    "AttributeNotFoundError",
    "StructuralSyncError",
    "FixtureError",
    "FixtureReadError",
    "RowInsertError",
]
