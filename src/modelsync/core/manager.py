"""ModelManager: the public entry point of modelsync."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from modelsync.core.config import ModelSyncSettings
from modelsync.core.connection import DatabaseConnection
from modelsync.core.types import EntityInfo, EntitySpec, FixtureResult, SyncReport
from modelsync.data.values import RowValues, UnknownHandler, create_instance, rows_by_key, set_values
from modelsync.exceptions import AttributeNotFoundError, ConfigurationError, EntityNotFoundError
from modelsync.extensions import Extension, apply_extension
from modelsync.fixtures import (
    FixturePipeline,
    FixtureRecord,
    ProgressCallback,
    discover_fixtures,
    inline_fixtures,
    sort_records,
)
from modelsync.schema.ordering import order_entities
from modelsync.schema.registry import Entity, EntityRegistry
from modelsync.schema.resolver import ReferenceResolver
from modelsync.storage.sql import SQLAlchemyBackend
from modelsync.sync.engine import SyncEngine

if TYPE_CHECKING:
    from modelsync.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

EntityInput = EntitySpec | Entity | Mapping[str, Any]


class ModelManager:
    """Synchronizes entity tables and seeds them with fixtures.

    Example:
        manager = ModelManager("sqlite:///app.db", fixture_dir="fixtures")
        manager.initialize([
            {"name": "Author", "attributes": [{"name": "id", "type": "int", "primary_key": True}]},
            {"name": "Book", "attributes": [
                {"name": "id", "type": "int", "primary_key": True},
                {"name": "author_id", "type": "int", "references": {"entity": "Author"}},
            ]},
        ])
        await manager.sync_all()
        await manager.load_fixtures()
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        settings: ModelSyncSettings | None = None,
        backend: StorageBackend | None = None,
        fixture_dir: Path | str | None = None,
        echo: bool | None = None,
        on_populate: ProgressCallback | None = None,
        on_connect: Callable[[], Any] | None = None,
        on_unknown: UnknownHandler | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            url: Database URL (overrides settings.database_url)
            settings: Settings; read from MODELSYNC_* environment variables if omitted
            backend: Storage backend; an SQLAlchemyBackend on ``url`` if omitted
            fixture_dir: Directory searched for <EntityName>.json fixtures
            echo: Echo SQL statements
            on_populate: Progress callback (entity name, percent) for fixture loading
            on_connect: Called after a successful connect(); may be a coroutine function
            on_unknown: Receives (name, value) for fixture keys that are not attributes
        """
        self._settings = settings or ModelSyncSettings()
        if backend is None:
            connection = DatabaseConnection(
                url or self._settings.database_url,
                echo=self._settings.echo if echo is None else echo,
            )
            backend = SQLAlchemyBackend(connection)
        self._backend = backend
        self._fixture_dir = Path(fixture_dir) if fixture_dir else self._settings.fixture_dir
        self._on_connect = on_connect
        self._on_unknown = on_unknown

        self._registry = EntityRegistry()
        self._backend.bind(self._registry)
        self._resolver = ReferenceResolver(
            self._registry, table_lookup=self._backend.resolve_reference_target
        )
        self._sync_engine = SyncEngine(self._registry, self._resolver, self._backend)
        self._pipeline = FixturePipeline(
            self._registry, self._backend, on_populate=on_populate, on_unknown=on_unknown
        )
        self._fixtures: list[FixtureRecord] = []

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def fixtures(self) -> list[FixtureRecord]:
        return list(self._fixtures)

    @property
    def ledger(self) -> list[str]:
        """Entities synchronized so far, in completion order."""
        return list(self._sync_engine.ledger)

    # === Initialization ===

    def _to_entity(self, item: EntityInput) -> Entity:
        if isinstance(item, Entity):
            return item
        if isinstance(item, EntitySpec):
            return Entity(spec=item)
        try:
            return Entity(spec=EntitySpec.model_validate(item))
        except ValidationError as e:
            name = item.get("name", "?") if isinstance(item, Mapping) else "?"
            raise ConfigurationError(
                f"Invalid definition for entity '{name}': {e}", {"entity_name": name}
            ) from e

    def _check_references(self, entities: Sequence[Entity], known: set[str]) -> None:
        for entity in entities:
            for attr in entity.spec.attributes:
                ref = attr.references
                if ref is not None and ref.entity is not None and ref.entity not in known:
                    raise ConfigurationError(
                        f"{entity.name}.{attr.name} references unknown entity '{ref.entity}'. "
                        f"Available entities: {', '.join(sorted(known))}",
                        {"entity_name": entity.name, "attribute": attr.name, "target": ref.entity},
                    )

    def initialize(
        self,
        entities: Sequence[EntityInput],
        extensions: Mapping[str, Sequence[Extension]] | None = None,
        addons: Sequence[Extension] = (),
        fixtures: Mapping[str, Sequence[Any] | Path | str] | None = None,
    ) -> None:
        """Register entities and attach extensions and fixtures.

        Args:
            entities: Entity specs (models, dicts, or Entity objects)
            extensions: Extensions per entity name
            addons: Extensions applied to every entity
            fixtures: Explicit fixture rows or files per entity name. Without
                it, fixtures are discovered in the fixture directory.

        Raises:
            ConfigurationError: If a definition is malformed or references an unknown entity.
                Nothing is registered when this is raised.
        """
        extensions = extensions or {}
        prepared = [self._to_entity(item) for item in entities]
        known = set(self._registry.names()) | {entity.name for entity in prepared}

        unknown = [name for name in extensions if name not in known]
        if unknown:
            raise ConfigurationError(
                f"Extensions given for unknown entities: {', '.join(unknown)}",
                {"entity_names": unknown},
            )

        # Validate everything before registering anything
        for entity in prepared:
            for extension in extensions.get(entity.name, ()):
                apply_extension(entity, extension)
            for addon in addons:
                apply_extension(entity, addon, feature="addons")
            if entity.stringable:
                entity.features.add("stringable")
            self._registry.validate(entity)
        self._check_references(prepared, known)

        for entity in prepared:
            self._registry.register(entity)

        if fixtures is not None:
            self._fixtures = inline_fixtures(self._registry, fixtures)
        elif self._fixture_dir is not None:
            self._fixtures = discover_fixtures(self._registry, self._fixture_dir)

        for entity in self._registry:
            features = ", ".join(sorted(entity.features))
            logger.debug(f"Found model {entity.name} with features [{features}]")

    async def connect(self) -> None:
        """Verify the database connection and run the on_connect callback."""
        connection = getattr(self._backend, "connection", None)
        if connection is not None:
            await connection.test_connection()
        if self._on_connect is not None:
            result = self._on_connect()
            if inspect.isawaitable(result):
                await result

    # === Lookup ===

    def get_entity(self, name: str | Entity) -> Entity:
        """Get a registered entity.

        Raises:
            EntityNotFoundError: If no entity has that name
        """
        if isinstance(name, Entity):
            return name
        entity = self._registry.get(name)
        if entity is None:
            raise EntityNotFoundError(name, self._registry.names())
        return entity

    def get_entity_from_table(self, table_name: str) -> Entity | None:
        return self._resolver.resolve_table(table_name)

    def get_references(self, entity: str | Entity) -> list[str]:
        """Names of the entities ``entity`` directly references."""
        return self._resolver.references_of(self.get_entity(entity))

    def order(self) -> list[Entity]:
        """Entities with referenced ones first."""
        return order_entities(self._registry, self._resolver)

    def describe_entity(self, name: str | Entity) -> EntityInfo:
        entity = self.get_entity(name)
        return EntityInfo(
            name=entity.name,
            table_name=entity.table_name,
            primary_key=entity.primary_key,
            attributes=list(entity.attributes),
            references=self.get_references(entity),
            features=sorted(entity.features),
            description=entity.spec.description,
        )

    # === Synchronization ===

    async def sync(self, entity: str | Entity, force: bool = False) -> None:
        """Synchronize one entity, and first everything it references."""
        await self._sync_engine.sync(self.get_entity(entity), force)

    async def sync_all(self, force: bool = False) -> SyncReport:
        """Synchronize every entity.

        Raises:
            StructuralSyncError: On the first entity the backend rejects
        """
        synchronized = await self._sync_engine.sync_all(force)
        logger.info(f"Synchronized {len(synchronized)} entities")
        return SyncReport(synchronized=synchronized, force=force)

    # === Fixtures ===

    async def load_fixtures(self) -> list[FixtureResult]:
        """Seed every empty table that has a fixture, in reference order."""
        names = [entity.name for entity in self.order()]
        return await self._pipeline.load_fixtures(sort_records(self._fixtures, names))

    async def populate_data(self, entity: str | Entity, rows: Sequence[Any]) -> int:
        """Insert rows into an entity one by one, reporting progress."""
        return await self._pipeline.populate_data(self.get_entity(entity), rows)

    # === Values ===

    def set_values(
        self,
        entity: str | Entity,
        values: RowValues,
        on_unknown: UnknownHandler | None = None,
    ) -> dict[str, Any]:
        return set_values(self.get_entity(entity), values, on_unknown or self._on_unknown)

    def create_instance(
        self,
        entity: str | Entity,
        values: RowValues | None = None,
        on_unknown: UnknownHandler | None = None,
    ) -> dict[str, Any]:
        return create_instance(self.get_entity(entity), values, on_unknown or self._on_unknown)

    async def get_values(
        self,
        table_name: str,
        where: dict[str, Any] | None = None,
        raw: bool = False,
    ) -> dict[Any, Any]:
        """Rows of a table keyed by primary key.

        Args:
            table_name: Table to read
            where: Equality filters
            raw: Return full rows instead of display text

        Returns:
            Empty dict if the table is unknown or has no primary key

        Raises:
            AttributeNotFoundError: If a ``where`` key is not an attribute of the entity
        """
        entity = self.get_entity_from_table(table_name)
        if entity is None or entity.primary_key is None:
            return {}
        for name in where or {}:
            if name not in entity.attributes:
                raise AttributeNotFoundError(name, entity.name, list(entity.attributes))
        rows = await self._backend.fetch_rows(entity, where)
        return rows_by_key(entity, rows, raw=raw)

    # === Lifecycle ===

    async def close(self) -> None:
        await self._backend.close()

    async def __aenter__(self) -> ModelManager:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()
