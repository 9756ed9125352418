"""SQLAlchemy storage backend.

Builds one table per entity and provides the DDL and row operations the core
needs, on top of an async engine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    insert,
    select,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB

from modelsync.core.connection import DatabaseConnection
from modelsync.data.values import coerce_values
from modelsync.exceptions import AttributeNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.types import TypeEngine

    from modelsync.core.types import AttributeSpec
    from modelsync.schema.registry import Entity, EntityRegistry

logger = logging.getLogger(__name__)


# Mapping from attribute types to SQLAlchemy column types
FIELD_TYPE_MAP = {
    "string": lambda: String(255),
    "text": lambda: Text(),
    "int": lambda: Integer(),
    "float": lambda: Float(),
    "bool": lambda: Boolean(),
    "datetime": lambda: DateTime(timezone=True),
    "uuid": lambda: String(36),
    "json": lambda: JSON().with_variant(JSONB(), "postgresql"),
}


class SQLAlchemyBackend:
    """Stores entities as tables through an async SQLAlchemy engine.

    Table objects share one MetaData so foreign keys between entities resolve.
    The MetaData is rebuilt whenever the bound registry changes.
    """

    def __init__(self, connection: DatabaseConnection) -> None:
        """Initialize the backend.

        Args:
            connection: Database connection to use
        """
        self._connection = connection
        self._registry: EntityRegistry | None = None
        self._metadata = MetaData()
        self._tables: dict[str, Table] = {}
        self._built_version = -1

    @property
    def connection(self) -> DatabaseConnection:
        return self._connection

    def bind(self, registry: EntityRegistry) -> None:
        self._registry = registry
        self._built_version = -1

    def resolve_reference_target(self, table_name: str) -> Entity | None:
        if self._registry is None:
            return None
        return self._registry.find_by_table(table_name)

    def _column_type(self, attr: AttributeSpec) -> TypeEngine[Any]:
        return FIELD_TYPE_MAP.get(attr.type, lambda: String(255))()

    def _foreign_key(self, entity: Entity, attr: AttributeSpec) -> ForeignKey | None:
        """ForeignKey for a reference attribute, None if the target is external."""
        ref = attr.references
        if ref is None or self._registry is None:
            return None

        if ref.entity is not None:
            target = self._registry.get(ref.entity)
        else:
            target = self.resolve_reference_target(ref.table or "")
        if target is None:
            logger.debug(
                f"{entity.name}.{attr.name}: target {ref.entity or ref.table} is not managed, "
                "no constraint created"
            )
            return None

        key = ref.key or target.primary_key or "id"
        return ForeignKey(f"{target.table_name}.{key}", ondelete=ref.on_delete)

    def _build_table(self, entity: Entity, metadata: MetaData) -> Table:
        columns: list[Column[Any]] = []
        for attr in entity.spec.attributes:
            args: list[Any] = []
            fk = self._foreign_key(entity, attr)
            if fk is not None:
                args.append(fk)
            columns.append(
                Column(
                    attr.name,
                    self._column_type(attr),
                    *args,
                    primary_key=attr.primary_key,
                    nullable=attr.nullable and not attr.primary_key,
                    unique=attr.unique or None,
                    default=attr.default,
                )
            )
        return Table(entity.table_name, metadata, *columns)

    def _ensure_tables(self) -> None:
        if self._registry is None:
            raise RuntimeError("Backend is not bound to a registry")
        if self._built_version == self._registry.version:
            return

        metadata = MetaData()
        tables = {entity.name: self._build_table(entity, metadata) for entity in self._registry}
        self._metadata = metadata
        self._tables = tables
        self._built_version = self._registry.version

    def table_for(self, entity: Entity) -> Table:
        """SQLAlchemy Table of a registered entity."""
        self._ensure_tables()
        return self._tables[entity.name]

    async def sync_entity(self, entity: Entity, force: bool = False) -> None:
        table = self.table_for(entity)
        async with self._connection.engine.begin() as conn:
            if force:
                if self._connection.is_postgresql:
                    await conn.execute(text(f'DROP TABLE IF EXISTS "{table.name}" CASCADE'))
                else:
                    # SQLite doesn't support CASCADE
                    await conn.execute(text(f'DROP TABLE IF EXISTS "{table.name}"'))
            await conn.run_sync(table.create, checkfirst=True)
        logger.debug(f"Synchronized table {table.name} (force={force})")

    async def count_rows(self, entity: Entity) -> int:
        table = self.table_for(entity)
        async with self._connection.engine.connect() as conn:
            result = await conn.execute(select(func.count()).select_from(table))
            return result.scalar() or 0

    async def insert_row(self, entity: Entity, values: dict[str, Any]) -> None:
        table = self.table_for(entity)
        async with self._connection.engine.begin() as conn:
            await conn.execute(insert(table).values(**coerce_values(entity, values)))

    async def fetch_rows(
        self, entity: Entity, where: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        table = self.table_for(entity)
        query = select(table)
        for name, value in (where or {}).items():
            if name not in table.c:
                raise AttributeNotFoundError(name, entity.name, list(entity.attributes))
            query = query.where(table.c[name] == value)
        async with self._connection.engine.connect() as conn:
            result = await conn.execute(query)
            return [dict(row) for row in result.mappings()]

    async def close(self) -> None:
        await self._connection.close()
