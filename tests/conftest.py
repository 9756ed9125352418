"""Shared test fixtures for modelsync."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest

from modelsync import ModelManager
from modelsync.schema.registry import Entity, EntityRegistry


class RecordingBackend:
    """In-memory StorageBackend that records every call.

    ``fail_sync`` names entities whose structural sync raises;
    ``fail_rows`` maps entity name to row indexes whose insert raises.
    """

    def __init__(
        self,
        fail_sync: set[str] | None = None,
        fail_rows: dict[str, set[int]] | None = None,
    ) -> None:
        self.registry: EntityRegistry | None = None
        self.calls: list[tuple[str, str]] = []
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.fail_sync = fail_sync or set()
        self.fail_rows = fail_rows or {}
        self._attempts: dict[str, int] = {}
        self.closed = False

    def bind(self, registry: EntityRegistry) -> None:
        self.registry = registry

    def sync_calls(self) -> list[str]:
        return [name for op, name in self.calls if op == "sync"]

    async def sync_entity(self, entity: Entity, force: bool = False) -> None:
        if entity.name in self.fail_sync:
            raise RuntimeError(f"table {entity.table_name} rejected")
        self.calls.append(("sync", entity.name))
        if force:
            self.rows[entity.name] = []
        self.rows.setdefault(entity.name, [])

    async def count_rows(self, entity: Entity) -> int:
        self.calls.append(("count", entity.name))
        return len(self.rows.get(entity.name, []))

    async def insert_row(self, entity: Entity, values: dict[str, Any]) -> None:
        index = self._attempts.get(entity.name, 0)
        self._attempts[entity.name] = index + 1
        if index in self.fail_rows.get(entity.name, set()):
            raise RuntimeError(f"constraint failed on row {index}")
        self.calls.append(("insert", entity.name))
        self.rows.setdefault(entity.name, []).append(dict(values))

    async def fetch_rows(
        self, entity: Entity, where: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        rows = self.rows.get(entity.name, [])
        return [r for r in rows if all(r.get(k) == v for k, v in (where or {}).items())]

    def resolve_reference_target(self, table_name: str) -> Entity | None:
        return self.registry.find_by_table(table_name) if self.registry else None

    async def close(self) -> None:
        self.closed = True


def pk(name: str = "id") -> dict[str, Any]:
    return {"name": name, "type": "int", "primary_key": True}


def ref(name: str, entity: str | None = None, table: str | None = None) -> dict[str, Any]:
    target = {"entity": entity} if entity else {"table": table}
    return {"name": name, "type": "int", "references": target}


@pytest.fixture
def library_specs() -> list[dict[str, Any]]:
    """Author <- Book, registered referencing-first to exercise ordering."""
    return [
        {"name": "Book", "attributes": [pk(), {"name": "title"}, ref("author_id", "Author")]},
        {
            "name": "Author",
            "attributes": [pk(), {"name": "name", "nullable": False}],
            "stringable": ["name"],
        },
    ]


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def manager(backend: RecordingBackend) -> ModelManager:
    """A ModelManager over the recording backend."""
    return ModelManager(backend=backend)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """SQLite database file URL in a temp directory."""
    return f"sqlite:///{tmp_path / 'modelsync.db'}"


@pytest.fixture
async def sqlite_manager(sqlite_url: str) -> AsyncGenerator[ModelManager, None]:
    """A ModelManager on a SQLite file database."""
    manager = ModelManager(sqlite_url)
    yield manager
    await manager.close()
