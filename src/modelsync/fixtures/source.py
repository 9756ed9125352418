"""Fixture records: where an entity's seed rows come from."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from modelsync.exceptions import FixtureReadError

if TYPE_CHECKING:
    from modelsync.schema.registry import EntityRegistry

logger = logging.getLogger(__name__)

FIXTURE_SUFFIX = ".json"


@dataclass(frozen=True)
class FixtureRecord:
    """Seed rows for one entity, from a JSON file or given inline."""

    entity_name: str
    path: Path | None = None
    rows: tuple[Any, ...] | None = None

    @property
    def source(self) -> str:
        return str(self.path) if self.path is not None else "<inline>"

    def read(self) -> list[Any]:
        """Load the ordered row sequence.

        Each row is a mapping or a list of [attribute, value] pairs.

        Raises:
            FixtureReadError: If the source is missing, not JSON, or not a list of rows
        """
        if self.rows is not None:
            data: Any = list(self.rows)
        else:
            if self.path is None:
                raise FixtureReadError(self.entity_name, self.source, "no rows and no path")
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                raise FixtureReadError(self.entity_name, self.source, str(e)) from e

        if not isinstance(data, list):
            raise FixtureReadError(
                self.entity_name, self.source, f"expected a list of rows, got {type(data).__name__}"
            )
        for i, row in enumerate(data):
            if isinstance(row, dict):
                continue
            if isinstance(row, list) and all(
                isinstance(pair, list) and len(pair) == 2 for pair in row
            ):
                continue
            raise FixtureReadError(
                self.entity_name, self.source, f"row {i} is not an object or a list of pairs"
            )
        return data


def discover_fixtures(registry: EntityRegistry, fixture_dir: Path | str) -> list[FixtureRecord]:
    """Find ``<fixture_dir>/<EntityName>.json`` for every registered entity.

    Matching entities get the ``fixture`` feature and their record attached.
    """
    fixture_dir = Path(fixture_dir)
    records: list[FixtureRecord] = []
    if not fixture_dir.is_dir():
        logger.debug(f"Fixture directory {fixture_dir} does not exist")
        return records

    for entity in registry:
        path = fixture_dir / f"{entity.name}{FIXTURE_SUFFIX}"
        if path.is_file():
            record = FixtureRecord(entity.name, path=path)
            entity.fixture = record
            entity.features.add("fixture")
            records.append(record)
    return records


def inline_fixtures(
    registry: EntityRegistry, fixtures: Mapping[str, Sequence[Any] | Path | str]
) -> list[FixtureRecord]:
    """Fixture records from explicit rows or file paths, keyed by entity name.

    Names that are not registered are skipped with a warning.
    """
    records: list[FixtureRecord] = []
    for name, source in fixtures.items():
        entity = registry.get(name)
        if entity is None:
            logger.warning(f"Fixture given for unknown entity {name}, ignored")
            continue
        if isinstance(source, (Path, str)):
            record = FixtureRecord(name, path=Path(source))
        else:
            record = FixtureRecord(name, rows=tuple(source))
        entity.fixture = record
        entity.features.add("fixture")
        records.append(record)
    return records
