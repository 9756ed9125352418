"""Fixture pipeline: seed empty tables, one entity and one row at a time."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from modelsync.core.types import FixtureResult
from modelsync.data.values import UnknownHandler, set_values
from modelsync.exceptions import EntityNotFoundError, FixtureError, ModelSyncError, RowInsertError

if TYPE_CHECKING:
    from modelsync.fixtures.source import FixtureRecord
    from modelsync.schema.registry import Entity, EntityRegistry
    from modelsync.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

# Called with (entity name, percent complete); may be a coroutine function
ProgressCallback = Callable[[str, int], Any]


def sort_records(records: Sequence[FixtureRecord], order: Sequence[str]) -> list[FixtureRecord]:
    """Sort fixture records by entity position in ``order``.

    Records of entities missing from ``order`` keep their relative order at the end.
    """
    position = {name: i for i, name in enumerate(order)}
    return sorted(records, key=lambda r: position.get(r.entity_name, len(position)))


class FixturePipeline:
    """Loads fixture records sequentially.

    Records never run concurrently so foreign-key targets are seeded before
    the rows that point at them.
    """

    def __init__(
        self,
        registry: EntityRegistry,
        backend: StorageBackend,
        on_populate: ProgressCallback | None = None,
        on_unknown: UnknownHandler | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            registry: Entity registry
            backend: Storage backend rows are inserted into
            on_populate: Progress callback, called on each new whole percent
            on_unknown: Receives (name, value) for row keys that are not attributes
        """
        self._registry = registry
        self._backend = backend
        self._on_populate = on_populate
        self._on_unknown = on_unknown

    async def _notify(self, entity: Entity, percent: int, inserted: int) -> None:
        logger.debug(f"Populate data {entity.name} ({percent}%)")
        if self._on_populate is None:
            return
        try:
            result = self._on_populate(entity.name, percent)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise FixtureError(
                entity.name,
                f"progress callback failed at {percent}%: {e}",
                {"rows_inserted": inserted},
            ) from e

    async def populate_data(self, entity: Entity, rows: Sequence[Any]) -> int:
        """Insert ``rows`` in order.

        Returns:
            Number of rows inserted

        Raises:
            RowInsertError: On the first row that fails; later rows are not attempted
            FixtureError: If the progress callback raises; later rows are not attempted
        """
        total = len(rows)
        progress = 0
        for i, row in enumerate(rows):
            try:
                values = set_values(entity, row, self._on_unknown)
                await self._backend.insert_row(entity, values)
            except ModelSyncError:
                raise
            except Exception as e:
                raise RowInsertError(entity.name, i, str(e)) from e

            percent = (i + 1) * 100 // total
            if percent > progress:
                progress = percent
                await self._notify(entity, percent, i + 1)
        return total

    async def load_fixture(self, record: FixtureRecord) -> FixtureResult:
        """Seed one entity if its table is empty.

        Raises:
            FixtureError: If counting, reading or inserting fails
        """
        entity = self._registry.get(record.entity_name)
        if entity is None:
            raise EntityNotFoundError(record.entity_name, self._registry.names())

        try:
            count = await self._backend.count_rows(entity)
        except ModelSyncError:
            raise
        except Exception as e:
            raise FixtureError(entity.name, f"cannot count rows: {e}") from e

        if count:
            logger.debug(f"Skipping fixture for {entity.name}: {count} rows present")
            return FixtureResult(entity_name=entity.name, status="skipped")

        rows = await asyncio.to_thread(record.read)
        inserted = await self.populate_data(entity, rows)
        logger.info(f"Loaded {inserted} rows into {entity.name} from {record.source}")
        return FixtureResult(entity_name=entity.name, status="inserted", rows_inserted=inserted)

    async def load_fixtures(self, records: Sequence[FixtureRecord]) -> list[FixtureResult]:
        """Load every record in turn. A failing record is logged and skipped."""
        results: list[FixtureResult] = []
        for record in records:
            try:
                results.append(await self.load_fixture(record))
            except FixtureError as e:
                logger.error(e.message)
                inserted = e.context.get("rows_inserted", 0)
                results.append(
                    FixtureResult(
                        entity_name=record.entity_name,
                        status="failed",
                        rows_inserted=inserted,
                        error=e.message,
                    )
                )
        return results
