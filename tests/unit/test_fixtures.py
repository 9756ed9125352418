"""Tests for fixture discovery and the population pipeline."""

import json
import logging
from pathlib import Path

import pytest
from conftest import RecordingBackend

from modelsync import ModelManager
from modelsync.exceptions import FixtureError, FixtureReadError, RowInsertError
from modelsync.fixtures import FixtureRecord, sort_records

AUTHORS = [
    {"id": 1, "name": "Ursula Le Guin"},
    {"id": 2, "name": "Frank Herbert"},
]
BOOKS = [
    {"id": 1, "title": "A Wizard of Earthsea", "author_id": 1},
    {"id": 2, "title": "Dune", "author_id": 2},
]


def write_fixture(directory: Path, name: str, data: object) -> Path:
    path = directory / f"{name}.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


class TestFixtureRecord:
    """Tests for FixtureRecord.read."""

    def test_inline_rows(self):
        record = FixtureRecord("Author", rows=tuple(AUTHORS))
        assert record.read() == AUTHORS
        assert record.source == "<inline>"

    def test_file_rows(self, tmp_path: Path):
        path = write_fixture(tmp_path, "Author", AUTHORS)
        record = FixtureRecord("Author", path=path)
        assert record.read() == AUTHORS
        assert record.source == str(path)

    def test_pair_rows(self):
        record = FixtureRecord("Author", rows=([["id", 1], ["name", "Ursula Le Guin"]],))
        assert record.read() == [[["id", 1], ["name", "Ursula Le Guin"]]]

    def test_invalid_json(self, tmp_path: Path):
        record = FixtureRecord("Author", path=write_fixture(tmp_path, "Author", "[{not json"))
        with pytest.raises(FixtureReadError) as exc_info:
            record.read()
        assert exc_info.value.entity_name == "Author"

    def test_invalid_encoding(self, tmp_path: Path):
        path = tmp_path / "Author.json"
        path.write_bytes(b'[{"id": 1, "name": "\xff\xfe"}]')
        with pytest.raises(FixtureReadError, match="cannot read"):
            FixtureRecord("Author", path=path).read()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FixtureReadError):
            FixtureRecord("Author", path=tmp_path / "missing.json").read()

    def test_not_a_list(self, tmp_path: Path):
        record = FixtureRecord("Author", path=write_fixture(tmp_path, "Author", {"id": 1}))
        with pytest.raises(FixtureReadError, match="expected a list of rows"):
            record.read()

    def test_bad_row(self):
        with pytest.raises(FixtureReadError, match="row 1"):
            FixtureRecord("Author", rows=({"id": 1}, "Ursula")).read()


class TestSortRecords:
    """Tests for sort_records."""

    def test_follows_order(self):
        records = [FixtureRecord("Book"), FixtureRecord("Loan"), FixtureRecord("Author")]
        ordered = sort_records(records, ["Author", "Book"])
        assert [r.entity_name for r in ordered] == ["Author", "Book", "Loan"]


class TestDiscovery:
    """Fixture discovery in a fixture directory."""

    def test_discovers_by_entity_name(self, tmp_path: Path, backend, library_specs):
        write_fixture(tmp_path, "Author", AUTHORS)
        manager = ModelManager(backend=backend, fixture_dir=tmp_path)
        manager.initialize(library_specs)

        assert [record.entity_name for record in manager.fixtures] == ["Author"]
        assert "fixture" in manager.describe_entity("Author").features
        assert "fixture" not in manager.describe_entity("Book").features
        assert manager.get_entity("Author").fixture is manager.fixtures[0]

    def test_missing_directory(self, tmp_path: Path, backend, library_specs):
        manager = ModelManager(backend=backend, fixture_dir=tmp_path / "nowhere")
        manager.initialize(library_specs)
        assert manager.fixtures == []

    def test_inline_unknown_entity_ignored(self, manager, library_specs, caplog):
        with caplog.at_level(logging.WARNING):
            manager.initialize(library_specs, fixtures={"Publisher": [{"id": 1}]})
        assert manager.fixtures == []
        assert "unknown entity Publisher" in caplog.text


class TestLoadFixtures:
    """Tests for ModelManager.load_fixtures."""

    async def test_loads_in_reference_order(self, manager, backend, library_specs):
        manager.initialize(library_specs, fixtures={"Book": BOOKS, "Author": AUTHORS})
        await manager.sync_all()
        results = await manager.load_fixtures()

        assert [(r.entity_name, r.status, r.rows_inserted) for r in results] == [
            ("Author", "inserted", 2),
            ("Book", "inserted", 2),
        ]
        inserts = [name for op, name in backend.calls if op == "insert"]
        assert inserts == ["Author", "Author", "Book", "Book"]
        assert backend.rows["Book"] == BOOKS

    async def test_skips_non_empty_table(self, manager, backend, library_specs):
        manager.initialize(library_specs, fixtures={"Author": AUTHORS, "Book": BOOKS})
        await manager.sync_all()
        backend.rows["Author"] = [{"id": 9, "name": "Existing"}]

        results = await manager.load_fixtures()

        assert [(r.entity_name, r.status) for r in results] == [
            ("Author", "skipped"),
            ("Book", "inserted"),
        ]
        assert backend.rows["Author"] == [{"id": 9, "name": "Existing"}]

    async def test_second_load_is_noop(self, manager, backend, library_specs):
        manager.initialize(library_specs, fixtures={"Author": AUTHORS, "Book": BOOKS})
        await manager.sync_all()
        await manager.load_fixtures()
        results = await manager.load_fixtures()

        assert {r.status for r in results} == {"skipped"}
        assert len(backend.rows["Author"]) == 2
        assert len(backend.rows["Book"]) == 2

    async def test_failed_row_stops_fixture_not_batch(self, library_specs):
        backend = RecordingBackend(fail_rows={"Author": {5}})
        manager = ModelManager(backend=backend)
        authors = [{"id": i, "name": f"Author {i}"} for i in range(10)]
        manager.initialize(library_specs, fixtures={"Author": authors, "Book": BOOKS})
        await manager.sync_all()

        results = await manager.load_fixtures()

        author_result, book_result = results
        assert author_result.status == "failed"
        assert author_result.rows_inserted == 5
        assert "row 5" in author_result.error
        assert [row["id"] for row in backend.rows["Author"]] == [0, 1, 2, 3, 4]
        assert book_result.status == "inserted"

    async def test_malformed_file_is_isolated(self, tmp_path: Path, backend, library_specs):
        write_fixture(tmp_path, "Author", "[{not json")
        write_fixture(tmp_path, "Book", BOOKS)
        manager = ModelManager(backend=backend, fixture_dir=tmp_path)
        manager.initialize(library_specs)
        await manager.sync_all()

        results = await manager.load_fixtures()

        assert [(r.entity_name, r.status) for r in results] == [
            ("Author", "failed"),
            ("Book", "inserted"),
        ]
        assert "cannot read" in results[0].error

    async def test_undecodable_file_is_isolated(self, tmp_path: Path, backend, library_specs):
        (tmp_path / "Author.json").write_bytes(b'[{"id": 1, "name": "\xff\xfe"}]')
        write_fixture(tmp_path, "Book", BOOKS)
        manager = ModelManager(backend=backend, fixture_dir=tmp_path)
        manager.initialize(library_specs)
        await manager.sync_all()

        results = await manager.load_fixtures()

        assert [(r.entity_name, r.status) for r in results] == [
            ("Author", "failed"),
            ("Book", "inserted"),
        ]
        assert backend.rows["Author"] == []

    async def test_progress_callback_failure_is_isolated(self, library_specs):
        def on_populate(entity_name: str, percent: int) -> None:
            if entity_name == "Author":
                raise RuntimeError("display closed")

        backend = RecordingBackend()
        manager = ModelManager(backend=backend, on_populate=on_populate)
        manager.initialize(library_specs, fixtures={"Author": AUTHORS, "Book": BOOKS})
        await manager.sync_all()

        author_result, book_result = await manager.load_fixtures()

        assert author_result.status == "failed"
        assert author_result.rows_inserted == 1
        assert "progress callback failed at 50%: display closed" in author_result.error
        assert book_result.status == "inserted"
        assert book_result.rows_inserted == 2

    async def test_count_failure_is_isolated(self, library_specs):
        class BrokenCount(RecordingBackend):
            async def count_rows(self, entity):
                if entity.name == "Author":
                    raise RuntimeError("no such table: author")
                return await super().count_rows(entity)

        backend = BrokenCount()
        manager = ModelManager(backend=backend)
        manager.initialize(library_specs, fixtures={"Author": AUTHORS, "Book": BOOKS})

        results = await manager.load_fixtures()

        assert results[0].status == "failed"
        assert "cannot count rows" in results[0].error
        assert results[1].status == "inserted"

    async def test_unknown_keys_reported(self, backend, library_specs):
        unknown: list[tuple[str, object]] = []
        manager = ModelManager(backend=backend, on_unknown=lambda k, v: unknown.append((k, v)))
        manager.initialize(
            library_specs,
            fixtures={"Author": [{"id": 1, "name": "Ursula Le Guin", "nickname": "ULG"}]},
        )
        await manager.sync_all()
        await manager.load_fixtures()

        assert unknown == [("nickname", "ULG")]
        assert backend.rows["Author"] == [{"id": 1, "name": "Ursula Le Guin"}]

    async def test_pair_rows(self, manager, backend, library_specs):
        manager.initialize(
            library_specs, fixtures={"Author": [[["id", 1], ["name", "Ursula Le Guin"]]]}
        )
        await manager.sync_all()
        await manager.load_fixtures()

        assert backend.rows["Author"] == [{"id": 1, "name": "Ursula Le Guin"}]


class TestProgress:
    """Progress notifications while populating."""

    async def test_percentages(self, backend, library_specs):
        events: list[tuple[str, int]] = []
        manager = ModelManager(backend=backend, on_populate=lambda n, p: events.append((n, p)))
        manager.initialize(library_specs)

        inserted = await manager.populate_data("Author", [{"id": i} for i in range(3)])

        assert inserted == 3
        assert events == [("Author", 33), ("Author", 66), ("Author", 100)]

    async def test_strictly_increasing_to_100(self, backend, library_specs):
        percents: list[int] = []
        manager = ModelManager(backend=backend, on_populate=lambda n, p: percents.append(p))
        manager.initialize(library_specs)

        await manager.populate_data("Author", [{"id": i} for i in range(250)])

        assert percents == list(range(1, 101))

    async def test_fewer_events_than_rows(self, backend, library_specs):
        percents: list[int] = []
        manager = ModelManager(backend=backend, on_populate=lambda n, p: percents.append(p))
        manager.initialize(library_specs)

        await manager.populate_data("Author", [{"id": i} for i in range(1000)])

        assert len(percents) == 100
        assert percents[-1] == 100

    async def test_async_callback(self, backend, library_specs):
        events: list[int] = []

        async def on_populate(entity_name: str, percent: int) -> None:
            events.append(percent)

        manager = ModelManager(backend=backend, on_populate=on_populate)
        manager.initialize(library_specs)
        await manager.populate_data("Author", [{"id": 1}, {"id": 2}])

        assert events == [50, 100]

    async def test_empty_rows(self, backend, library_specs):
        events: list[int] = []
        manager = ModelManager(backend=backend, on_populate=lambda n, p: events.append(p))
        manager.initialize(library_specs)

        assert await manager.populate_data("Author", []) == 0
        assert events == []

    async def test_no_progress_past_failure(self, library_specs):
        events: list[int] = []
        backend = RecordingBackend(fail_rows={"Author": {2}})
        manager = ModelManager(backend=backend, on_populate=lambda n, p: events.append(p))
        manager.initialize(library_specs)

        with pytest.raises(RowInsertError) as exc_info:
            await manager.populate_data("Author", [{"id": i} for i in range(4)])

        assert exc_info.value.row_index == 2
        assert events == [25, 50]

    async def test_callback_failure_stops_population(self, backend, library_specs):
        async def on_populate(entity_name: str, percent: int) -> None:
            raise ValueError("boom")

        manager = ModelManager(backend=backend, on_populate=on_populate)
        manager.initialize(library_specs)

        with pytest.raises(FixtureError) as exc_info:
            await manager.populate_data("Author", [{"id": i} for i in range(4)])

        assert exc_info.value.entity_name == "Author"
        assert exc_info.value.context["rows_inserted"] == 1
        assert len(backend.rows["Author"]) == 1
