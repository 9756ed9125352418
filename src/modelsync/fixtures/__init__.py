"""Fixture discovery and population."""

from modelsync.fixtures.pipeline import FixturePipeline, ProgressCallback, sort_records
from modelsync.fixtures.source import FixtureRecord, discover_fixtures, inline_fixtures

__all__ = [
    "FixturePipeline",
    "FixtureRecord",
    "ProgressCallback",
    "discover_fixtures",
    "inline_fixtures",
    "sort_records",
]
