"""Core components for modelsync."""

from modelsync.core.config import ModelSyncSettings
from modelsync.core.connection import DatabaseConnection
from modelsync.core.types import (
    AttributeSpec,
    EntityInfo,
    EntitySpec,
    FieldType,
    FixtureResult,
    ReferenceSpec,
    SyncReport,
)

__all__ = [
    "DatabaseConnection",
    "ModelSyncSettings",
    "FieldType",
    "AttributeSpec",
    "ReferenceSpec",
    "EntitySpec",
    "EntityInfo",
    "SyncReport",
    "FixtureResult",
]
