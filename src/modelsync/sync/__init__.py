"""Dependency-ordered schema synchronization."""

from modelsync.sync.engine import SyncEngine, SyncLedger

__all__ = ["SyncEngine", "SyncLedger"]
