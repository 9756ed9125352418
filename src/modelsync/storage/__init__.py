"""Storage backends for modelsync.

The core talks to storage only through the StorageBackend protocol:
- SQLAlchemyBackend: one table per entity on PostgreSQL or SQLite
"""

from modelsync.storage.backend import StorageBackend
from modelsync.storage.sql import FIELD_TYPE_MAP, SQLAlchemyBackend

__all__ = ["StorageBackend", "SQLAlchemyBackend", "FIELD_TYPE_MAP"]
