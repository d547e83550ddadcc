"""Storage backends for checkpoints and canonical rows.

This package provides:
- FileCheckpointStore / MemoryCheckpointStore: checkpoint persistence
- DuckDBRowStore / MemoryRowStore: idempotent upsert/delete row stores
"""

from reservoir_sync.storage.checkpoints import FileCheckpointStore, MemoryCheckpointStore
from reservoir_sync.storage.rows import DuckDBRowStore, MemoryRowStore, count_rows, latest_rows

__all__ = [
    "FileCheckpointStore",
    "MemoryCheckpointStore",
    "DuckDBRowStore",
    "MemoryRowStore",
    "count_rows",
    "latest_rows",
]
