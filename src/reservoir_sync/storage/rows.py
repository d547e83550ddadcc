"""Row stores: idempotent upsert/delete keyed by the deterministic row id.

- `MemoryRowStore`: dict per table, for tests and dry runs.
- `DuckDBRowStore`: one DuckDB database file, one table per entity type,
  created from the record spec's column layout.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from contextlib import contextmanager
from pathlib import Path

import duckdb
import pandas as pd

from reservoir_sync.core.errors import WriteFailure
from reservoir_sync.core.interfaces import IRowStore
from reservoir_sync.core.models import ID_FIELD, Row
from reservoir_sync.records.specs import RecordSpec


class MemoryRowStore(IRowStore):
    def __init__(self) -> None:
        self.tables: dict[str, dict[bytes, Row]] = {}

    async def upsert(self, table: str, rows: Sequence[Row]) -> None:
        t = self.tables.setdefault(table, {})
        for row in rows:
            t[row[ID_FIELD]] = dict(row)

    async def delete(self, table: str, ids: Sequence[bytes]) -> None:
        t = self.tables.setdefault(table, {})
        for i in ids:
            t.pop(i, None)

    def rows(self, table: str) -> dict[bytes, Row]:
        return self.tables.get(table, {})


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@contextmanager
def get_connection(path: str | Path, threads: int = 4):
    """Context manager for a DuckDB connection on `path`.

    Args:
        path: Database file (":memory:" for an in-memory database).
        threads: Number of threads for parallel execution.

    Yields:
        DuckDB connection.
    """
    con = duckdb.connect(str(path))
    try:
        con.execute(f"PRAGMA threads={threads}")
        yield con
    finally:
        con.close()


class DuckDBRowStore(IRowStore):
    """
    DuckDB-backed row store.

    Writes are serialized through an asyncio lock and executed in a worker
    thread on a single long-lived connection. Any duckdb error is raised as
    `WriteFailure`.
    """

    def __init__(self, path: str | Path, specs: Iterable[RecordSpec]) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._specs = {s.entity.value: s for s in specs}
        self._con = duckdb.connect(self.path)
        self._lock = asyncio.Lock()
        for spec in self._specs.values():
            self._con.execute(self._ddl(spec))

    @staticmethod
    def _ddl(spec: RecordSpec) -> str:
        cols = ", ".join(f"{_quote(name)} {typ}" for name, typ in spec.columns.items())
        return (
            f"CREATE TABLE IF NOT EXISTS {_quote(spec.entity.value)} "
            f"({cols}, PRIMARY KEY ({_quote(spec.primary_key)}))"
        )

    def _spec(self, table: str) -> RecordSpec:
        try:
            return self._specs[table]
        except KeyError as e:
            raise WriteFailure(f"unknown table {table!r}") from e

    def _upsert_sync(self, table: str, rows: Sequence[Row]) -> None:
        spec = self._spec(table)
        names = list(spec.columns)
        sql = (
            f"INSERT OR REPLACE INTO {_quote(table)} ({', '.join(_quote(n) for n in names)}) "
            f"VALUES ({', '.join('?' for _ in names)})"
        )
        params = [[row.get(n) for n in names] for row in rows]
        self._con.executemany(sql, params)

    def _delete_sync(self, table: str, ids: Sequence[bytes]) -> None:
        spec = self._spec(table)
        sql = f"DELETE FROM {_quote(table)} WHERE {_quote(spec.primary_key)} = ?"
        self._con.executemany(sql, [[i] for i in ids])

    async def upsert(self, table: str, rows: Sequence[Row]) -> None:
        if not rows:
            return
        async with self._lock:
            try:
                await asyncio.to_thread(self._upsert_sync, table, rows)
            except duckdb.Error as e:
                raise WriteFailure(f"upsert into {table} failed: {e}") from e

    async def delete(self, table: str, ids: Sequence[bytes]) -> None:
        if not ids:
            return
        async with self._lock:
            try:
                await asyncio.to_thread(self._delete_sync, table, ids)
            except duckdb.Error as e:
                raise WriteFailure(f"delete from {table} failed: {e}") from e

    def close(self) -> None:
        self._con.close()


# ---------------------------------------------------------------------------
# Read-side helpers (separate connection, usable while no writer holds the file)
# ---------------------------------------------------------------------------


def count_rows(path: str | Path, table: str) -> int:
    with get_connection(path) as con:
        return int(con.execute(f"SELECT count(*) FROM {_quote(table)}").fetchone()[0])


def latest_rows(path: str | Path, table: str, limit: int = 20) -> pd.DataFrame:
    """Most recently updated rows of `table` as a DataFrame."""
    with get_connection(path) as con:
        return con.execute(
            f"SELECT * FROM {_quote(table)} ORDER BY {_quote('updated_at')} DESC LIMIT ?",
            [limit],
        ).df()
