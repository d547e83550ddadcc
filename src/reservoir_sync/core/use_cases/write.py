from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from reservoir_sync.core.interfaces import IRowStore
from reservoir_sync.core.models import DELETED_FIELD, ID_FIELD, Row


@dataclass(kw_only=True)
class WriteStats:
    upserted: int = 0
    deleted: int = 0


def partition_rows(rows: Sequence[Row]) -> tuple[list[Row], list[bytes]]:
    """Split rows into (rows to upsert, ids to delete).

    The soft-delete flag is stripped from every row; the input is not mutated.
    """
    upserts: list[Row] = []
    deletes: list[bytes] = []
    for row in rows:
        clean = {k: v for k, v in row.items() if k != DELETED_FIELD}
        if row.get(DELETED_FIELD):
            deletes.append(clean[ID_FIELD])
        else:
            upserts.append(clean)
    return upserts, deletes


class IdempotentWriter:
    """
    Two-phase apply over an `IRowStore`: upsert live rows, then delete flagged ones.

    Replaying a page leaves storage unchanged, and a row deleted upstream ends up
    absent whatever the arrival order of its creation and deletion records.
    Store errors (`WriteFailure`) propagate to the caller.
    """

    def __init__(self, store: IRowStore, table: str) -> None:
        self._store = store
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    async def apply(self, rows: Sequence[Row]) -> WriteStats:
        upserts, deletes = partition_rows(rows)
        if upserts:
            await self._store.upsert(self._table, upserts)
        if deletes:
            await self._store.delete(self._table, deletes)
        logger.debug(f"{self._table}: upserted={len(upserts)} deleted={len(deletes)}")
        return WriteStats(upserted=len(upserts), deleted=len(deletes))
