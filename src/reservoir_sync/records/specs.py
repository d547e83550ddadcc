"""Record transform primitives.

Defines:
- `EntityType`: the closed set of supported upstream entity types.
- `RecordSpec`: how one entity type is requested, parsed and formatted into
  canonical rows, plus the column layout used by SQL row stores.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from reservoir_sync.core.models import Row

RawItem = Mapping[str, Any]


class EntityType(StrEnum):
    SALES = "sales"


@dataclass(frozen=True)
class RecordSpec:
    """One entity type's {request, parse, format} contract.

    - `path`: URL path appended to the chain base URL.
    - `columns`: ordered column name -> DuckDB type of the persisted row.
    - `format`: raw items -> canonical rows (soft-delete flag included).
    - `updated_at`: server-reported update time of a raw item, epoch seconds.
    - `contract_of`: contract address used by the allow-list filter.
    """

    entity: EntityType
    path: str
    columns: Mapping[str, str]
    format: Callable[[Sequence[RawItem]], list[Row]]
    updated_at: Callable[[RawItem], int | None]
    contract_of: Callable[[RawItem], str]
    primary_key: str = "id"

    def extract(self, payload: Mapping[str, Any]) -> list[RawItem]:
        """Return the raw items of a page payload (empty when missing)."""
        return list(payload.get(self.entity.value) or [])

    def parse(self, items: Sequence[RawItem], contracts: Sequence[str] = ()) -> list[Row]:
        """Filter by the contract allow-list (case-insensitive), then format."""
        if contracts:
            allowed = {c.lower() for c in contracts}
            items = [it for it in items if (self.contract_of(it) or "").lower() in allowed]
        return self.format(items)
