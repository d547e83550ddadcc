from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from reservoir_sync.core.checkpoint import Checkpoint
from reservoir_sync.core.models import Row

if TYPE_CHECKING:
    from reservoir_sync.core.use_cases.units import UnitManager


# ---------------------------------------------------------------------------
# IPageProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IPageProvider(Protocol):
    """
    Source of raw upstream pages for one entity type.

    Domain expectations:
    - Results are sorted by last-update time ascending and include soft-deleted items.
    - The returned payload carries the items under the entity key and the
      next `continuation` token (empty or missing once the result set is drained).
    - Transport errors raise `TransportFailure`; non-200 answers raise `UpstreamFailure`.
    """

    async def get_page(
        self,
        *,
        continuation: str = "",
        start_timestamp: int | None = None,
        end_timestamp: int | None = None,
    ) -> dict[str, Any]:
        ...


# ---------------------------------------------------------------------------
# IRowStore
# ---------------------------------------------------------------------------

@runtime_checkable
class IRowStore(Protocol):
    """
    Durable upsert/delete sink keyed by the deterministic row `id`.

    Both operations must be idempotent and safe for concurrent callers.
    Rejections raise `WriteFailure`.
    """

    async def upsert(self, table: str, rows: Sequence[Row]) -> None:
        ...

    async def delete(self, table: str, ids: Sequence[bytes]) -> None:
        ...


# ---------------------------------------------------------------------------
# ICheckpointStore
# ---------------------------------------------------------------------------

@runtime_checkable
class ICheckpointStore(Protocol):
    """Persistence for the latest checkpoint tree of one entity type."""

    async def load(self) -> Checkpoint | None:
        ...

    async def save(self, checkpoint: Checkpoint) -> None:
        ...


# ---------------------------------------------------------------------------
# IManagerObserver
# ---------------------------------------------------------------------------

@runtime_checkable
class IManagerObserver(Protocol):
    """
    Narrow upward channel from a unit manager to its owner.

    - `checkpoint()` persists progress after a successful page.
    - `claim_tailing(manager)` grants the permanent tailing role; it returns
      True for at most one manager over the observer's lifetime.
    """

    async def checkpoint(self) -> None:
        ...

    def claim_tailing(self, manager: UnitManager) -> bool:
        ...
