from __future__ import annotations

from dataclasses import dataclass

from reservoir_sync.clients.reservoir import base_url_for
from reservoir_sync.constants import PAGE_SIZE, REQUEST_TIMEOUT_S, RETRY_INTERVAL_S, TAIL_INTERVAL_S
from reservoir_sync.core.checkpoint import Checkpoint
from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.orchestration.utils import parse_date
from reservoir_sync.records.specs import EntityType
from reservoir_sync.records.utils import is_address


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for one sync orchestrator (one entity type on one chain)."""

    entity_type: EntityType
    chain: str
    api_key: str
    date: str  # backfill start, YYYY-MM-DD
    contracts: tuple[str, ...] = ()
    manager_count: int = 1
    worker_count: int = 1
    backup: Checkpoint | None = None  # restored checkpoint, if any
    page_size: int = PAGE_SIZE
    timeout_s: int = REQUEST_TIMEOUT_S
    retry_interval_s: float = RETRY_INTERVAL_S  # backoff after a failed page
    tail_interval_s: float = TAIL_INTERVAL_S  # pause between tailing cycles
    page_delay_s: float = 0.0  # artificial delay between successful pages
    base_url: str | None = None  # overrides URL_BASES[chain]

    def __post_init__(self) -> None:
        if self.manager_count < 1:
            raise ValidationFailure("manager_count must be >= 1")
        if self.worker_count < 1:
            raise ValidationFailure("worker_count must be >= 1")
        if not 1 <= self.page_size <= PAGE_SIZE:
            raise ValidationFailure(f"page_size must be within 1..{PAGE_SIZE}")
        if self.base_url is None:
            base_url_for(self.chain)
        parse_date(self.date)
        bad = [c for c in self.contracts if not is_address(c)]
        if bad:
            raise ValidationFailure(f"invalid contract address(es): {', '.join(bad)}")

    @property
    def url_base(self) -> str:
        return self.base_url or base_url_for(self.chain)
