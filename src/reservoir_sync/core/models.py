"""Core data models exchanged between workers, managers and the orchestrator.

This module defines:
- `SubWindow`: half-open [start, end) time range assigned to one worker.
- `PollResult`: outcome of a single page request.
- `ManagerOutcome` / `ManagerReport`: per-unit completion reports.
- `SyncReport`: aggregated result of one orchestrator run.

Rows themselves are plain dicts (column name -> value) produced by the
record transform table; only `id` and `is_deleted` are interpreted here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from reservoir_sync.core.errors import SyncError

Row = dict[str, Any]

ID_FIELD = "id"
DELETED_FIELD = "is_deleted"


@dataclass(slots=True, frozen=True)
class SubWindow:
    """Half-open time range in epoch seconds. `end=None` means open-ended."""

    start: int
    end: int | None

    def is_empty(self) -> bool:
        return self.end is not None and self.start >= self.end


@dataclass(slots=True, frozen=True)
class PollResult:
    """Result of `UnitWorker.poll_once`.

    A failed request carries its error and is never exhausted.
    """

    rows_written: int
    exhausted: bool
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ManagerOutcome(StrEnum):
    BACKFILLED = "backfilled"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    STOPPED = "stopped"


@dataclass(kw_only=True)
class ManagerReport:
    """Final state of one unit manager when its drive loop ended."""

    name: str
    date: str
    outcome: ManagerOutcome
    cycles: int = 0
    retired: bool = False
    is_backfilled: bool = False
    error: str | None = None


@dataclass(kw_only=True)
class SyncReport:
    """Aggregated result of `SyncOrchestrator.launch`."""

    managers: list[ManagerReport] = field(default_factory=list)
    is_backfilled: bool = False
    date: str = ""

    def by_outcome(self, outcome: ManagerOutcome) -> list[ManagerReport]:
        return [m for m in self.managers if m.outcome is outcome]
