"""Orchestration of month units: time-window utilities, the manager arena and the orchestrator.

This package provides:
- Date arithmetic, validity checks and query construction (utils)
- ManagerArena: keyed slot storage with a free list
- SyncOrchestrator lives in `reservoir_sync.orchestration.orchestrator`
"""

from reservoir_sync.orchestration.arena import ManagerArena
from reservoir_sync.orchestration.utils import (
    create_query,
    increment_date,
    is_current_month,
    is_valid_date,
    month_start,
    month_window,
    next_month,
    split_window,
)

__all__ = [
    "ManagerArena",
    "create_query",
    "increment_date",
    "is_current_month",
    "is_valid_date",
    "month_start",
    "month_window",
    "next_month",
    "split_window",
]
