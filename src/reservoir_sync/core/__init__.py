"""Core data models, configuration, interfaces and error taxonomy.

This package provides:
- Data models (SubWindow, PollResult, ManagerOutcome, ManagerReport, SyncReport)
- Checkpoint tree (Checkpoint, ManagerCheckpoint, WorkerCheckpoint)
- Configuration (SyncConfig)
- Errors (SyncError and its subclasses)
"""

from reservoir_sync.core.checkpoint import Checkpoint, ManagerCheckpoint, WorkerCheckpoint
from reservoir_sync.core.config import SyncConfig
from reservoir_sync.core.errors import (
    SyncError,
    TransportFailure,
    UpstreamFailure,
    ValidationFailure,
    WriteFailure,
)
from reservoir_sync.core.models import ManagerOutcome, ManagerReport, PollResult, SubWindow, SyncReport

__all__ = [
    "Checkpoint",
    "ManagerCheckpoint",
    "WorkerCheckpoint",
    "SyncConfig",
    "SyncError",
    "TransportFailure",
    "UpstreamFailure",
    "ValidationFailure",
    "WriteFailure",
    "ManagerOutcome",
    "ManagerReport",
    "PollResult",
    "SubWindow",
    "SyncReport",
]
