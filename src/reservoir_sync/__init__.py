from __future__ import annotations

from .core.checkpoint import Checkpoint, ManagerCheckpoint, WorkerCheckpoint
from .core.config import SyncConfig
from .core.models import ManagerOutcome, ManagerReport, SyncReport
from .orchestration.orchestrator import SyncOrchestrator
from .records.specs import EntityType, RecordSpec

__all__ = [
    "Checkpoint",
    "ManagerCheckpoint",
    "WorkerCheckpoint",
    "SyncConfig",
    "ManagerOutcome",
    "ManagerReport",
    "SyncReport",
    "SyncOrchestrator",
    "EntityType",
    "RecordSpec",
]
