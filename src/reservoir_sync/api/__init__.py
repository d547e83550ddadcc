"""High-level entry points wiring the client, stores and orchestrator."""

from reservoir_sync.api.sync_data import build_orchestrator, sync_data

__all__ = ["build_orchestrator", "sync_data"]
