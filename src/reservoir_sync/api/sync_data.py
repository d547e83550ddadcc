from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from loguru import logger

from reservoir_sync.clients.reservoir import EntityPages, ReservoirClient
from reservoir_sync.core.config import SyncConfig
from reservoir_sync.core.interfaces import ICheckpointStore, IRowStore
from reservoir_sync.core.models import SyncReport
from reservoir_sync.core.use_cases.units import ShutdownSignal
from reservoir_sync.orchestration.orchestrator import SyncOrchestrator
from reservoir_sync.records.registry import all_specs, record_spec
from reservoir_sync.storage.checkpoints import FileCheckpointStore
from reservoir_sync.storage.rows import DuckDBRowStore

# ---------------------------------------------------------------------------
# Setup helpers (filesystem-specific, application layer)
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class SyncResources:
    client: ReservoirClient
    row_store: IRowStore
    checkpoint_store: ICheckpointStore


def _setup(config: SyncConfig, *, checkpoint_dir: Path, db_path: Path) -> SyncResources:
    """Instantiate the HTTP client and the file-backed stores."""
    client = ReservoirClient(
        config.url_base,
        config.api_key,
        timeout_s=config.timeout_s,
        max_connections=max(32, 2 * config.manager_count * config.worker_count),
    )
    return SyncResources(
        client=client,
        row_store=DuckDBRowStore(db_path, all_specs()),
        checkpoint_store=FileCheckpointStore(checkpoint_dir, config.entity_type.value),
    )


async def build_orchestrator(
    config: SyncConfig,
    resources: SyncResources,
    *,
    resume: bool = True,
    shutdown: ShutdownSignal | None = None,
) -> SyncOrchestrator:
    """Wire an orchestrator, restoring the stored checkpoint unless one is already configured."""
    if resume and config.backup is None:
        backup = await resources.checkpoint_store.load()
        if backup is not None:
            logger.info(f"resuming from checkpoint with {len(backup.managers)} managers")
            config = replace(config, backup=backup)

    pages = EntityPages(
        resources.client,
        record_spec(config.entity_type),
        contracts=config.contracts,
        page_size=config.page_size,
    )
    return SyncOrchestrator(
        config,
        pages=pages,
        row_store=resources.row_store,
        checkpoint_store=resources.checkpoint_store,
        shutdown=shutdown,
    )


async def sync_data(
    *,
    config: SyncConfig,
    checkpoint_dir: Path,
    db_path: Path,
    resume: bool = True,
    shutdown: ShutdownSignal | None = None,
) -> SyncReport:
    """
    High-level convenience API for scripts.
    Runs until every manager has retired or `shutdown` is set.
    """
    resources = _setup(config, checkpoint_dir=checkpoint_dir, db_path=db_path)
    try:
        orchestrator = await build_orchestrator(config, resources, resume=resume, shutdown=shutdown)
        return await orchestrator.launch()
    finally:
        await resources.client.aclose()
        if isinstance(resources.row_store, DuckDBRowStore):
            resources.row_store.close()
