"""Sync orchestrator: month units -> concurrent managers -> review -> checkpoint.

The orchestrator:
- Creates `manager_count` managers on successive months starting at the
  configured date, or restores them verbatim from a checkpoint.
- Drives every manager concurrently; one manager's completion or failure
  never blocks or cancels the others.
- Reviews each completed cycle: reassign to the next month, retire, or keep
  a tailing manager running forever.
- Writes a checkpoint after every review and after every successful page.

It depends only on interfaces (IPageProvider, IRowStore, ICheckpointStore)
and does not manage their lifecycle.
"""

from __future__ import annotations

import asyncio
import uuid

from loguru import logger

from reservoir_sync.core.checkpoint import Checkpoint, ManagerCheckpoint
from reservoir_sync.core.config import SyncConfig
from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.core.interfaces import ICheckpointStore, IPageProvider, IRowStore
from reservoir_sync.core.models import ManagerOutcome, ManagerReport, SyncReport
from reservoir_sync.core.use_cases.units import ShutdownSignal, UnitContext, UnitManager
from reservoir_sync.core.use_cases.write import IdempotentWriter
from reservoir_sync.orchestration.arena import ManagerArena
from reservoir_sync.orchestration.utils import Clock, is_valid_date, next_month, utc_now
from reservoir_sync.records.registry import record_spec


class SyncOrchestrator:
    """Owns every unit manager of one entity type and the global month cursor."""

    def __init__(
        self,
        config: SyncConfig,
        *,
        pages: IPageProvider,
        row_store: IRowStore,
        checkpoint_store: ICheckpointStore,
        clock: Clock = utc_now,
        shutdown: ShutdownSignal | None = None,
    ) -> None:
        self.config = config
        self.managers: ManagerArena[UnitManager] = ManagerArena()
        self._checkpoint_store = checkpoint_store
        self._clock = clock
        self._shutdown = shutdown or ShutdownSignal()
        self._date = config.date
        self._is_backfilled = False
        self._tailing: UnitManager | None = None
        self._failed: list[ManagerCheckpoint] = []
        self._task: asyncio.Task[SyncReport] | None = None
        self._prepared = False
        self._ctx = UnitContext(
            pages=pages,
            spec=record_spec(config.entity_type),
            writer=IdempotentWriter(row_store, config.entity_type.value),
            observer=self,
            shutdown=self._shutdown,
            clock=clock,
            contracts=tuple(config.contracts),
            retry_interval_s=config.retry_interval_s,
            tail_interval_s=config.tail_interval_s,
            page_delay_s=config.page_delay_s,
        )

    # ---------- state ----------

    @property
    def date(self) -> str:
        """Latest month handed out (global assignment cursor)."""
        return self._date

    @property
    def is_backfilled(self) -> bool:
        return self._is_backfilled

    @property
    def tailing_manager(self) -> UnitManager | None:
        return self._tailing

    def request_shutdown(self) -> None:
        logger.info("shutdown requested")
        self._shutdown.set()

    # ---------- launch ----------

    async def launch(self) -> SyncReport:
        """Build (or restore) managers and run them until all have ended.

        Calling it again while a run is in flight awaits the same run.
        """
        if self._task is None:
            self.prepare()
            self._task = asyncio.create_task(self._run_managers())
        return await asyncio.shield(self._task)

    def prepare(self) -> None:
        """Create or restore the managers once; later calls are no-ops."""
        if self._prepared:
            return
        backup = self.config.backup
        if backup is not None and backup.managers:
            self._restore_managers(backup)
        else:
            self._create_managers()
        self._prepared = True

    def _new_manager(self, date: str, **kwargs) -> UnitManager:
        return UnitManager(
            name=f"{self.config.entity_type.value}-manager-{uuid.uuid4()}",
            date=date,
            ctx=self._ctx,
            worker_count=self.config.worker_count,
            **kwargs,
        )

    def _create_managers(self) -> None:
        now = self._clock()
        if not is_valid_date(self._date, now):
            raise ValidationFailure(f"start date {self._date!r} is malformed or in the future")
        for i in range(self.config.manager_count):
            if i != 0:
                date = next_month(self._date)
                if not is_valid_date(date, now):
                    break
                self._date = date
            self.managers.insert(self._new_manager(self._date))
        logger.info(f"created {len(self.managers)} managers, cursor at {self._date}")

    def _restore_managers(self, backup: Checkpoint) -> None:
        self._date = backup.date
        for m in backup.managers:
            self.managers.insert(
                self._new_manager(m.date, workers=m.workers, timestamp=m.timestamp)
            )
        logger.info(f"restored {len(self.managers)} managers from checkpoint, cursor at {self._date}")

    # ---------- checkpointing (IManagerObserver) ----------

    def snapshot(self) -> Checkpoint:
        managers = [m.snapshot() for m in self.managers.values()]
        return Checkpoint(date=self._date, managers=managers + list(self._failed))

    async def checkpoint(self) -> None:
        await self._checkpoint_store.save(self.snapshot())

    def claim_tailing(self, manager: UnitManager) -> bool:
        if self._tailing is None:
            self._tailing = manager
            return True
        return self._tailing is manager

    # ---------- review ----------

    async def review(self, manager: UnitManager) -> bool:
        """Decide whether `manager` keeps running after a completed cycle.

        Returns
        -------
        bool
            True when the manager is tailing or was reassigned to the next
            month; False when no further month is valid and it must retire.
        """
        if manager.is_backfilled:
            self._is_backfilled = True
            await self.checkpoint()
            return True

        date = next_month(self._date)
        if is_valid_date(date, self._clock()):
            self._date = date
            manager.assign(date)
            await self.checkpoint()
            return True

        await self.checkpoint()
        return False

    # ---------- drive ----------

    async def _drive_manager(self, key: int, manager: UnitManager) -> ManagerReport:
        cycles = 0
        retired = False
        while True:
            outcome = await manager.run()
            cycles += 1
            if outcome is ManagerOutcome.STOPPED:
                break
            if outcome is ManagerOutcome.FAILED:
                self.managers.remove(key)
                self._failed.append(manager.snapshot())
                retired = True
                await self.checkpoint()
                break
            try:
                keep = await self.review(manager)
            except Exception as e:
                logger.opt(exception=e).error(f"{manager.name}: review failed")
                manager.error = e
                outcome = ManagerOutcome.FAILED
                self.managers.remove(key)
                self._failed.append(manager.snapshot())
                retired = True
                await self.checkpoint()
                break
            if not keep:
                logger.info(f"{manager.name}: no further month after {self._date}, retiring")
                self.managers.remove(key)
                retired = True
                await self.checkpoint()
                break
            if self._shutdown.is_set():
                outcome = ManagerOutcome.STOPPED
                break

        return ManagerReport(
            name=manager.name,
            date=manager.date,
            outcome=outcome,
            cycles=cycles,
            retired=retired,
            is_backfilled=manager.is_backfilled,
            error=None if manager.error is None else str(manager.error),
        )

    async def _run_managers(self) -> SyncReport:
        tasks = [
            asyncio.create_task(self._drive_manager(key, manager))
            for key, manager in self.managers.items()
        ]
        reports = list(await asyncio.gather(*tasks))
        await self.checkpoint()
        logger.info(
            f"all managers ended: {len(self.managers)} live, "
            f"{sum(r.retired for r in reports)} retired, backfilled={self._is_backfilled}"
        )
        return SyncReport(managers=reports, is_backfilled=self._is_backfilled, date=self._date)
