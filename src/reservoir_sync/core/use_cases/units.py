from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from reservoir_sync.core.checkpoint import ManagerCheckpoint, WorkerCheckpoint
from reservoir_sync.core.errors import TransportFailure, UpstreamFailure
from reservoir_sync.core.interfaces import IManagerObserver, IPageProvider
from reservoir_sync.core.models import ManagerOutcome, PollResult, SubWindow
from reservoir_sync.core.use_cases.write import IdempotentWriter
from reservoir_sync.orchestration.utils import (
    Clock,
    format_timestamp,
    is_current_month,
    month_window,
    parse_timestamp,
    split_window,
)
from reservoir_sync.records.specs import RecordSpec


# ---------------------------------------------------------------------------
# Shutdown signal
# ---------------------------------------------------------------------------


class ShutdownSignal:
    """Cooperative shutdown flag checked between pages and between cycles."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds; return True if shutdown was requested."""
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(0.0, timeout))
        except TimeoutError:
            pass
        return self._event.is_set()


# ---------------------------------------------------------------------------
# Unit context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class UnitContext:
    """
    Collaborators shared by every manager and worker of one orchestrator.

    - `pages` is an IPageProvider: the domain does not care whether pages come
      from the live API or a scripted provider.
    - `writer` applies rows idempotently to the row store.
    - `observer` is the owner's narrow callback surface (checkpoint, tailing claim).

    Nothing in here is mutated by workers.
    """

    pages: IPageProvider
    spec: RecordSpec
    writer: IdempotentWriter
    observer: IManagerObserver
    shutdown: ShutdownSignal
    clock: Clock
    contracts: tuple[str, ...] = ()
    retry_interval_s: float = 5.0
    tail_interval_s: float = 30.0
    page_delay_s: float = 0.0


# ---------------------------------------------------------------------------
# Unit worker
# ---------------------------------------------------------------------------


class UnitWorker:
    """Owns one sub-window and its continuation cursor.

    Parameters
    ----------
    name : str
        Process-local identifier (used in logs only).
    window : SubWindow
        Assigned half-open time range.
    ctx : UnitContext
        Shared collaborators.
    timestamp : int
        Server time (epoch seconds) of the last processed item; never regresses.
    continuation : str
        Upstream cursor; non-empty means more pages remain for this window.
    drained : bool
        True once the window has been exhausted.
    """

    def __init__(
        self,
        *,
        name: str,
        window: SubWindow,
        ctx: UnitContext,
        timestamp: int = 0,
        continuation: str = "",
        drained: bool = False,
    ) -> None:
        self.name = name
        self.window = window
        self.timestamp = timestamp
        self.continuation = continuation
        self.drained = drained
        self._ctx = ctx
        self._bounds = window

    @property
    def date(self) -> str:
        return format_timestamp(self.window.start)

    @property
    def bounds(self) -> SubWindow:
        """Bounds sent with the first page of the current pass."""
        return self._bounds

    def rearm_for_tail(self, *, open_ended: bool) -> None:
        """Start a new tailing pass from the last progress point."""
        self._rearm(None if open_ended else self.window.end)

    def resume_from_progress(self) -> None:
        """Start a pass over the rest of the window, after the last processed item."""
        self._rearm(self.window.end)

    def _rearm(self, end: int | None) -> None:
        self._bounds = SubWindow(start=max(self.window.start, self.timestamp), end=end)
        self.continuation = ""
        self.drained = False

    async def poll_once(self) -> PollResult:
        """Fetch, transform and write one page.

        Transport and upstream failures come back as a non-exhausted result;
        write failures propagate.
        """
        if self.continuation:
            request = {"continuation": self.continuation}
        elif self._bounds.is_empty():
            self.drained = True
            return PollResult(rows_written=0, exhausted=True)
        else:
            request = {"start_timestamp": self._bounds.start, "end_timestamp": self._bounds.end}

        try:
            payload = await self._ctx.pages.get_page(**request)
        except (TransportFailure, UpstreamFailure) as e:
            logger.warning(f"{self.name}: page request failed, will retry: {e}")
            return PollResult(rows_written=0, exhausted=False, error=e)

        spec = self._ctx.spec
        items = spec.extract(payload)
        rows = spec.parse(items, self._ctx.contracts)
        await self._ctx.writer.apply(rows)

        for item in items:
            ts = spec.updated_at(item)
            if ts is not None and ts > self.timestamp:
                self.timestamp = ts
        self.continuation = payload.get("continuation") or ""
        self.drained = not self.continuation
        logger.debug(
            f"{self.name}: items={len(items)} rows={len(rows)} "
            f"timestamp={self.timestamp} exhausted={self.drained}"
        )
        return PollResult(rows_written=len(rows), exhausted=self.drained)

    def snapshot(self) -> WorkerCheckpoint:
        return WorkerCheckpoint(
            date=self.date,
            timestamp=self.timestamp,
            continuation=self.continuation,
        )


# ---------------------------------------------------------------------------
# Unit manager
# ---------------------------------------------------------------------------


class UnitManager:
    """
    Owns the workers of one calendar month and drives them concurrently.

    The month window is split into `worker_count` equal sub-windows. One call
    to `run()` is one cycle: every worker is polled until its sub-window is
    exhausted. A manager whose month is the current month claims the tailing
    role and from then on re-polls its workers every `tail_interval_s`.
    The manager never retires itself.
    """

    def __init__(
        self,
        *,
        name: str,
        date: str,
        ctx: UnitContext,
        worker_count: int = 1,
        workers: Sequence[WorkerCheckpoint] | None = None,
        timestamp: int = 0,
    ) -> None:
        self.name = name
        self.date = date
        self.timestamp = timestamp
        self.is_backfilled = False
        self.error: Exception | None = None
        self.workers: dict[str, UnitWorker] = {}
        self._ctx = ctx
        self._worker_count = worker_count
        if workers:
            self._restore(workers)
        else:
            self._partition()

    # ---------- worker layout ----------

    def _worker_name(self, idx: int) -> str:
        return f"{self.name}-worker-{idx}"

    def _partition(self) -> None:
        windows = split_window(*month_window(self.date), self._worker_count)
        self.workers = {
            self._worker_name(i): UnitWorker(name=self._worker_name(i), window=w, ctx=self._ctx)
            for i, w in enumerate(windows)
        }

    def _restore(self, checkpoints: Sequence[WorkerCheckpoint]) -> None:
        windows = split_window(*month_window(self.date), len(checkpoints))
        self.workers = {}
        for i, (cp, w) in enumerate(zip(checkpoints, windows)):
            name = self._worker_name(i)
            worker = UnitWorker(
                name=name,
                window=SubWindow(start=parse_timestamp(cp.date), end=w.end),
                ctx=self._ctx,
                timestamp=cp.timestamp,
                continuation=cp.continuation,
            )
            # Empty cursor with progress: poll the remainder of the window.
            if not cp.continuation and cp.timestamp > 0:
                worker.resume_from_progress()
            self.workers[name] = worker

    def assign(self, date: str) -> None:
        """Reassign this manager to a new month with fresh workers."""
        if self.is_backfilled:
            raise RuntimeError(f"{self.name} is tailing and cannot be reassigned")
        self.date = date
        self.error = None
        self._partition()
        logger.info(f"{self.name}: assigned {date} ({len(self.workers)} workers)")

    # ---------- run loop ----------

    async def run(self) -> ManagerOutcome:
        """Run one cycle and report how it ended."""
        try:
            return await self._run_cycle()
        except Exception as e:
            self.error = e
            logger.opt(exception=e).error(f"{self.name}: cycle failed for {self.date}")
            return ManagerOutcome.FAILED

    async def _run_cycle(self) -> ManagerOutcome:
        ctx = self._ctx
        if self.is_backfilled:
            if await ctx.shutdown.wait(ctx.tail_interval_s):
                return ManagerOutcome.STOPPED
            last = len(self.workers) - 1
            for i, worker in enumerate(self.workers.values()):
                worker.rearm_for_tail(open_ended=i == last)

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self._drive(w)) for w in self.workers.values()]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None

        if not all(t.result() for t in tasks):
            return ManagerOutcome.STOPPED
        if self.is_backfilled:
            return ManagerOutcome.BACKFILLED
        if is_current_month(self.date, ctx.clock()) and ctx.observer.claim_tailing(self):
            self.is_backfilled = True
            logger.info(f"{self.name}: caught up with {self.date}, switching to tailing")
            return ManagerOutcome.BACKFILLED
        logger.info(f"{self.name}: exhausted {self.date}")
        return ManagerOutcome.EXHAUSTED

    async def _drive(self, worker: UnitWorker) -> bool:
        """Poll one worker until drained; False if interrupted by shutdown."""
        ctx = self._ctx
        while not worker.drained:
            if ctx.shutdown.is_set():
                return False
            result = await worker.poll_once()
            if not result.ok:
                if await ctx.shutdown.wait(ctx.retry_interval_s):
                    return False
                continue
            self.timestamp = max(self.timestamp, worker.timestamp)
            await ctx.observer.checkpoint()
            if not result.exhausted and ctx.page_delay_s > 0:
                if await ctx.shutdown.wait(ctx.page_delay_s):
                    return False
        return True

    def snapshot(self) -> ManagerCheckpoint:
        return ManagerCheckpoint(
            date=self.date,
            timestamp=self.timestamp,
            workers=[w.snapshot() for w in self.workers.values()],
        )
