import asyncio
import json
import signal
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from reservoir_sync.constants import RETRY_INTERVAL_S, TAIL_INTERVAL_S, URL_BASES
from reservoir_sync.core.errors import SyncError
from reservoir_sync.records.registry import parse_entity_type
from reservoir_sync.records.specs import EntityType

console = Console()

ENTITY_CHOICES = click.Choice([t.value for t in EntityType])


@click.group()
def cli() -> None:
    """reservoir-sync: resumable backfill and live tailing of marketplace events."""


@cli.command("sync")
@click.option("--chain", type=click.Choice(sorted(URL_BASES)), default="mainnet", show_default=True)
@click.option("--type", "entity", type=ENTITY_CHOICES, default="sales", show_default=True)
@click.option("--api-key", envvar="RESERVOIR_API_KEY", required=True, help="Upstream API key")
@click.option("--date", "start_date", required=True, help="Backfill start date (YYYY-MM-DD)")
@click.option("--managers", type=int, default=1, show_default=True, help="Month units run concurrently")
@click.option("--workers", type=int, default=1, show_default=True, help="Workers per month unit")
@click.option("--contract", "contracts", multiple=True, help="Contract allow-list; repeat to OR")
@click.option("--checkpoint-dir", type=click.Path(path_type=Path), default=Path("./checkpoints"), show_default=True)
@click.option("--db", "db_path", type=click.Path(path_type=Path), default=Path("./data/reservoir.duckdb"), show_default=True)
@click.option("--resume/--no-resume", default=True, show_default=True, help="Restore from the stored checkpoint")
@click.option("--tail-interval", type=float, default=TAIL_INTERVAL_S, show_default=True, help="Seconds between tailing cycles")
@click.option("--retry-interval", type=float, default=RETRY_INTERVAL_S, show_default=True, help="Seconds before retrying a failed page")
@click.option("--log-level", default="INFO", show_default=True)
def sync_cmd(
    chain: str,
    entity: str,
    api_key: str,
    start_date: str,
    managers: int,
    workers: int,
    contracts: tuple[str, ...],
    checkpoint_dir: Path,
    db_path: Path,
    resume: bool,
    tail_interval: float,
    retry_interval: float,
    log_level: str,
) -> None:
    """Backfill from --date, then tail the current month until interrupted."""
    from reservoir_sync.api.sync_data import sync_data
    from reservoir_sync.core.config import SyncConfig
    from reservoir_sync.core.use_cases.units import ShutdownSignal
    from reservoir_sync.log import configure_logging

    configure_logging(log_level)
    try:
        config = SyncConfig(
            entity_type=parse_entity_type(entity),
            chain=chain,
            api_key=api_key,
            date=start_date,
            contracts=contracts,
            manager_count=managers,
            worker_count=workers,
            retry_interval_s=retry_interval,
            tail_interval_s=tail_interval,
        )
    except SyncError as e:
        raise click.BadParameter(str(e)) from e

    async def run():
        shutdown = ShutdownSignal()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, shutdown.set)
        return await sync_data(
            config=config,
            checkpoint_dir=checkpoint_dir,
            db_path=db_path,
            resume=resume,
            shutdown=shutdown,
        )

    try:
        report = asyncio.run(run())
    except SyncError as e:
        raise click.ClickException(str(e)) from e

    table = Table(title=f"{entity} on {chain}")
    for col in ("manager", "date", "outcome", "cycles", "retired", "tailing", "error"):
        table.add_column(col)
    for m in report.managers:
        table.add_row(
            m.name,
            m.date,
            m.outcome.value,
            str(m.cycles),
            "yes" if m.retired else "",
            "yes" if m.is_backfilled else "",
            m.error or "",
        )
    console.print(table)
    console.print(f"[bold]cursor[/]: {report.date}  [bold]backfilled[/]: {report.is_backfilled}")


@cli.group("checkpoint")
def checkpoint_grp() -> None:
    """Inspect stored checkpoints."""


@checkpoint_grp.command("show")
@click.option("--checkpoint-dir", type=click.Path(path_type=Path), default=Path("./checkpoints"), show_default=True)
@click.option("--type", "entity", type=ENTITY_CHOICES, default="sales", show_default=True)
def checkpoint_show_cmd(checkpoint_dir: Path, entity: str) -> None:
    """Print the stored checkpoint tree for an entity type."""
    from reservoir_sync.storage.checkpoints import FileCheckpointStore

    store = FileCheckpointStore(checkpoint_dir, entity)
    try:
        checkpoint = asyncio.run(store.load())
    except SyncError as e:
        raise click.ClickException(str(e)) from e
    if checkpoint is None:
        console.print(f"[yellow]no checkpoint[/] at {store.path}")
        return
    console.print_json(json.dumps(checkpoint.model_dump()))


@cli.command("inspect")
@click.option("--db", "db_path", type=click.Path(path_type=Path, exists=True), default=Path("./data/reservoir.duckdb"), show_default=True)
@click.option("--type", "entity", type=ENTITY_CHOICES, default="sales", show_default=True)
@click.option("--limit", type=int, default=10, show_default=True)
def inspect_cmd(db_path: Path, entity: str, limit: int) -> None:
    """Show the row count and the most recently updated rows."""
    from reservoir_sync.storage.rows import count_rows, latest_rows

    console.print(f"[bold]{entity}[/]: {count_rows(db_path, entity):,} rows")
    df = latest_rows(db_path, entity, limit)
    table = Table()
    for col in df.columns:
        table.add_column(str(col), overflow="fold")
    for rec in df.itertuples(index=False):
        table.add_row(*(v.hex() if isinstance(v, (bytes, bytearray)) else str(v) for v in rec))
    console.print(table)
