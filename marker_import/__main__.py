"""Command-line interface for marker imports."""

import asyncio
import csv
import signal
import sys
from pathlib import Path
from typing import Optional

import click

from marker_import.core.config import settings
from marker_import.core.logging import configure_logging
from marker_import.errors import StoreError
from marker_import.importer.pipeline import ImportPipeline
from marker_import.importer.ports import AccountDirectory, MarkerStore
from marker_import.models.records import ColumnMapping
from marker_import.models.run import RunPhase, RunProgress, RunResult, RunStatus
from marker_import.storage.file_store import JsonFileMarkerStore
from marker_import.storage.plans import PLANS, StaticAccountDirectory


def build_pipeline(store: MarkerStore, accounts: AccountDirectory) -> ImportPipeline:
    return ImportPipeline.from_settings(store, accounts, settings)


def read_csv_rows(path: Path) -> list[dict[str, str]]:
    """Read a CSV file with a header row into row mappings."""
    with open(path, newline="", encoding="utf-8-sig") as f:
        return [dict(row) for row in csv.DictReader(f)]


class ProgressPrinter:
    """Echoes progress snapshots, one line per processed record."""

    def __init__(self) -> None:
        self.phase: Optional[RunPhase] = None

    def __call__(self, progress: RunProgress) -> None:
        if progress.phase != self.phase:
            self.phase = progress.phase
            if progress.phase != RunPhase.DONE:
                click.echo(f"[{progress.phase.value}] {progress.total} records")
            return
        if (
            progress.phase in (RunPhase.GEOCODING, RunPhase.PERSISTING)
            and progress.current_label
        ):
            click.echo(
                f"  {progress.processed}/{progress.total} "
                f"({progress.percent:.0f}%) {progress.current_label}"
            )


def echo_result(result: RunResult) -> None:
    click.echo(f"Import {result.status.value}")
    click.echo(f"  Markers added: {result.markers_added}")
    click.echo(
        f"  Duplicates skipped: {result.duplicates_skipped} "
        f"({result.internal_duplicates} in file, {result.external_duplicates} already on map)"
    )
    click.echo(f"  Rows skipped: {result.rows_skipped}")
    click.echo(f"  Geocoding failures: {result.geocode_failures}")
    if result.geocoding_denied:
        click.echo(f"  Geocoding not permitted: {result.geocoding_denied}")
    if result.persist_failures:
        click.echo(f"  Save failures: {result.persist_failures}")
    for skip in result.skips:
        click.echo(f"  Row {skip.row_index + 1}: {skip.reason.value} {skip.detail}".rstrip())
    for error in result.errors:
        click.echo(f"Error: {error}", err=True)
    if result.should_prompt_upgrade:
        click.echo("Upgrade your plan to import more markers or enable geocoding.")


async def run_import(
    pipeline: ImportPipeline,
    rows: list[dict[str, str]],
    mapping: ColumnMapping,
    account_id: str,
    map_id: str,
    quiet: bool,
) -> RunResult:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        # Signal handlers are unavailable on some platforms and threads
        pass
    try:
        return await pipeline.run(
            rows,
            mapping,
            account_id,
            map_id,
            progress=None if quiet else ProgressPrinter(),
            cancel_event=cancel_event,
        )
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


@click.group()
def cli():
    """Import location spreadsheets as map markers."""
    pass


@cli.command("import-csv")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--account", "-a", "account_id", required=True, help="Account owning the map")
@click.option("--map", "-m", "map_id", required=True, help="Target map id")
@click.option("--name-column", default="name", help="Column holding the marker name")
@click.option("--address-column", default="address", help="Column holding the address")
@click.option("--lat-column", default=None, help="Column holding the latitude")
@click.option("--lng-column", default=None, help="Column holding the longitude")
@click.option(
    "--plan",
    type=click.Choice(sorted(PLANS)),
    default=None,
    help="Plan applied to the account (defaults to DEFAULT_PLAN)",
)
@click.option(
    "--store",
    "store_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON marker store file (defaults to MARKER_STORE_PATH)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the run result as JSON")
@click.option("--quiet", "-q", is_flag=True, help="Do not print progress")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def import_csv(
    csv_path: Path,
    account_id: str,
    map_id: str,
    name_column: str,
    address_column: str,
    lat_column: Optional[str],
    lng_column: Optional[str],
    plan: Optional[str],
    store_path: Optional[Path],
    as_json: bool,
    quiet: bool,
    verbose: bool,
):
    """Import markers from a CSV file with a header row."""
    configure_logging(
        level="debug" if verbose else settings.LOG_LEVEL,
        json_logs=settings.JSON_LOGS,
    )

    rows = read_csv_rows(csv_path)
    mapping = ColumnMapping(
        name=name_column or None,
        address=address_column or None,
        lat=lat_column,
        lng=lng_column,
    )
    if not mapping.is_usable():
        raise click.UsageError(
            "A name column plus an address column or both coordinate columns are required"
        )

    try:
        store = JsonFileMarkerStore(store_path or settings.MARKER_STORE_PATH)
    except StoreError as e:
        raise click.ClickException(str(e)) from e
    accounts = StaticAccountDirectory(
        {account_id: plan or settings.DEFAULT_PLAN}, default_plan=settings.DEFAULT_PLAN
    )
    pipeline = build_pipeline(store, accounts)

    result = asyncio.run(
        run_import(pipeline, rows, mapping, account_id, map_id, quiet or as_json)
    )

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    else:
        echo_result(result)

    if result.status == RunStatus.FAILED:
        sys.exit(1)


@cli.command()
def plans():
    """List the available plans."""
    for plan in PLANS.values():
        ceiling = plan.max_markers_per_map
        limit = "unlimited" if ceiling is None else f"{ceiling} markers/map"
        geocoding = "geocoding" if plan.geocoding else "no geocoding"
        click.echo(f"{plan.id:<14} {plan.name:<14} {limit:<20} {geocoding}")


if __name__ == "__main__":
    cli()
