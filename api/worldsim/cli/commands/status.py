"""Status and history commands - read-only views of the world log."""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from worldsim.cli.common import get_config, open_store
from worldsim.cli.output import console, log_error, log_info, log_success, output_json
from worldsim.persistence.errors import WorldStoreError
from worldsim.persistence.queries import get_tick_history, get_yearly_summary
from worldsim.reporting.status import build_status, write_status


def show_status(
    ctx: typer.Context,
    db_path: Annotated[
        str | None,
        typer.Option("--db-path", "-d", help="Path to database file (overrides config)"),
    ] = None,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Where to write the status JSON (overrides config)"),
    ] = None,
    recent: Annotated[
        int | None,
        typer.Option("--recent", min=1, help="Number of recent ticks to include"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Also print the status document on stdout"),
    ] = False,
) -> None:
    """Write the status document for the latest world state."""
    try:
        config = get_config(ctx, db_path)
        with open_store(config) as store:
            status = build_status(
                store,
                recent_limit=recent or config.reporting.recent_limit,
                calendar=config.calendar,
            )
        path = write_status(output or config.reporting.status_path, status)
    except (WorldStoreError, OSError) as e:
        log_error(f"Status failed: {e}")
        raise typer.Exit(code=1)

    if not status["has_data"]:
        log_info(f"No ticks recorded yet; wrote empty status to {path}")
    else:
        table = Table(title="World status")
        table.add_column("Field", style="cyan")
        table.add_column("Value", justify="right", style="magenta")
        for key in ("last_tick", "tick_index", "year_index", "season", "population", "food", "workers"):
            table.add_row(key, str(status[key]))
        console.print(table)
        log_success(f"Status written to {path}")

    if json_output:
        output_json(status)


def show_history(
    ctx: typer.Context,
    db_path: Annotated[
        str | None,
        typer.Option("--db-path", "-d", help="Path to database file (overrides config)"),
    ] = None,
    last: Annotated[
        int,
        typer.Option("--last", "-n", min=1, help="Number of recent ticks to show"),
    ] = 20,
    years: Annotated[
        bool,
        typer.Option("--years", help="Show one row per simulated year instead of ticks"),
    ] = False,
    csv_path: Annotated[
        str | None,
        typer.Option("--csv", help="Also export the rows to a CSV file"),
    ] = None,
) -> None:
    """Print recent ticks or the per-year summary."""
    try:
        config = get_config(ctx, db_path)
        year_length = config.calendar.year_length
        with open_store(config) as store:
            if years:
                df = get_yearly_summary(store.conn, year_length)
            else:
                df = get_tick_history(store.conn, year_length, last=last)
    except WorldStoreError as e:
        log_error(f"History failed: {e}")
        raise typer.Exit(code=1)

    if df.height == 0:
        log_info("No ticks recorded yet")
        return

    if years:
        columns = ["year_index", "ticks", "food_start", "food_end", "population_end",
                   "births", "deaths", "harvest_type", "golden", "plague", "rot"]
    else:
        columns = ["tick_index", "year_index", "pos_in_year", "population", "food",
                   "workers", "births", "deaths"]

    table = Table(title="Yearly summary" if years else f"Last {df.height} ticks")
    for column in columns:
        table.add_column(column, justify="right")
    for row in df.select(columns).iter_rows():
        table.add_row(*[f"{v:.1f}" if isinstance(v, float) else str(v) for v in row])
    console.print(table)

    if csv_path:
        Path(csv_path).parent.mkdir(parents=True, exist_ok=True)
        df.write_csv(csv_path)
        log_success(f"Exported {df.height} rows to {csv_path}")
