"""Chart command - render time-series charts of the world log."""

from pathlib import Path
from typing import Annotated

import typer

from worldsim.cli.common import get_config, open_store
from worldsim.cli.output import log_error, log_info, log_success
from worldsim.persistence.errors import WorldStoreError
from worldsim.persistence.queries import get_tick_history


def render_charts(
    ctx: typer.Context,
    db_path: Annotated[
        str | None,
        typer.Option("--db-path", "-d", help="Path to database file (overrides config)"),
    ] = None,
    out_dir: Annotated[
        str | None,
        typer.Option("--out-dir", "-o", help="Directory for PNG files (overrides config)"),
    ] = None,
    last: Annotated[
        int | None,
        typer.Option("--last", "-n", min=1, help="Only chart the newest N ticks"),
    ] = None,
) -> None:
    """Render food and population charts (desktop and mobile layouts)."""
    from worldsim.reporting.charting import TickSeries, render_all_charts

    try:
        config = get_config(ctx, db_path)
        year_length = config.calendar.year_length
        with open_store(config) as store:
            df = get_tick_history(store.conn, year_length, last=last)
    except WorldStoreError as e:
        log_error(f"Chart failed: {e}")
        raise typer.Exit(code=1)

    if df.height == 0:
        log_info("No ticks recorded yet; nothing to chart")
        return

    target = Path(out_dir or config.reporting.chart_dir)
    written = render_all_charts(TickSeries.from_frame(df, year_length), target)
    for path in written:
        log_success(f"Wrote {path}")
