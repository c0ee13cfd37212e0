"""Tick command - advance the world by one (or more) ticks."""

from typing import Annotated

import typer

from worldsim.cli.common import get_config, open_store
from worldsim.cli.output import log_error, log_success, log_warning, output_json
from worldsim.engine.driver import TickDriver, TickResult
from worldsim.persistence.errors import WorldStoreError


def _summary(result: TickResult) -> dict:
    record = result.record
    return {
        "id": record.id,
        "tick_index": record.tick_index,
        "year_index": result.year_index,
        "season": result.season.name,
        "population": record.population,
        "food": round(record.food, 2),
        "workers": record.workers,
        "births": record.births,
        "deaths": record.deaths,
        "harvest": result.year_events.harvest_type.value,
        "golden": result.year_events.golden,
        "plague": result.year_events.plague,
        "rot": result.year_events.rot,
        "notes": record.notes,
    }


def run_tick(
    ctx: typer.Context,
    db_path: Annotated[
        str | None,
        typer.Option("--db-path", "-d", help="Path to database file (overrides config)"),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="RNG seed for replayable ticks (overrides config)"),
    ] = None,
    count: Annotated[
        int,
        typer.Option("--count", "-n", min=1, help="Number of consecutive ticks to run"),
    ] = 1,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print tick summaries as JSON on stdout"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress messages"),
    ] = False,
) -> None:
    """Advance the world: read the latest state, compute the next one, append it."""
    results: list[TickResult] = []
    try:
        config = get_config(ctx, db_path)
        if seed is not None:
            config = config.model_copy(
                update={"simulation": config.simulation.model_copy(update={"rng_seed": seed})}
            )

        with open_store(config) as store:
            driver = TickDriver(store, config)
            for _ in range(count):
                results.append(driver.run_tick())

    except (WorldStoreError, ValueError) as e:
        # Earlier ticks are already committed
        _report(results, quiet)
        if json_output and results:
            output_json([_summary(r) for r in results])
        log_error(f"Tick failed after {len(results)} of {count} ticks appended: {e}")
        raise typer.Exit(code=1)

    _report(results, quiet)

    if json_output:
        summaries = [_summary(r) for r in results]
        output_json(summaries[0] if count == 1 else summaries)


def _report(results: list[TickResult], quiet: bool) -> None:
    for result in results:
        if result.restarted and result.record.tick_index > 0:
            log_warning(
                f"Tick {result.record.tick_index}: no valid previous state, restarted from initial conditions",
                quiet,
            )
        record = result.record
        log_success(
            f"Tick {record.tick_index} (year {result.year_index}, {result.season.name}): "
            f"population={record.population} food={record.food:.1f} workers={record.workers}",
            quiet,
        )
