"""World simulator CLI - Main entry point."""

from typing import Annotated

import typer
import yaml

from worldsim import __version__

app = typer.Typer(
    name="worldsim",
    help="World simulator - one persisted population/food tick per invocation",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from worldsim.cli.output import console
        console.print(f"[bold]worldsim[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        str | None,
        typer.Option("--config", "-c", help="YAML configuration file", envvar="WORLDSIM_CONFIG"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """World simulator CLI."""
    from worldsim.cli.common import load_cli_config
    from worldsim.cli.output import configure_logging, log_error

    configure_logging(verbose)
    try:
        ctx.obj = {"config": load_cli_config(config_path)}
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        log_error(str(e))
        raise typer.Exit(code=1)


# Import commands after app is defined to avoid circular imports
from worldsim.cli.commands.chart import render_charts  # noqa: E402
from worldsim.cli.commands.db import db_app  # noqa: E402
from worldsim.cli.commands.status import show_history, show_status  # noqa: E402
from worldsim.cli.commands.tick import run_tick  # noqa: E402

app.command(name="tick", help="Run one simulation tick")(run_tick)
app.command(name="status", help="Write the status document for the latest state")(show_status)
app.command(name="history", help="Show recent ticks or yearly summaries")(show_history)
app.command(name="chart", help="Render time-series charts")(render_charts)
app.add_typer(db_app, name="db")


if __name__ == "__main__":
    app()
