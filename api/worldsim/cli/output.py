"""Output formatting utilities for CLI.

- stdout = machine-readable data (JSON)
- stderr = human-readable logs (progress, errors, info)
"""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# stderr console for human logs (preserves colors when redirected)
console = Console(stderr=True)


def output_json(data: Any, indent: int | None = 2) -> None:
    """Output JSON to stdout (machine-readable)."""
    print(json.dumps(data, indent=indent, default=str), flush=True)


def log_info(message: str, quiet: bool = False) -> None:
    if not quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def log_success(message: str, quiet: bool = False) -> None:
    if not quiet:
        console.print(f"[green]✓[/green] {message}")


def log_warning(message: str, quiet: bool = False) -> None:
    if not quiet:
        console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")


def log_error(message: str) -> None:
    """Log error message to stderr (always shown)."""
    console.print(f"[red]✗[/red] {message}", style="bold red")


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich on stderr.

    Args:
        verbose: DEBUG level when True, WARNING otherwise
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
