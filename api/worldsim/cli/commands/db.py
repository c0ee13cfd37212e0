"""
Database Management CLI Commands

- init: Initialize database schema
- validate: Validate schema against the row models
- list: List all tables with row counts
- backup: Copy the database file to a backup location
- restore: Replace the database file with a backup
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from worldsim.cli.common import get_config
from worldsim.cli.output import console, log_error, log_info, log_success
from worldsim.persistence.connection import DatabaseManager
from worldsim.persistence.errors import WorldStoreError

db_app = typer.Typer(help="Database management commands")

DbPathOption = Annotated[
    str | None,
    typer.Option("--db-path", "-d", help="Path to database file (overrides config)"),
]


def _checkpoint(db_path: str, busy_timeout_ms: int) -> None:
    """Flush the write-ahead log into the main file, waiting for any writer."""
    with DatabaseManager(db_path, busy_timeout_ms) as manager:
        manager.conn.execute("CHECKPOINT")


@db_app.command("init")
def db_init(ctx: typer.Context, db_path: DbPathOption = None) -> None:
    """Initialize database schema from the row models."""
    config = get_config(ctx, db_path)
    path = config.store.db_path
    try:
        with DatabaseManager(path, config.store.busy_timeout_ms) as manager:
            already = manager.is_initialized()
            manager.setup()
    except WorldStoreError as e:
        log_error(f"Error initializing database: {e}")
        raise typer.Exit(code=1)

    if already:
        log_success(f"Database already initialized at {path}")
    else:
        log_success(f"Database initialized at {path}")


@db_app.command("validate")
def db_validate(ctx: typer.Context, db_path: DbPathOption = None) -> None:
    """Validate database schema against the row models."""
    config = get_config(ctx, db_path)
    try:
        with DatabaseManager(config.store.db_path, config.store.busy_timeout_ms) as manager:
            problems = manager.validate_schema()
    except WorldStoreError as e:
        log_error(f"Error validating schema: {e}")
        raise typer.Exit(code=1)

    for table_name, errors in problems.items():
        if errors:
            console.print(f"  [red]✗[/red] {table_name}")
            for error in errors:
                console.print(f"      {error}")
        else:
            console.print(f"  [green]✓[/green] {table_name}")

    if any(problems.values()):
        log_error("Schema validation failed; run 'worldsim db init' or restore a backup")
        raise typer.Exit(code=1)
    log_success("Schema validation passed")


@db_app.command("list")
def db_list(ctx: typer.Context, db_path: DbPathOption = None) -> None:
    """List all tables in the database."""
    config = get_config(ctx, db_path)
    try:
        with DatabaseManager(config.store.db_path, config.store.busy_timeout_ms) as manager:
            tables = manager.list_tables()
    except WorldStoreError as e:
        log_error(f"Error listing tables: {e}")
        raise typer.Exit(code=1)

    if not tables:
        log_info("No tables found in database")
        return

    table = Table(title="Database Tables")
    table.add_column("Table Name", style="cyan")
    table.add_column("Rows", justify="right", style="magenta")
    for table_name, row_count in tables:
        table.add_row(table_name, str(row_count))
    console.print(table)


@db_app.command("backup")
def db_backup(
    ctx: typer.Context,
    destination: Annotated[str, typer.Argument(help="Backup file to write")],
    db_path: DbPathOption = None,
) -> None:
    """Copy the database to a backup file."""
    config = get_config(ctx, db_path)
    source = Path(config.store.db_path)
    if not source.exists():
        log_error(f"Database not found: {source}")
        raise typer.Exit(code=1)

    try:
        _checkpoint(str(source), config.store.busy_timeout_ms)
        target = Path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
    except (WorldStoreError, OSError) as e:
        log_error(f"Backup failed: {e}")
        raise typer.Exit(code=1)

    log_success(f"Backed up {source} to {target}")


@db_app.command("restore")
def db_restore(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="Backup file to restore from")],
    db_path: DbPathOption = None,
    if_exists: Annotated[
        bool,
        typer.Option("--if-exists", help="Succeed silently when the backup is missing"),
    ] = False,
) -> None:
    """Replace the database with a backup (used at startup to restore a disk copy)."""
    config = get_config(ctx, db_path)
    backup = Path(source)
    if not backup.exists():
        if if_exists:
            log_info(f"No backup at {backup}; nothing to restore")
            return
        log_error(f"Backup not found: {backup}")
        raise typer.Exit(code=1)

    target = Path(config.store.db_path)
    try:
        if target.exists():
            _checkpoint(str(target), config.store.busy_timeout_ms)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(backup, target)
        wal = Path(str(target) + ".wal")
        if wal.exists():
            wal.unlink()
    except (WorldStoreError, OSError) as e:
        log_error(f"Restore failed: {e}")
        raise typer.Exit(code=1)

    log_success(f"Restored {backup} to {target}")
