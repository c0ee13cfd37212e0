"""Helpers shared by CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from worldsim.config import WorldConfig, load_config
from worldsim.persistence import DatabaseManager, StateStore


def get_config(ctx: typer.Context, db_path: str | None = None) -> WorldConfig:
    """Return the loaded config, with ``--db-path`` applied when given."""
    config: WorldConfig = ctx.obj["config"] if ctx.obj else WorldConfig()
    if db_path is not None:
        config = config.model_copy(
            update={"store": config.store.model_copy(update={"db_path": db_path})}
        )
    return config


def load_cli_config(config_path: str | None) -> WorldConfig:
    return load_config(config_path) if config_path else WorldConfig()


@contextmanager
def open_store(config: WorldConfig) -> Iterator[StateStore]:
    """Open the configured database, create the schema and yield a store."""
    with DatabaseManager(config.store.db_path, config.store.busy_timeout_ms) as manager:
        manager.setup()
        yield StateStore(manager)
