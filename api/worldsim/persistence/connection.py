"""
DuckDB Connection Manager

Opens the world database (waiting for a concurrent writer to release its
lock), creates the schema from the row models and validates it.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import duckdb

from .errors import SchemaError, StoreUnavailableError
from .models import ALL_MODELS
from .schema_generator import generate_full_schema_ddl, table_name_for, validate_table_schema

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT_MS = 5000
LOCK_RETRY_INTERVAL_S = 0.1


class DatabaseManager:
    """Manages the DuckDB connection and schema.

    DuckDB allows a single read-write process per database file. A tick
    started while another one still holds the file gets an IOException on
    connect; the manager keeps retrying until ``busy_timeout_ms`` has
    elapsed, which serializes overlapping invocations.

    Usage:
        with DatabaseManager("worldsim.db") as manager:
            manager.setup()
            manager.conn.execute("SELECT COUNT(*) FROM world_ticks")
    """

    def __init__(
        self,
        db_path: str | Path = "worldsim.db",
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ) -> None:
        """Open the database.

        Args:
            db_path: Path to the DuckDB file, or ":memory:"
            busy_timeout_ms: How long to wait for another process's lock

        Raises:
            StoreUnavailableError: If the file cannot be opened in time
        """
        self.db_path = str(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self.conn = self._connect()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        if self.db_path != ":memory:":
            parent = Path(self.db_path).parent
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreUnavailableError(self.db_path, str(e)) from e

        deadline = time.monotonic() + self.busy_timeout_ms / 1000.0
        attempts = 0
        while True:
            attempts += 1
            try:
                return duckdb.connect(self.db_path)
            except duckdb.IOException as e:
                if time.monotonic() >= deadline:
                    raise StoreUnavailableError(
                        self.db_path, f"lock not acquired after {attempts} attempts: {e}"
                    ) from e
                logger.debug("Database %s is locked, retrying (attempt %d)", self.db_path, attempts)
                time.sleep(LOCK_RETRY_INTERVAL_S)
            except duckdb.Error as e:
                raise StoreUnavailableError(self.db_path, str(e)) from e

    def initialize_schema(self) -> None:
        """Create sequences, tables and indexes if they do not exist.

        Raises:
            SchemaError: If a DDL statement fails
        """
        for statement in generate_full_schema_ddl():
            try:
                self.conn.execute(statement)
            except duckdb.Error as e:
                raise SchemaError(f"Failed to initialize schema: {e}") from e
        logger.debug("Schema initialized at %s", self.db_path)

    def is_initialized(self) -> bool:
        """Check whether the core tick table exists."""
        result = self.conn.execute(
            """
            SELECT COUNT(*) FROM information_schema.tables
            WHERE table_schema = 'main' AND table_name = ?
            """,
            [table_name_for(ALL_MODELS[0])],
        ).fetchone()
        return bool(result and result[0])

    def validate_schema(self) -> dict[str, list[str]]:
        """Compare every table against its row model.

        Returns:
            Mapping of table name to a list of problems (empty when valid)
        """
        return {
            table_name_for(model): validate_table_schema(self.conn, model)[1]
            for model in ALL_MODELS
        }

    def setup(self) -> None:
        """Initialize and validate the schema.

        Raises:
            SchemaError: If any table does not match its model
        """
        self.initialize_schema()

        problems = {table: errs for table, errs in self.validate_schema().items() if errs}
        if problems:
            details = "; ".join(f"{table}: {', '.join(errs)}" for table, errs in problems.items())
            raise SchemaError(
                f"Database schema does not match the row models ({details}). "
                "Delete the database or restore a compatible backup."
            )

    def list_tables(self) -> list[tuple[str, int]]:
        """Return (table_name, row_count) for every table in the main schema."""
        names = [
            row[0]
            for row in self.conn.execute(
                """
                SELECT table_name FROM information_schema.tables
                WHERE table_schema = 'main'
                ORDER BY table_name
                """
            ).fetchall()
        ]
        return [
            (name, self.conn.execute(f"SELECT COUNT(*) FROM {name}").fetchone()[0])  # type: ignore[index]
            for name in names
        ]

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> DatabaseManager:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
