"""State store for the world log.

Wraps a DuckDB connection with the small interface the tick engine needs:
append/fetch tick records, read/write the once-per-year event cache and
read/write scalar metadata. Nothing here commits on its own; callers group
writes with ``transaction()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import duckdb
import polars as pl
from pydantic import ValidationError

from .connection import DatabaseManager
from .errors import DuplicateYearEventError, WorldStoreError
from .models import TickRecord, YearEventRecord

logger = logging.getLogger(__name__)

TICK_COLUMNS = (
    "id, tick_index, ts_utc, population, food, workers, births, deaths, notes"
)


def utc_now() -> datetime:
    """Current UTC time as a naive timestamp (DuckDB TIMESTAMP semantics)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StateStore:
    """Durable world state: tick log, year-event cache and metadata.

    Example:
        >>> with DatabaseManager(":memory:") as manager:
        ...     manager.setup()
        ...     store = StateStore(manager)
        ...     store.latest_tick() is None
        True
    """

    def __init__(self, manager: DatabaseManager) -> None:
        self._manager = manager

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        return self._manager.conn

    @contextmanager
    def transaction(self) -> Iterator[StateStore]:
        """Run a block atomically; any exception rolls every write back."""
        self.conn.begin()
        try:
            yield self
        except BaseException:
            self.conn.rollback()
            raise
        self.conn.commit()

    # =========================================================================
    # Tick log
    # =========================================================================

    def append_tick(self, record: TickRecord) -> int:
        """Append a tick record and return its store-assigned id."""
        ts = record.ts_utc or utc_now()
        row = self.conn.execute(
            """
            INSERT INTO world_ticks
                (tick_index, ts_utc, population, food, workers, births, deaths, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            [
                record.tick_index,
                ts,
                record.population,
                record.food,
                record.workers,
                record.births,
                record.deaths,
                record.notes,
            ],
        ).fetchone()
        if row is None:
            raise WorldStoreError(f"Insert of tick {record.tick_index} returned no id")
        return int(row[0])

    def latest_tick_row(self) -> dict[str, Any] | None:
        """Return the newest tick row as a plain dict, without validation."""
        rows = self._fetch_dicts(
            f"""
            SELECT {TICK_COLUMNS} FROM world_ticks
            ORDER BY tick_index DESC, id DESC
            LIMIT 1
            """
        )
        return rows[0] if rows else None

    def latest_tick(self) -> TickRecord | None:
        """Return the newest tick record.

        Raises:
            pydantic.ValidationError: If the stored row violates the model
        """
        row = self.latest_tick_row()
        if row is None:
            return None
        return TickRecord.model_validate(row)

    def window(self, year_index: int, year_length: int) -> list[TickRecord]:
        """Return the records of one simulated year, ordered by tick index.

        Rows that fail validation are skipped.
        """
        if year_index < 0:
            return []
        start = year_index * year_length
        rows = self._fetch_dicts(
            f"""
            SELECT {TICK_COLUMNS} FROM world_ticks
            WHERE tick_index BETWEEN ? AND ?
            ORDER BY tick_index, id
            """,
            [start, start + year_length - 1],
        )
        records = []
        for row in rows:
            try:
                records.append(TickRecord.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping malformed tick row %s: %s", row.get("id"), e)
        return records

    def recent_ticks(self, limit: int) -> list[dict[str, Any]]:
        """Return up to ``limit`` newest rows, oldest first."""
        rows = self._fetch_dicts(
            f"""
            SELECT {TICK_COLUMNS} FROM world_ticks
            ORDER BY tick_index DESC, id DESC
            LIMIT ?
            """,
            [limit],
        )
        rows.reverse()
        return rows

    def history(self, limit: int | None = None) -> pl.DataFrame:
        """Return the tick log (or its newest ``limit`` rows) as a DataFrame."""
        if limit is None:
            return self.conn.execute(
                f"SELECT {TICK_COLUMNS} FROM world_ticks ORDER BY tick_index, id"
            ).pl()
        return self.conn.execute(
            f"""
            SELECT * FROM (
                SELECT {TICK_COLUMNS} FROM world_ticks
                ORDER BY tick_index DESC, id DESC
                LIMIT ?
            ) ORDER BY tick_index, id
            """,
            [limit],
        ).pl()

    def tick_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM world_ticks").fetchone()
        return int(row[0]) if row else 0

    # =========================================================================
    # Year events
    # =========================================================================

    def get_year_event(self, year_index: int) -> YearEventRecord | None:
        rows = self._fetch_dicts(
            """
            SELECT year_index, harvest_type, golden, plague, rot, created_at
            FROM year_events WHERE year_index = ?
            """,
            [year_index],
        )
        return YearEventRecord.model_validate(rows[0]) if rows else None

    def put_year_event(self, record: YearEventRecord) -> None:
        """Insert the events for a year.

        Raises:
            DuplicateYearEventError: If the year already has a record (with
                ``aborted=True`` when a concurrent commit won the insert)
        """
        if self.get_year_event(record.year_index) is not None:
            raise DuplicateYearEventError(record.year_index)
        try:
            self.conn.execute(
                """
                INSERT INTO year_events (year_index, harvest_type, golden, plague, rot, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    record.year_index,
                    record.harvest_type.value,
                    record.golden,
                    record.plague,
                    record.rot,
                    record.created_at or utc_now(),
                ],
            )
        except duckdb.ConstraintException as e:
            raise DuplicateYearEventError(record.year_index, aborted=True) from e

    def year_events(self) -> pl.DataFrame:
        return self.conn.execute(
            """
            SELECT year_index, harvest_type, golden, plague, rot, created_at
            FROM year_events ORDER BY year_index
            """
        ).pl()

    # =========================================================================
    # Metadata
    # =========================================================================

    def get_meta(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM world_meta WHERE key = ?", [key]
        ).fetchone()
        return None if row is None else str(row[0])

    def set_meta(self, key: str, value: str | int) -> None:
        self.conn.execute(
            """
            INSERT INTO world_meta (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT (key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            [key, str(value), utc_now()],
        )

    def get_meta_int(self, key: str, default: int = 0) -> int:
        """Read an integer metadata value, falling back to ``default``."""
        raw = self.get_meta(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("Metadata %s holds non-integer value %r, using %d", key, raw, default)
            return default

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fetch_dicts(self, query: str, params: list[Any] | None = None) -> list[dict[str, Any]]:
        cursor = self.conn.execute(query, params or [])
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]
