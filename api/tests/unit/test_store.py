"""Tests for the DuckDB-backed state store."""

import polars as pl
import pytest
from pydantic import ValidationError

from worldsim.persistence.errors import DuplicateYearEventError
from worldsim.persistence.models import HarvestType

from conftest import make_tick, normal_year


def insert_raw_tick(store, tick_index, population, food=10.0, workers=1):
    store.conn.execute(
        """
        INSERT INTO world_ticks (tick_index, population, food, workers, births, deaths)
        VALUES (?, ?, ?, ?, 0, 0)
        """,
        [tick_index, population, food, workers],
    )


class TestTickLog:
    """Append-only tick records."""

    def test_empty_store(self, store):
        assert store.latest_tick() is None
        assert store.latest_tick_row() is None
        assert store.tick_count() == 0

    def test_append_assigns_increasing_ids(self, store):
        """Ids come from the store's sequence."""
        ids = [store.append_tick(make_tick(i)) for i in range(3)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3
        assert store.tick_count() == 3

    def test_append_fills_timestamp(self, store):
        store.append_tick(make_tick(0))
        assert store.latest_tick().ts_utc is not None

    def test_latest_is_highest_tick_index(self, store):
        for i in (0, 1, 2):
            store.append_tick(make_tick(i, population=100 + i))
        latest = store.latest_tick()
        assert latest.tick_index == 2
        assert latest.population == 102

    def test_window_returns_one_year(self, store):
        """Window covers [year * length, (year + 1) * length - 1]."""
        for i in (58, 59, 60, 61, 119, 120):
            store.append_tick(make_tick(i))
        assert [r.tick_index for r in store.window(1, 60)] == [60, 61, 119]
        assert store.window(-1, 60) == []

    def test_recent_ticks_oldest_first(self, store):
        for i in range(5):
            store.append_tick(make_tick(i, food=float(i)))
        recent = store.recent_ticks(3)
        assert [row["tick_index"] for row in recent] == [2, 3, 4]

    def test_history_dataframe(self, store):
        for i in range(4):
            store.append_tick(make_tick(i))
        df = store.history()
        assert isinstance(df, pl.DataFrame)
        assert df.height == 4
        assert store.history(limit=2)["tick_index"].to_list() == [2, 3]


class TestMalformedRows:
    """Rows written outside the model validation."""

    def test_latest_tick_raises_validation_error(self, store):
        insert_raw_tick(store, 5, population=1)
        with pytest.raises(ValidationError):
            store.latest_tick()
        assert store.latest_tick_row()["population"] == 1

    def test_window_skips_invalid_rows(self, store):
        store.append_tick(make_tick(0))
        insert_raw_tick(store, 1, population=1)
        assert [r.tick_index for r in store.window(0, 60)] == [0]


class TestYearEvents:
    """Once-per-year event cache."""

    def test_put_and_get(self, store):
        store.put_year_event(normal_year(3, harvest_type=HarvestType.POOR, rot=True))
        stored = store.get_year_event(3)
        assert stored.harvest_type == HarvestType.POOR
        assert stored.rot is True
        assert stored.created_at is not None
        assert store.get_year_event(4) is None

    def test_duplicate_rejected(self, store):
        store.put_year_event(normal_year(1))
        with pytest.raises(DuplicateYearEventError) as exc_info:
            store.put_year_event(normal_year(1, golden=True))
        assert exc_info.value.year_index == 1
        assert store.get_year_event(1).golden is False

    def test_year_events_frame(self, store):
        store.put_year_event(normal_year(2))
        store.put_year_event(normal_year(0))
        assert store.year_events()["year_index"].to_list() == [0, 2]


class TestMetadata:
    """Scalar metadata."""

    def test_missing_key(self, store):
        assert store.get_meta("nope") is None
        assert store.get_meta_int("nope", 7) == 7

    def test_upsert(self, store):
        store.set_meta("good_streak", 1)
        store.set_meta("good_streak", 2)
        assert store.get_meta("good_streak") == "2"
        assert store.get_meta_int("good_streak") == 2

    def test_non_integer_falls_back(self, store):
        store.set_meta("tick_counter", "abc")
        assert store.get_meta_int("tick_counter", 0) == 0


class TestTransaction:
    """Grouped writes."""

    def test_commit(self, store):
        with store.transaction():
            store.append_tick(make_tick(0))
            store.set_meta("tick_counter", 1)
        assert store.tick_count() == 1
        assert store.get_meta_int("tick_counter") == 1

    def test_rollback_discards_every_write(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.append_tick(make_tick(0))
                store.put_year_event(normal_year(0))
                store.set_meta("tick_counter", 1)
                raise RuntimeError("boom")

        assert store.tick_count() == 0
        assert store.get_year_event(0) is None
        assert store.get_meta("tick_counter") is None


class TestInsertFailures:
    def test_missing_returned_id_raises(self, manager, store, monkeypatch):
        """An insert that yields no id is a store error, not an assertion."""
        from worldsim.persistence.errors import WorldStoreError

        class NoRowCursor:
            def fetchone(self):
                return None

        class NoRowConnection:
            def execute(self, *args, **kwargs):
                return NoRowCursor()

        monkeypatch.setattr(manager, "conn", NoRowConnection())

        with pytest.raises(WorldStoreError, match="returned no id"):
            store.append_tick(make_tick(0))
