"""Tests for DatabaseManager: connection, schema setup and lock waiting."""

import duckdb
import pytest


class TestDatabaseManagerInit:
    """Opening the database."""

    def test_creates_connection(self, db_path):
        from worldsim.persistence.connection import DatabaseManager

        with DatabaseManager(db_path) as manager:
            assert isinstance(manager.conn, duckdb.DuckDBPyConnection)
            assert manager.db_path == str(db_path)

    def test_creates_parent_directory(self, tmp_path):
        from worldsim.persistence.connection import DatabaseManager

        db_path = tmp_path / "nested" / "dir" / "world.db"
        with DatabaseManager(db_path):
            pass
        assert db_path.parent.is_dir()

    def test_in_memory(self):
        from worldsim.persistence.connection import DatabaseManager

        with DatabaseManager(":memory:") as manager:
            manager.setup()
            assert manager.is_initialized()


class TestSchemaSetup:
    """Schema creation and validation."""

    def test_setup_creates_tables(self, db_path):
        from worldsim.persistence.connection import DatabaseManager

        with DatabaseManager(db_path) as manager:
            assert not manager.is_initialized()
            manager.setup()
            tables = dict(manager.list_tables())

        assert tables == {"world_meta": 0, "world_ticks": 0, "year_events": 0}

    def test_setup_is_idempotent(self, db_path):
        from worldsim.persistence.connection import DatabaseManager

        with DatabaseManager(db_path) as manager:
            manager.setup()
            manager.setup()
            assert all(not errs for errs in manager.validate_schema().values())

    def test_setup_rejects_mismatched_table(self, db_path):
        from worldsim.persistence.connection import DatabaseManager
        from worldsim.persistence.errors import SchemaError

        with DatabaseManager(db_path) as manager:
            manager.conn.execute("CREATE TABLE world_meta (key VARCHAR PRIMARY KEY, other INTEGER)")
            with pytest.raises(SchemaError, match="world_meta"):
                manager.setup()

    def test_validate_reports_missing_tables(self, db_path):
        from worldsim.persistence.connection import DatabaseManager

        with DatabaseManager(db_path) as manager:
            problems = manager.validate_schema()
        assert set(problems) == {"world_ticks", "year_events", "world_meta"}
        assert all(problems.values())

    def test_data_survives_reopen(self, db_path):
        from worldsim.persistence.connection import DatabaseManager
        from worldsim.persistence.store import StateStore

        from conftest import make_tick

        with DatabaseManager(db_path) as manager:
            manager.setup()
            StateStore(manager).append_tick(make_tick(0, population=77))

        with DatabaseManager(db_path) as manager:
            manager.setup()
            assert StateStore(manager).latest_tick().population == 77


class TestLockWaiting:
    """Waiting for a concurrent writer."""

    def test_retries_until_lock_released(self, db_path, monkeypatch):
        from worldsim.persistence import connection

        real_connect = duckdb.connect
        attempts = {"n": 0}

        def flaky_connect(path):
            attempts["n"] += 1
            if attempts["n"] < 3:
                raise duckdb.IOException("Could not set lock on file")
            return real_connect(path)

        sleeps = []
        monkeypatch.setattr(connection.duckdb, "connect", flaky_connect)
        monkeypatch.setattr(connection.time, "sleep", sleeps.append)

        with connection.DatabaseManager(db_path, busy_timeout_ms=60_000) as manager:
            assert manager.conn is not None

        assert attempts["n"] == 3
        assert sleeps == [connection.LOCK_RETRY_INTERVAL_S] * 2

    def test_gives_up_after_timeout(self, db_path, monkeypatch):
        from worldsim.persistence import connection
        from worldsim.persistence.errors import StoreUnavailableError

        def locked(path):
            raise duckdb.IOException("Could not set lock on file")

        monkeypatch.setattr(connection.duckdb, "connect", locked)
        monkeypatch.setattr(connection.time, "sleep", lambda _s: None)

        with pytest.raises(StoreUnavailableError) as exc_info:
            connection.DatabaseManager(db_path, busy_timeout_ms=0)

        assert exc_info.value.db_path == str(db_path)
        assert "lock" in exc_info.value.reason
