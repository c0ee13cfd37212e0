"""Exceptions raised by the persistence layer."""


class WorldStoreError(Exception):
    """Base class for state store failures."""


class StoreUnavailableError(WorldStoreError):
    """Raised when the database cannot be opened or its lock acquired."""

    def __init__(self, db_path: str, reason: str) -> None:
        self.db_path = db_path
        self.reason = reason
        super().__init__(f"State store unavailable at {db_path}: {reason}")


class SchemaError(WorldStoreError):
    """Raised when required tables are missing or do not match the models."""


class DuplicateYearEventError(WorldStoreError):
    """Raised when a year-event record already exists for a year index.

    ``aborted`` is True when the duplicate was only detected by the insert
    itself; DuckDB has then aborted the surrounding transaction and it must
    be rolled back before the store can be read again.
    """

    def __init__(self, year_index: int, aborted: bool = False) -> None:
        self.year_index = year_index
        self.aborted = aborted
        super().__init__(f"Year events already recorded for year {year_index}")
