"""
Persistence layer for the world simulator.

Provides DuckDB-based storage for the tick log, the year-event cache and
scalar metadata.
"""

from .connection import DatabaseManager
from .errors import (
    DuplicateYearEventError,
    SchemaError,
    StoreUnavailableError,
    WorldStoreError,
)
from .models import HarvestType, MetaRecord, TickRecord, YearClass, YearEventRecord
from .store import StateStore

__all__ = [
    "DatabaseManager",
    "DuplicateYearEventError",
    "HarvestType",
    "MetaRecord",
    "SchemaError",
    "StateStore",
    "StoreUnavailableError",
    "TickRecord",
    "WorldStoreError",
    "YearClass",
    "YearEventRecord",
]
