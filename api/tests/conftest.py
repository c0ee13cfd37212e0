"""
Pytest configuration and shared fixtures.

Provides:
- In-memory and file-backed state stores
- Deterministic stand-ins for the random source
- Helpers to write tick records straight into the log
"""

from collections.abc import Iterable, Iterator
from pathlib import Path

import pytest

from worldsim.persistence.connection import DatabaseManager
from worldsim.persistence.models import HarvestType, TickRecord, YearEventRecord
from worldsim.persistence.store import StateStore


class FixedRandom:
    """Random source with fixed outputs.

    ``random()`` always returns ``value`` (the default makes every Bernoulli
    draw fail) and ``uniform(low, high)`` returns the point ``at`` of the
    interval (the midpoint by default, so symmetric noise is zero).
    """

    def __init__(self, value: float = 0.999999, at: float = 0.5) -> None:
        self.value = value
        self.at = at
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value

    def uniform(self, low: float, high: float) -> float:
        self.calls += 1
        return low + (high - low) * self.at


class SequenceRandom(FixedRandom):
    """Random source whose ``random()`` replays a list of values."""

    def __init__(self, values: Iterable[float], at: float = 0.5) -> None:
        super().__init__(at=at)
        self._values = list(values)

    def random(self) -> float:
        self.calls += 1
        return self._values.pop(0)


@pytest.fixture
def fixed_random() -> FixedRandom:
    return FixedRandom()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "worldsim.db"


@pytest.fixture
def manager() -> Iterator[DatabaseManager]:
    with DatabaseManager(":memory:") as mgr:
        mgr.setup()
        yield mgr


@pytest.fixture
def store(manager) -> StateStore:
    return StateStore(manager)


def make_tick(tick_index: int, population: int = 100, food: float = 500.0, **kwargs) -> TickRecord:
    """Build a valid tick record with sensible defaults."""
    fields = {
        "tick_index": tick_index,
        "population": population,
        "food": food,
        "workers": max(1, min(population, population * 4 // 10)),
    }
    fields.update(kwargs)
    return TickRecord(**fields)


def write_year(
    store: StateStore,
    year_index: int,
    first: tuple[int, float],
    last: tuple[int, float],
    year_length: int = 60,
) -> None:
    """Write the first and last tick of a year as (population, food) pairs."""
    start = year_index * year_length
    store.append_tick(make_tick(start, population=first[0], food=first[1]))
    store.append_tick(make_tick(start + year_length - 1, population=last[0], food=last[1]))


def normal_year(year_index: int = 0, **kwargs) -> YearEventRecord:
    fields = {"year_index": year_index, "harvest_type": HarvestType.NORMAL}
    fields.update(kwargs)
    return YearEventRecord(**fields)
