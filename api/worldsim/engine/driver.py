"""Tick driver: one invocation, one appended record.

Reads the latest record, resolves the tick and year index, obtains the
year's events, computes the next state and appends it. The whole sequence
runs in a single store transaction, so a failure leaves the log, the
year-event cache and the streak counters untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from worldsim.config.schemas import WorldConfig
from worldsim.persistence.errors import DuplicateYearEventError
from worldsim.persistence.models import TickRecord, YearEventRecord
from worldsim.persistence.store import StateStore, utc_now

from .calendar import Season, season_for_tick, year_index
from .rng import EVENT_STREAM, TICK_STREAM, RandomSource, create_rng
from .streaks import StreakTracker
from .transition import compute_next_tick
from .year_events import YearEventDrawer

logger = logging.getLogger(__name__)

TICK_COUNTER_KEY = "tick_counter"

RngFactory = Callable[[int | None, int, int], RandomSource]


@dataclass(frozen=True)
class TickResult:
    """Outcome of one driver invocation.

    Attributes:
        record: The appended record, with its store id and timestamp.
        year_events: Events in force for the record's year.
        season: Season of the record's tick.
        restarted: True when the previous state was missing or malformed.
    """

    record: TickRecord
    year_events: YearEventRecord
    season: Season
    restarted: bool

    @property
    def year_index(self) -> int:
        return self.year_events.year_index


class TickDriver:
    """Runs ticks against a state store.

    Example:
        >>> driver = TickDriver(store, WorldConfig())
        >>> driver.run_tick().record.population
        100
    """

    def __init__(
        self,
        store: StateStore,
        config: WorldConfig | None = None,
        rng_factory: RngFactory = create_rng,
    ) -> None:
        self._store = store
        self._config = config or WorldConfig()
        self._rng_factory = rng_factory
        self._tracker = StreakTracker(
            store, self._config.calendar.year_length, self._config.classifier
        )
        self._drawer = YearEventDrawer(store, self._tracker, self._config.events)

    @property
    def tracker(self) -> StreakTracker:
        return self._tracker

    @property
    def drawer(self) -> YearEventDrawer:
        return self._drawer

    def run_tick(self) -> TickResult:
        """Compute and append exactly one tick.

        If another invocation commits the year's events while this one is
        drawing them, the transaction is rolled back and the tick is run once
        more on a fresh snapshot, which reuses the stored draw.
        """
        try:
            return self._run_tick_once()
        except DuplicateYearEventError as e:
            if not e.aborted:
                raise
            logger.warning("Retrying tick: %s", e)
            return self._run_tick_once()

    def _run_tick_once(self) -> TickResult:
        config = self._config
        seed = config.simulation.rng_seed

        with self._store.transaction():
            raw_previous = self._store.latest_tick_row()
            previous = self._validate_previous(raw_previous)
            tick_index = self._next_tick_index(raw_previous)
            year = year_index(tick_index, config.calendar.year_length)

            reference_population = (
                previous.population if previous is not None else config.model.initial_population
            )
            events = self._drawer.get_year_events(
                year, reference_population, self._rng_factory(seed, EVENT_STREAM, year)
            )

            season = season_for_tick(tick_index, config.calendar)
            record = compute_next_tick(
                previous,
                events,
                season,
                tick_index,
                self._rng_factory(seed, TICK_STREAM, tick_index),
                config.model,
                config.calendar,
            ).model_copy(update={"ts_utc": utc_now()})

            record_id = self._store.append_tick(record)
            self._store.set_meta(TICK_COUNTER_KEY, tick_index + 1)

        record = record.model_copy(update={"id": record_id})
        logger.info(
            "Tick %d (year %d, %s): population=%d food=%.1f workers=%d births=%d deaths=%d",
            tick_index,
            year,
            season.name,
            record.population,
            record.food,
            record.workers,
            record.births,
            record.deaths,
        )
        return TickResult(record, events, season, restarted=previous is None)

    def run_ticks(self, count: int) -> list[TickResult]:
        """Run ``count`` consecutive ticks, each in its own transaction."""
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")
        return [self.run_tick() for _ in range(count)]

    def _validate_previous(self, row: dict | None) -> TickRecord | None:
        if row is None:
            return None
        try:
            return TickRecord.model_validate(row)
        except ValidationError as e:
            logger.warning(
                "Latest tick row %s is malformed, restarting from the initial state: %s",
                row.get("id"),
                e,
            )
            return None

    def _next_tick_index(self, row: dict | None) -> int:
        """Next index from the maintained counter, never behind the log."""
        from_counter = self._store.get_meta_int(TICK_COUNTER_KEY, 0)
        from_log = 0
        if row is not None and isinstance(row.get("tick_index"), int):
            from_log = row["tick_index"] + 1
        return max(from_counter, from_log)
