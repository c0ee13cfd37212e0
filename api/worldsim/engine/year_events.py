"""Once-per-year random events: harvest quality, golden harvest, plague, rot.

Probabilities start from fixed base rates and are skewed by history: a run
of good years makes poor harvests likelier, a run of bad years makes a
golden harvest likelier, and larger populations are more exposed to
plague. The draw for a year is stored on first access and returned
verbatim afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from worldsim.config.schemas import EventsConfig, PlagueStep
from worldsim.persistence.errors import DuplicateYearEventError
from worldsim.persistence.models import HarvestType, YearEventRecord
from worldsim.persistence.store import StateStore, utc_now

from .rng import RandomSource, bernoulli
from .streaks import StreakTracker

logger = logging.getLogger(__name__)

DEFAULT_EVENTS = EventsConfig()


@dataclass(frozen=True)
class EventProbabilities:
    p_poor: float
    p_disastrous: float
    p_golden: float
    p_plague: float
    p_rot: float


def plague_multiplier(population: int, steps: list[PlagueStep]) -> float:
    for step in steps:
        if step.below is None or population < step.below:
            return step.multiplier
    return steps[-1].multiplier


def adjusted_probabilities(
    good_streak: int,
    bad_streak: int,
    population: int,
    config: EventsConfig = DEFAULT_EVENTS,
) -> EventProbabilities:
    """Apply streak and population modifiers to the base probabilities.

    Examples:
        >>> p = adjusted_probabilities(good_streak=2, bad_streak=0, population=600)
        >>> round(p.p_poor, 3), round(p.p_plague, 3)
        (0.16, 0.04)
    """
    good_factor = min(1.0 + config.good_streak_slope * good_streak, config.good_streak_cap)
    bad_factor = min(1.0 + config.bad_streak_slope * bad_streak, config.bad_streak_cap)
    plague_factor = plague_multiplier(population, config.plague_steps)

    def clamp(p: float) -> float:
        return min(max(p, 0.0), config.max_probability)

    return EventProbabilities(
        p_poor=clamp(config.p_poor * good_factor),
        p_disastrous=clamp(config.p_disastrous * good_factor),
        p_golden=clamp(config.p_golden * bad_factor),
        p_plague=clamp(config.p_plague * plague_factor),
        p_rot=clamp(config.p_rot),
    )


def draw_year_events(
    year_index: int,
    probabilities: EventProbabilities,
    rng: RandomSource,
) -> YearEventRecord:
    """Draw a year's events.

    One uniform draw picks the harvest (disastrous below p_disastrous, poor
    below p_disastrous + p_poor); golden, plague and rot are independent
    Bernoulli draws, in that order.
    """
    r = float(rng.random())
    if r < probabilities.p_disastrous:
        harvest = HarvestType.DISASTROUS
    elif r < probabilities.p_disastrous + probabilities.p_poor:
        harvest = HarvestType.POOR
    else:
        harvest = HarvestType.NORMAL

    return YearEventRecord(
        year_index=year_index,
        harvest_type=harvest,
        golden=bernoulli(rng, probabilities.p_golden),
        plague=bernoulli(rng, probabilities.p_plague),
        rot=bernoulli(rng, probabilities.p_rot),
    )


class YearEventDrawer:
    """Memoized access to the events of each simulated year.

    Example:
        >>> drawer = YearEventDrawer(store, StreakTracker(store))
        >>> first = drawer.get_year_events(3, reference_population=250, rng=rng)
        >>> drawer.get_year_events(3, reference_population=900, rng=rng) == first
        True
    """

    def __init__(
        self,
        store: StateStore,
        tracker: StreakTracker,
        config: EventsConfig = DEFAULT_EVENTS,
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._config = config

    def get_year_events(
        self,
        year_index: int,
        reference_population: int,
        rng: RandomSource,
    ) -> YearEventRecord:
        """Return the stored events for a year, drawing them on first access.

        The streak update for the year is only committed when the new draw
        is stored, so the counters advance exactly once per year.

        Raises:
            DuplicateYearEventError: If a concurrent commit won the insert
                (``aborted``); the caller must roll back and read again
        """
        cached = self._store.get_year_event(year_index)
        if cached is not None:
            return cached

        update = self._tracker.compute(year_index)
        probabilities = adjusted_probabilities(
            update.good_streak, update.bad_streak, reference_population, self._config
        )
        record = draw_year_events(year_index, probabilities, rng).model_copy(
            update={"created_at": utc_now()}
        )

        try:
            self._store.put_year_event(record)
        except DuplicateYearEventError as e:
            if e.aborted:
                logger.warning("Year %d events were committed concurrently; draw discarded", year_index)
                raise
            existing = self._store.get_year_event(year_index)
            if existing is None:
                raise
            logger.warning("Year %d events were recorded concurrently; using stored draw", year_index)
            return existing

        self._tracker.commit(update)
        logger.info(
            "Drew events for year %d: harvest=%s golden=%s plague=%s rot=%s",
            year_index,
            record.harvest_type.value,
            record.golden,
            record.plague,
            record.rot,
        )
        return record
