"""Tick transition: compute the next world state from the previous one.

Pure computation. Nothing here reads or writes the store; the driver feeds
in the previous record, the year's events, the season and a random source,
and persists the returned record.

Per tick, in order:

1. workers from the population-dependent ratio (plus hunger mobilization)
2. production and consumption noise, rationing
3. harvest and golden factors from the year's events (plus famine bias)
4. food production and consumption, food stock update
5. population growth or decline from the net food flow per capita
6. extra births from a large food stock
7. random births and deaths
8. recovery births for small, well-fed populations
9. plague on the first tick of the year, rot on the last
10. minimum-population clamp and worker recount

Rationing, hunger mobilization and famine bias are off unless enabled in
the model configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from worldsim.config.schemas import (
    CalendarConfig,
    HungerMobilizationConfig,
    RationingConfig,
    TransitionModelConfig,
)
from worldsim.persistence.models import TickRecord, YearEventRecord

from .calendar import (
    DEFAULT_CALENDAR,
    Season,
    is_first_tick_of_year,
    is_golden_window,
    is_last_tick_of_year,
    pos_in_year,
    year_index,
)
from .rng import RandomSource, stochastic_round

DEFAULT_MODEL = TransitionModelConfig()

# (lower bound on net food per capita, growth factor), checked top down
GROWTH_TABLE: list[tuple[float, float]] = [
    (1.0, 0.03),
    (0.5, 0.02),
    (0.2, 0.012),
    (0.05, 0.006),
    (-0.05, 0.0),
    (-0.2, -0.003),
]
SEVERE_DECLINE = -0.01

# (lower bound on food stock per capita, extra birth rate)
STOCK_BIRTH_TABLE: list[tuple[float, float]] = [
    (12.0, 0.02),
    (8.0, 0.01),
    (5.0, 0.005),
]


def workers_ratio(population: int) -> float:
    """Share of the population that works; larger societies specialize more."""
    if population <= 20:
        return 0.45
    if population <= 100:
        return 0.40
    if population <= 500:
        return 0.35
    if population <= 2000:
        return 0.30
    return 0.25


def workers_for(population: int, boost: float = 0.0, max_ratio: float = 1.0) -> int:
    """Worker count for a population, always within [1, population].

    ``boost`` is added to the step-function ratio and the sum is capped at
    ``max_ratio``.
    """
    ratio = min(workers_ratio(population) + boost, max_ratio)
    return min(max(math.floor(population * ratio), 1), max(population, 1))


def population_growth_factor(net_per_capita: float) -> float:
    for bound, factor in GROWTH_TABLE:
        if net_per_capita > bound:
            return factor
    return SEVERE_DECLINE


def stock_birth_rate(stock_per_capita: float) -> float:
    for bound, rate in STOCK_BIRTH_TABLE:
        if stock_per_capita > bound:
            return rate
    return 0.0


def ration_factor(stock_per_capita: float, rationing: RationingConfig) -> float:
    """Fraction of a full ration eaten at a given stock per capita."""
    if not rationing.enabled or stock_per_capita >= rationing.start:
        return 1.0
    if stock_per_capita <= rationing.hard:
        return rationing.floor_factor
    t = (stock_per_capita - rationing.hard) / (rationing.start - rationing.hard)
    return rationing.floor_factor + t * (1.0 - rationing.floor_factor)


def hunger_worker_boost(stock_per_capita: float, mobilization: HungerMobilizationConfig) -> float:
    """Worker ratio added when the stock per person is below ``start``.

    Grows linearly from 0 at ``start`` to ``max_boost`` at an empty stock.
    """
    if not mobilization.enabled or stock_per_capita >= mobilization.start:
        return 0.0
    t = min(max((mobilization.start - stock_per_capita) / mobilization.start, 0.0), 1.0)
    return t * mobilization.max_boost


def initial_state(tick_index: int = 0, model: TransitionModelConfig = DEFAULT_MODEL) -> TickRecord:
    """The world before any history: 100 people, 500 food, 45 workers."""
    population = model.initial_population
    workers = min(max(math.floor(population * model.initial_workers_ratio), 1), population)
    return TickRecord(
        tick_index=tick_index,
        population=population,
        food=model.initial_food,
        workers=workers,
        births=0,
        deaths=0,
        notes="initial state",
    )


@dataclass
class _Ledger:
    """Running population and birth/death counts within one tick."""

    population: int
    births: int = 0
    deaths: int = 0
    notes: list[str] = field(default_factory=list)

    def add(self, n: int) -> None:
        self.population += n
        self.births += n

    def remove(self, n: int) -> None:
        self.population -= n
        self.deaths += n


def compute_next_tick(
    previous: TickRecord | None,
    events: YearEventRecord,
    season: Season,
    tick_index: int,
    rng: RandomSource,
    model: TransitionModelConfig = DEFAULT_MODEL,
    calendar: CalendarConfig = DEFAULT_CALENDAR,
) -> TickRecord:
    """Compute the record for ``tick_index`` from the previous record.

    Args:
        previous: Last stored record, or None to start from the initial state.
        events: The year's events for ``tick_index``.
        season: Season of ``tick_index``.
        tick_index: Index of the tick being computed.
        rng: Source for every random draw.
        model: Transition parameters.
        calendar: Year and season layout.

    Returns:
        An unsaved TickRecord (``id`` and ``ts_utc`` unset).
    """
    if previous is None:
        return initial_state(tick_index, model)

    population = previous.population
    food = previous.food
    pos = pos_in_year(tick_index, calendar.year_length)

    opening_stock_per_capita = food / population
    boost = hunger_worker_boost(opening_stock_per_capita, model.hunger_mobilization)
    max_ratio = model.hunger_mobilization.max_ratio
    workers = workers_for(population, boost, max_ratio)

    noise_prod = float(rng.uniform(-model.production_noise, model.production_noise))
    noise_cons = float(rng.uniform(-model.consumption_noise, model.consumption_noise))
    ration = ration_factor(opening_stock_per_capita, model.rationing)
    consumption_per_person = max(
        model.min_consumption_per_person,
        model.consumption_per_person * (1 + noise_cons) * ration,
    )

    harvest_factor = model.harvest_factors[events.harvest_type.value]
    golden_active = events.golden and is_golden_window(tick_index, calendar)
    golden_factor = model.golden_factor if golden_active else 1.0

    famine = model.famine_bias
    famine_active = famine.enabled and opening_stock_per_capita < famine.threshold
    season_factor = season.factor + (famine.bonus if famine_active else 0.0)

    production_per_worker = max(
        0.0,
        model.production_per_worker
        * season_factor
        * harvest_factor
        * golden_factor
        * (1 + noise_prod),
    )

    produced = workers * production_per_worker
    consumed = population * consumption_per_person
    delta_food = produced - consumed
    food_next = max(0.0, food + delta_food)

    net_per_capita = delta_food / population
    stock_per_capita = food_next / population

    ledger = _Ledger(population)
    if boost > 0:
        ledger.notes.append(f"mobilized=+{boost:.3f}")
    if famine_active:
        ledger.notes.append(f"famine_bias=+{famine.bonus:.2f}")

    growth = population_growth_factor(net_per_capita)
    if growth > 0:
        ledger.add(max(1, math.floor(population * growth)))
    elif growth < 0:
        ledger.remove(max(1, math.floor(population * -growth)))

    stock_rate = stock_birth_rate(stock_per_capita)
    if stock_rate > 0:
        ledger.add(max(1, math.floor(ledger.population * stock_rate)))

    random_births = stochastic_round(rng, ledger.population * model.random_birth_rate)
    random_deaths = stochastic_round(rng, ledger.population * model.random_death_rate)
    ledger.add(random_births)
    ledger.remove(min(random_deaths, max(0, ledger.population - model.min_population)))

    if (
        ledger.population < model.recovery_population
        and stock_per_capita > model.recovery_stock_per_capita
    ):
        ledger.add(max(1, math.floor(ledger.population * model.recovery_rate)))

    if (
        events.plague
        and is_first_tick_of_year(tick_index, calendar)
        and ledger.population > model.min_population
    ):
        fraction = float(rng.uniform(model.plague_loss.low, model.plague_loss.high))
        loss = min(
            math.floor(ledger.population * fraction),
            ledger.population - model.min_population,
        )
        ledger.remove(loss)
        ledger.notes.append(f"plague_loss={loss}")

    if events.rot and is_last_tick_of_year(tick_index, calendar) and food_next > 0:
        fraction = float(rng.uniform(model.rot_loss.low, model.rot_loss.high))
        rot_loss = food_next * fraction
        food_next -= rot_loss
        ledger.notes.append(f"rot_loss={rot_loss:.2f}")

    if ledger.population < model.min_population:
        shortfall = model.min_population - ledger.population
        ledger.deaths = max(0, ledger.deaths - shortfall)
        ledger.population = model.min_population

    notes = " ".join(
        [
            f"season={season.name}",
            f"year={year_index(tick_index, calendar.year_length)}",
            f"pos={pos}",
            f"harvest={events.harvest_type.value}",
            f"golden={int(golden_active)}",
            f"plague={int(events.plague)}",
            f"rot={int(events.rot)}",
            f"net_pc={net_per_capita:.3f}",
            f"stock_pc={stock_per_capita:.3f}",
            *ledger.notes,
        ]
    )

    return TickRecord(
        tick_index=tick_index,
        population=ledger.population,
        food=food_next,
        workers=workers_for(ledger.population, boost, max_ratio),
        births=ledger.births,
        deaths=ledger.deaths,
        notes=notes,
    )
