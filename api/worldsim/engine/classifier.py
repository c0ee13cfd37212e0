"""Classification of a completed simulated year as good, bad or normal."""

from __future__ import annotations

from collections.abc import Sequence

from worldsim.config.schemas import ClassifierConfig
from worldsim.persistence.models import TickRecord, YearClass
from worldsim.persistence.store import StateStore

from .calendar import YEAR_LENGTH

DEFAULT_THRESHOLDS = ClassifierConfig()


def classify_records(
    records: Sequence[TickRecord],
    thresholds: ClassifierConfig = DEFAULT_THRESHOLDS,
) -> YearClass:
    """Classify one year's records from its food trend and stock per capita.

    A year is good when food grew and the average of the opening and
    closing stock per capita exceeds ``good_stock_per_capita``; bad when
    food shrank and that average is below ``bad_stock_per_capita``.
    Empty windows are normal.
    """
    if not records:
        return YearClass.NORMAL

    first = min(records, key=lambda r: r.tick_index)
    last = max(records, key=lambda r: r.tick_index)

    delta_food = last.food - first.food
    avg_stock_per_capita = (first.food_per_capita + last.food_per_capita) / 2

    if delta_food > 0 and avg_stock_per_capita > thresholds.good_stock_per_capita:
        return YearClass.GOOD
    if delta_food < 0 and avg_stock_per_capita < thresholds.bad_stock_per_capita:
        return YearClass.BAD
    return YearClass.NORMAL


def classify_year(
    store: StateStore,
    year_index: int,
    year_length: int = YEAR_LENGTH,
    thresholds: ClassifierConfig = DEFAULT_THRESHOLDS,
) -> YearClass:
    """Classify a simulated year from the stored tick log."""
    if year_index < 0:
        return YearClass.NORMAL
    return classify_records(store.window(year_index, year_length), thresholds)
