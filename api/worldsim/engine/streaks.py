"""Running counts of consecutive good and bad years."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from worldsim.config.schemas import ClassifierConfig
from worldsim.persistence.models import YearClass
from worldsim.persistence.store import StateStore

from .calendar import YEAR_LENGTH
from .classifier import DEFAULT_THRESHOLDS, classify_year

logger = logging.getLogger(__name__)

GOOD_STREAK_KEY = "good_streak"
BAD_STREAK_KEY = "bad_streak"


@dataclass(frozen=True)
class StreakUpdate:
    """Streak counters after accounting for the year before ``year_index``.

    Attributes:
        year_index: Year whose first tick triggered the update.
        good_streak: Consecutive good years ending at year_index - 1.
        bad_streak: Consecutive bad years ending at year_index - 1.
        classification: Verdict on year_index - 1.
    """

    year_index: int
    good_streak: int
    bad_streak: int
    classification: YearClass

    @property
    def persistent(self) -> bool:
        return self.year_index > 0


def apply_classification(good_streak: int, bad_streak: int, verdict: YearClass) -> tuple[int, int]:
    """Advance the counters; at most one of them is ever nonzero."""
    if verdict is YearClass.GOOD:
        return good_streak + 1, 0
    if verdict is YearClass.BAD:
        return 0, bad_streak + 1
    return 0, 0


class StreakTracker:
    """Reads, updates and stores the good/bad year streaks.

    The update for a year must be applied exactly once; the year-event
    drawer guarantees this by only calling it when the year has no cached
    draw yet.
    """

    def __init__(
        self,
        store: StateStore,
        year_length: int = YEAR_LENGTH,
        thresholds: ClassifierConfig = DEFAULT_THRESHOLDS,
    ) -> None:
        self._store = store
        self._year_length = year_length
        self._thresholds = thresholds

    def current(self) -> tuple[int, int]:
        return (
            self._store.get_meta_int(GOOD_STREAK_KEY, 0),
            self._store.get_meta_int(BAD_STREAK_KEY, 0),
        )

    def compute(self, year_index: int) -> StreakUpdate:
        """Work out the counters for ``year_index`` without writing them."""
        if year_index <= 0:
            return StreakUpdate(year_index, 0, 0, YearClass.NORMAL)

        verdict = classify_year(self._store, year_index - 1, self._year_length, self._thresholds)
        good, bad = apply_classification(*self.current(), verdict)
        return StreakUpdate(year_index, good, bad, verdict)

    def commit(self, update: StreakUpdate) -> None:
        if not update.persistent:
            return
        self._store.set_meta(GOOD_STREAK_KEY, update.good_streak)
        self._store.set_meta(BAD_STREAK_KEY, update.bad_streak)
        logger.info(
            "Year %d classified %s: good_streak=%d bad_streak=%d",
            update.year_index - 1,
            update.classification.value,
            update.good_streak,
            update.bad_streak,
        )

    def resolve_streaks(self, year_index: int) -> StreakUpdate:
        """Classify the previous year, update and persist the counters."""
        update = self.compute(year_index)
        self.commit(update)
        return update
