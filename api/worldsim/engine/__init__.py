"""World tick engine: calendar, year events, streaks and the tick transition."""

from .calendar import YEAR_LENGTH, SEASON_LENGTH, Season, season_for_tick
from .classifier import classify_records, classify_year
from .driver import TickDriver, TickResult
from .rng import create_rng
from .streaks import StreakTracker, StreakUpdate
from .transition import compute_next_tick, initial_state, workers_for, workers_ratio
from .year_events import YearEventDrawer, adjusted_probabilities, draw_year_events

__all__ = [
    "SEASON_LENGTH",
    "YEAR_LENGTH",
    "Season",
    "StreakTracker",
    "StreakUpdate",
    "TickDriver",
    "TickResult",
    "YearEventDrawer",
    "adjusted_probabilities",
    "classify_records",
    "classify_year",
    "compute_next_tick",
    "create_rng",
    "draw_year_events",
    "initial_state",
    "season_for_tick",
    "workers_for",
    "workers_ratio",
]
