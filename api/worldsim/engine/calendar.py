"""Simulated calendar: years, seasons and positions within a year."""

from __future__ import annotations

from typing import NamedTuple

from worldsim.config.schemas import CalendarConfig

YEAR_LENGTH = 60
SEASON_LENGTH = 15

DEFAULT_CALENDAR = CalendarConfig()


class Season(NamedTuple):
    """Season label and its production multiplier."""

    name: str
    factor: float


def year_index(tick_index: int, year_length: int = YEAR_LENGTH) -> int:
    return tick_index // year_length


def pos_in_year(tick_index: int, year_length: int = YEAR_LENGTH) -> int:
    return tick_index % year_length


def season_for_tick(tick_index: int, calendar: CalendarConfig = DEFAULT_CALENDAR) -> Season:
    """Map a tick index to its season.

    With the default calendar the first 15 ticks of each year are winter
    (0.9), then spring (1.0), summer (1.2) and autumn (1.0).

    Examples:
        >>> season_for_tick(0)
        Season(name='winter', factor=0.9)
        >>> season_for_tick(95)
        Season(name='spring', factor=1.0)
    """
    pos = pos_in_year(tick_index, calendar.year_length)
    season = calendar.seasons[pos // calendar.season_length]
    return Season(season.name, season.factor)


def is_first_tick_of_year(tick_index: int, calendar: CalendarConfig = DEFAULT_CALENDAR) -> bool:
    return pos_in_year(tick_index, calendar.year_length) == 0


def is_last_tick_of_year(tick_index: int, calendar: CalendarConfig = DEFAULT_CALENDAR) -> bool:
    return pos_in_year(tick_index, calendar.year_length) == calendar.year_length - 1


def is_golden_window(tick_index: int, calendar: CalendarConfig = DEFAULT_CALENDAR) -> bool:
    """True during the opening ticks of the golden season (positions 30-34 by default)."""
    names = [s.name for s in calendar.seasons]
    start = names.index(calendar.golden_season) * calendar.season_length
    pos = pos_in_year(tick_index, calendar.year_length)
    return start <= pos < start + calendar.golden_window_ticks
