"""Tests for the simulated calendar."""

import pytest

from worldsim.config import CalendarConfig, SeasonConfig
from worldsim.engine.calendar import (
    SEASON_LENGTH,
    YEAR_LENGTH,
    Season,
    is_first_tick_of_year,
    is_golden_window,
    is_last_tick_of_year,
    pos_in_year,
    season_for_tick,
    year_index,
)


class TestSeasonForTick:
    """Mapping from tick index to season."""

    @pytest.mark.parametrize(
        "tick,name,factor",
        [
            (0, "winter", 0.9),
            (14, "winter", 0.9),
            (15, "spring", 1.0),
            (29, "spring", 1.0),
            (30, "summer", 1.2),
            (44, "summer", 1.2),
            (45, "autumn", 1.0),
            (59, "autumn", 1.0),
            (60, "winter", 0.9),
        ],
    )
    def test_default_seasons(self, tick, name, factor):
        """Each quarter of the year maps to its season and factor."""
        assert season_for_tick(tick) == Season(name, factor)

    def test_unpacks_as_pair(self):
        """Season behaves as a (name, factor) tuple."""
        name, factor = season_for_tick(31)
        assert (name, factor) == ("summer", 1.2)

    def test_periodic_over_years(self):
        """season(t) == season(t + YEAR_LENGTH) for every tick."""
        for tick in range(0, 4 * YEAR_LENGTH):
            assert season_for_tick(tick) == season_for_tick(tick + YEAR_LENGTH)

    def test_constants(self):
        """Four seasons of fifteen ticks make a sixty-tick year."""
        assert YEAR_LENGTH == 60
        assert SEASON_LENGTH == 15

    def test_custom_calendar(self):
        """A shorter year with two seasons splits evenly."""
        calendar = CalendarConfig(
            year_length=8,
            seasons=[SeasonConfig(name="dry", factor=0.5), SeasonConfig(name="wet", factor=1.5)],
            golden_season="wet",
            golden_window_ticks=2,
        )
        assert [season_for_tick(t, calendar).name for t in range(8)] == ["dry"] * 4 + ["wet"] * 4
        assert is_golden_window(4, calendar)
        assert is_golden_window(5, calendar)
        assert not is_golden_window(6, calendar)
        assert is_last_tick_of_year(15, calendar)


class TestYearPositions:
    """Year index and position within the year."""

    def test_year_index_and_position(self):
        """Index arithmetic uses floor division and modulo."""
        assert year_index(0) == 0
        assert year_index(59) == 0
        assert year_index(60) == 1
        assert pos_in_year(125) == 5

    def test_first_and_last_tick(self):
        """First tick is position 0, last is position 59."""
        assert is_first_tick_of_year(0)
        assert is_first_tick_of_year(120)
        assert not is_first_tick_of_year(121)
        assert is_last_tick_of_year(59)
        assert not is_last_tick_of_year(60)

    def test_golden_window_is_mid_summer(self):
        """Golden window covers positions 30 to 34."""
        window = [pos for pos in range(60) if is_golden_window(pos)]
        assert window == [30, 31, 32, 33, 34]
        assert is_golden_window(60 + 32)
