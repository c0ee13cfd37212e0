"""Tests for year classification."""

import pytest

from worldsim.config import ClassifierConfig
from worldsim.engine.classifier import classify_records, classify_year
from worldsim.persistence.models import YearClass

from conftest import make_tick, write_year


def year(first_food, last_food, population=100):
    return [
        make_tick(0, population=population, food=first_food),
        make_tick(30, population=population, food=(first_food + last_food) / 2),
        make_tick(59, population=population, food=last_food),
    ]


class TestClassifyRecords:
    """Classification from a year's records."""

    @pytest.mark.parametrize(
        "first,last,expected",
        [
            (900.0, 1000.0, YearClass.GOOD),
            (400.0, 300.0, YearClass.BAD),
            (500.0, 520.0, YearClass.NORMAL),
            (1000.0, 900.0, YearClass.NORMAL),
            (100.0, 200.0, YearClass.NORMAL),
            (500.0, 500.0, YearClass.NORMAL),
        ],
    )
    def test_trend_and_stock(self, first, last, expected):
        """Good needs growth and a large stock, bad needs decline and a small one."""
        assert classify_records(year(first, last)) == expected

    def test_empty_window_is_normal(self):
        assert classify_records([]) == YearClass.NORMAL

    def test_uses_first_and_last_by_tick_index(self):
        """Record order does not matter."""
        records = list(reversed(year(400.0, 300.0)))
        assert classify_records(records) == YearClass.BAD

    def test_custom_thresholds(self):
        """Thresholds come from configuration."""
        thresholds = ClassifierConfig(good_stock_per_capita=5.0, bad_stock_per_capita=2.0)
        assert classify_records(year(500.0, 600.0), thresholds) == YearClass.GOOD
        assert classify_records(year(400.0, 300.0), thresholds) == YearClass.NORMAL


class TestClassifyYear:
    """Classification read from the store."""

    def test_negative_year_is_normal(self, store):
        assert classify_year(store, -1) == YearClass.NORMAL

    def test_reads_window_from_store(self, store):
        write_year(store, 2, first=(100, 400.0), last=(100, 300.0))
        assert classify_year(store, 2) == YearClass.BAD
        assert classify_year(store, 1) == YearClass.NORMAL
