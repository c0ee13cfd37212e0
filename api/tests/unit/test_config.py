"""Tests for configuration schemas and the YAML loader."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from worldsim.config import (
    CalendarConfig,
    EventsConfig,
    LossRange,
    PlagueStep,
    RationingConfig,
    WorldConfig,
    load_config,
)

EXAMPLE_CONFIG = Path(__file__).resolve().parents[3] / "config" / "worldsim.yaml"


class TestDefaults:
    def test_world_defaults(self):
        config = WorldConfig()
        assert config.calendar.year_length == 60
        assert config.calendar.season_length == 15
        assert config.model.initial_population == 100
        assert config.model.initial_food == 500.0
        assert config.events.max_probability == 0.8
        assert config.classifier.good_stock_per_capita == 8.0
        assert config.store.busy_timeout_ms == 5000
        assert config.simulation.rng_seed is None
        assert config.model.rationing.enabled is False

    def test_load_none_returns_defaults(self):
        assert load_config(None) == WorldConfig()


class TestValidation:
    def test_seasons_must_divide_year(self):
        with pytest.raises(ValidationError, match="divisible"):
            CalendarConfig(year_length=61)

    def test_golden_season_must_exist(self):
        with pytest.raises(ValidationError, match="golden_season"):
            CalendarConfig(golden_season="monsoon")

    def test_golden_window_fits_season(self):
        with pytest.raises(ValidationError, match="golden_window_ticks"):
            CalendarConfig(golden_window_ticks=16)

    def test_loss_range_order(self):
        with pytest.raises(ValidationError):
            LossRange(low=0.5, high=0.2)

    def test_rationing_thresholds(self):
        with pytest.raises(ValidationError):
            RationingConfig(start=0.4, hard=0.5)

    def test_plague_steps_need_unbounded_tail(self):
        with pytest.raises(ValidationError, match="unbounded"):
            EventsConfig(plague_steps=[PlagueStep(below=200, multiplier=1.0)])

    def test_plague_steps_ascend(self):
        with pytest.raises(ValidationError, match="ascend"):
            EventsConfig(
                plague_steps=[
                    PlagueStep(below=500, multiplier=1.0),
                    PlagueStep(below=200, multiplier=1.5),
                    PlagueStep(below=None, multiplier=2.0),
                ]
            )

    def test_harvest_factors_complete(self):
        from worldsim.config import TransitionModelConfig

        with pytest.raises(ValidationError, match="missing"):
            TransitionModelConfig(harvest_factors={"normal": 1.0})


class TestLoader:
    def test_load_partial_file(self, tmp_path):
        path = tmp_path / "world.yaml"
        path.write_text(
            "store:\n  db_path: /data/world.db\n"
            "simulation:\n  rng_seed: 9\n"
            "calendar:\n  year_length: 8\n  golden_window_ticks: 2\n"
        )
        config = load_config(path)
        assert config.store.db_path == "/data/world.db"
        assert config.simulation.rng_seed == 9
        assert config.calendar.season_length == 2
        assert config.model.initial_population == 100

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="Empty"):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("calendar:\n  year_length: -1\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_example_config_loads(self):
        config = load_config(EXAMPLE_CONFIG)
        assert config.calendar.year_length == 60
