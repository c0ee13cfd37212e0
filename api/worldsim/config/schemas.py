"""Pydantic schemas for configuration validation."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# ============================================================================
# Store
# ============================================================================

class StoreConfig(BaseModel):
    """Location of the world database."""
    db_path: str = Field("worldsim.db", description="DuckDB file, or ':memory:'")
    busy_timeout_ms: int = Field(
        5000, description="How long to wait for a concurrent tick to release the file", ge=0
    )


class SimulationSettings(BaseModel):
    """Randomness settings."""
    rng_seed: int | None = Field(
        None, description="Seed for replayable ticks; null draws fresh OS entropy", ge=0
    )


# ============================================================================
# Calendar
# ============================================================================

class SeasonConfig(BaseModel):
    """One season of the simulated year."""
    name: str = Field(..., min_length=1)
    factor: float = Field(..., description="Production multiplier", ge=0)


def _default_seasons() -> list[SeasonConfig]:
    return [
        SeasonConfig(name="winter", factor=0.9),
        SeasonConfig(name="spring", factor=1.0),
        SeasonConfig(name="summer", factor=1.2),
        SeasonConfig(name="autumn", factor=1.0),
    ]


class CalendarConfig(BaseModel):
    """Length of the simulated year and its seasons."""
    year_length: int = Field(60, description="Ticks per simulated year", gt=0)
    seasons: list[SeasonConfig] = Field(default_factory=_default_seasons, min_length=1)
    golden_season: str = Field("summer", description="Season hosting the golden window")
    golden_window_ticks: int = Field(
        5, description="Length of the golden window from the start of golden_season", gt=0
    )

    @property
    def season_length(self) -> int:
        return self.year_length // len(self.seasons)

    @model_validator(mode="after")
    def validate_season_layout(self) -> CalendarConfig:
        """Seasons must divide the year evenly and contain the golden season."""
        if self.year_length % len(self.seasons) != 0:
            raise ValueError(
                f"year_length ({self.year_length}) must be divisible by the number "
                f"of seasons ({len(self.seasons)})"
            )
        names = [s.name for s in self.seasons]
        if len(set(names)) != len(names):
            raise ValueError(f"Season names must be unique: {names}")
        if self.golden_season not in names:
            raise ValueError(f"golden_season '{self.golden_season}' is not one of {names}")
        if self.golden_window_ticks > self.season_length:
            raise ValueError(
                f"golden_window_ticks ({self.golden_window_ticks}) exceeds the season "
                f"length ({self.season_length})"
            )
        return self


# ============================================================================
# Transition model
# ============================================================================

class LossRange(BaseModel):
    """Uniform range for a fractional loss."""
    low: float = Field(..., ge=0, le=1)
    high: float = Field(..., ge=0, le=1)

    @model_validator(mode="after")
    def validate_order(self) -> LossRange:
        if self.low > self.high:
            raise ValueError(f"low must not exceed high: low={self.low}, high={self.high}")
        return self


class RationingConfig(BaseModel):
    """Consumption cut when the food stock per person runs low."""
    enabled: bool = False
    start: float = Field(1.2, description="Stock per capita where rationing begins", gt=0)
    hard: float = Field(0.4, description="Stock per capita of maximal rationing", ge=0)
    floor_factor: float = Field(0.35, description="Ration at or below `hard`", gt=0, le=1)

    @model_validator(mode="after")
    def validate_thresholds(self) -> RationingConfig:
        if self.hard >= self.start:
            raise ValueError(f"hard ({self.hard}) must be below start ({self.start})")
        return self


class HungerMobilizationConfig(BaseModel):
    """Temporary extra workers when the food stock per person runs low."""
    enabled: bool = False
    start: float = Field(1.0, description="Stock per capita where mobilization begins", gt=0)
    max_boost: float = Field(0.20, description="Worker ratio added at an empty stock", ge=0, le=1)
    max_ratio: float = Field(0.80, description="Upper bound on the boosted worker ratio", gt=0, le=1)


class FamineBiasConfig(BaseModel):
    """Production bias that shortens long famines."""
    enabled: bool = False
    threshold: float = Field(0.8, description="Stock per capita below which the bias applies", ge=0)
    bonus: float = Field(0.25, description="Added to the season factor", ge=0)


class TransitionModelConfig(BaseModel):
    """Parameters of the tick transition."""
    initial_population: int = Field(100, ge=2)
    initial_food: float = Field(500.0, ge=0)
    initial_workers_ratio: float = Field(0.45, gt=0, le=1)
    min_population: int = Field(2, ge=2)

    production_per_worker: float = Field(3.0, ge=0)
    consumption_per_person: float = Field(1.0, gt=0)
    min_consumption_per_person: float = Field(0.1, ge=0)
    production_noise: float = Field(0.05, description="Half-width of production noise", ge=0)
    consumption_noise: float = Field(0.02, description="Half-width of consumption noise", ge=0)

    harvest_factors: dict[str, float] = Field(
        default_factory=lambda: {"normal": 1.0, "poor": 0.7, "disastrous": 0.3}
    )
    golden_factor: float = Field(2.0, ge=0)

    random_birth_rate: float = Field(0.0005, ge=0, le=1)
    random_death_rate: float = Field(0.00015, ge=0, le=1)
    recovery_population: int = Field(40, description="Below this, recovery births apply", ge=0)
    recovery_stock_per_capita: float = Field(5.0, ge=0)
    recovery_rate: float = Field(0.02, ge=0)

    plague_loss: LossRange = Field(default_factory=lambda: LossRange(low=0.05, high=0.20))
    rot_loss: LossRange = Field(default_factory=lambda: LossRange(low=0.20, high=0.50))

    rationing: RationingConfig = Field(default_factory=RationingConfig)
    hunger_mobilization: HungerMobilizationConfig = Field(default_factory=HungerMobilizationConfig)
    famine_bias: FamineBiasConfig = Field(default_factory=FamineBiasConfig)

    @field_validator("harvest_factors")
    @classmethod
    def validate_harvest_factors(cls, v: dict[str, float]) -> dict[str, float]:
        """Every harvest type needs a non-negative factor."""
        missing = {"normal", "poor", "disastrous"} - set(v)
        if missing:
            raise ValueError(f"harvest_factors missing entries: {sorted(missing)}")
        for name, factor in v.items():
            if factor < 0:
                raise ValueError(f"harvest factor for {name} must be non-negative, got {factor}")
        return v


# ============================================================================
# Year events
# ============================================================================

class PlagueStep(BaseModel):
    """Plague probability multiplier for populations below `below`."""
    below: int | None = Field(None, description="Upper bound (exclusive); null means no bound")
    multiplier: float = Field(..., ge=0)


def _default_plague_steps() -> list[PlagueStep]:
    return [
        PlagueStep(below=200, multiplier=1.0),
        PlagueStep(below=500, multiplier=1.5),
        PlagueStep(below=1000, multiplier=2.0),
        PlagueStep(below=None, multiplier=3.0),
    ]


class EventsConfig(BaseModel):
    """Base probabilities and modifiers for the yearly draw."""
    p_poor: float = Field(0.10, ge=0, le=1)
    p_disastrous: float = Field(0.03, ge=0, le=1)
    p_golden: float = Field(0.05, ge=0, le=1)
    p_plague: float = Field(0.02, ge=0, le=1)
    p_rot: float = Field(0.03, ge=0, le=1)

    good_streak_slope: float = Field(0.3, ge=0)
    good_streak_cap: float = Field(3.0, ge=1)
    bad_streak_slope: float = Field(0.4, ge=0)
    bad_streak_cap: float = Field(4.0, ge=1)

    plague_steps: list[PlagueStep] = Field(default_factory=_default_plague_steps, min_length=1)
    max_probability: float = Field(0.8, ge=0, le=1)

    @field_validator("plague_steps")
    @classmethod
    def validate_plague_steps(cls, v: list[PlagueStep]) -> list[PlagueStep]:
        """Bounds must ascend and only the last step may be unbounded."""
        bounds = [step.below for step in v]
        if bounds[-1] is not None:
            raise ValueError("The last plague step must be unbounded (below: null)")
        if None in bounds[:-1]:
            raise ValueError("Only the last plague step may be unbounded")
        finite = [b for b in bounds[:-1] if b is not None]
        if finite != sorted(finite):
            raise ValueError(f"Plague step bounds must ascend: {finite}")
        return v


class ClassifierConfig(BaseModel):
    """Per-capita thresholds used to classify a completed year."""
    good_stock_per_capita: float = Field(8.0, ge=0)
    bad_stock_per_capita: float = Field(4.0, ge=0)


# ============================================================================
# Reporting
# ============================================================================

class ReportingConfig(BaseModel):
    """Where status documents and charts are written."""
    status_path: str = "status.json"
    recent_limit: int = Field(48, gt=0)
    chart_dir: str = "charts"


# ============================================================================
# Root
# ============================================================================

class WorldConfig(BaseModel):
    """Complete world simulator configuration."""
    store: StoreConfig = Field(default_factory=StoreConfig)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    model: TransitionModelConfig = Field(default_factory=TransitionModelConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> WorldConfig:
        """Create a validated config from a parsed YAML mapping."""
        return cls.model_validate(config_dict)
