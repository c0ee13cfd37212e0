"""
Pydantic Models for the State Store

These models are the single source of truth for the database schema.
All DDL generation is derived from them.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ============================================================================
# Enums
# ============================================================================


class HarvestType(str, Enum):
    """Quality of the harvest for a simulated year."""

    NORMAL = "normal"
    POOR = "poor"
    DISASTROUS = "disastrous"


class YearClass(str, Enum):
    """Qualitative verdict on a completed simulated year."""

    GOOD = "good"
    BAD = "bad"
    NORMAL = "normal"


# ============================================================================
# Tick Record
# ============================================================================


class TickRecord(BaseModel):
    """One simulated tick, append-only.

    ``id`` is assigned by the store on insert. ``tick_index`` is the
    simulation clock and never depends on ``id``.
    """

    model_config = ConfigDict(  # type: ignore[typeddict-unknown-key]
        table_name="world_ticks",
        primary_key=["id"],
        sequence="world_ticks_id_seq",
        indexes=[
            ("idx_ticks_tick_index", ["tick_index"]),
        ],
    )

    id: int | None = Field(None, description="Store-assigned sequence number")
    tick_index: int = Field(..., description="0-based simulation tick", ge=0)
    ts_utc: datetime | None = Field(None, description="UTC instant of insertion")

    population: int = Field(..., description="Population count", ge=2)
    food: float = Field(..., description="Food stock", ge=0)
    workers: int = Field(..., description="Working population", ge=1)
    births: int = Field(0, description="Births this tick", ge=0)
    deaths: int = Field(0, description="Deaths this tick", ge=0)

    notes: str | None = Field(None, description="Diagnostic text")

    @model_validator(mode="after")
    def workers_within_population(self) -> "TickRecord":
        """Validate 1 <= workers <= population."""
        if self.workers > self.population:
            raise ValueError(
                f"workers ({self.workers}) exceeds population ({self.population})"
            )
        return self

    @property
    def food_per_capita(self) -> float:
        return self.food / max(self.population, 1)


# ============================================================================
# Year Event Record
# ============================================================================


class YearEventRecord(BaseModel):
    """Random events drawn once for a simulated year."""

    model_config = ConfigDict(  # type: ignore[typeddict-unknown-key]
        table_name="year_events",
        primary_key=["year_index"],
        frozen=True,
    )

    year_index: int = Field(..., description="floor(tick_index / year_length)")
    harvest_type: HarvestType = Field(HarvestType.NORMAL, description="Harvest quality")
    golden: bool = Field(False, description="Golden harvest window active")
    plague: bool = Field(False, description="Plague strikes at start of year")
    rot: bool = Field(False, description="Food rots at end of year")
    created_at: datetime | None = Field(None, description="When the draw was made")


# ============================================================================
# Metadata Record
# ============================================================================


class MetaRecord(BaseModel):
    """Scalar key/value metadata (streak counters, tick counter)."""

    model_config = ConfigDict(  # type: ignore[typeddict-unknown-key]
        table_name="world_meta",
        primary_key=["key"],
    )

    key: str = Field(..., description="Metadata key")
    value: str = Field(..., description="Metadata value, stored as text")
    updated_at: datetime | None = Field(None, description="Last write time")


ALL_MODELS: list[type[BaseModel]] = [TickRecord, YearEventRecord, MetaRecord]
