"""Configuration module for the world simulator."""
from pydantic import ValidationError

from .loader import load_config
from .schemas import (
    CalendarConfig,
    ClassifierConfig,
    EventsConfig,
    FamineBiasConfig,
    HungerMobilizationConfig,
    LossRange,
    PlagueStep,
    RationingConfig,
    ReportingConfig,
    SeasonConfig,
    SimulationSettings,
    StoreConfig,
    TransitionModelConfig,
    WorldConfig,
)

__all__ = [
    "CalendarConfig",
    "ClassifierConfig",
    "EventsConfig",
    "FamineBiasConfig",
    "HungerMobilizationConfig",
    "LossRange",
    "PlagueStep",
    "RationingConfig",
    "ReportingConfig",
    "SeasonConfig",
    "SimulationSettings",
    "StoreConfig",
    "TransitionModelConfig",
    "ValidationError",
    "WorldConfig",
    "load_config",
]
