"""YAML configuration loader."""
from pathlib import Path

import yaml

from .schemas import WorldConfig


def load_config(config_path: str | Path | None = None) -> WorldConfig:
    """
    Load and validate the world configuration from a YAML file.

    Args:
        config_path: Path to YAML configuration file. None returns the defaults.

    Returns:
        Validated WorldConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is empty or invalid
        yaml.YAMLError: If YAML parsing fails
    """
    if config_path is None:
        return WorldConfig()

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        raise ValueError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config_dict).__name__}")

    try:
        config = WorldConfig.from_dict(config_dict)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    return config
