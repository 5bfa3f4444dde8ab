"""Configuration management for the royalty engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

CONFIG_PATH_ENV_VAR = "ROYALTY_ENGINE_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "settings.yaml"


@dataclass
class PrecisionSettings:
    """Decimal scales and rounding for money and rates."""
    money_places: int = 2
    rate_places: int = 4
    price_places: int = 4
    context_precision: int = 34
    rounding: str = "ROUND_HALF_UP"


@dataclass
class ProjectionSettings:
    """Defaults for forward projections."""
    horizon_months: int = 12


@dataclass
class Settings:
    """Engine settings."""
    precision: PrecisionSettings = field(default_factory=PrecisionSettings)
    projection: ProjectionSettings = field(default_factory=ProjectionSettings)


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    """Pick the explicit path, then the environment override, then the default."""
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from YAML configuration file."""
    config_path = resolve_config_path(config_path)

    if not config_path.exists():
        return Settings()

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    precision_data = data.get("precision", {})
    projection_data = data.get("projection", {})

    return Settings(
        precision=PrecisionSettings(**precision_data),
        projection=ProjectionSettings(**projection_data),
    )


# Global settings instance
settings = load_settings()
