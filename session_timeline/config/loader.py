"""
Configuration management and loading.

Handles engine display settings and logging level.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass(frozen=True)
class TimelineConfig:
    """Timeline display settings."""
    time_format: str = "%H:%M"

    def __post_init__(self):
        """Validate time format is usable."""
        if not self.time_format or "%" not in self.time_format:
            raise ValueError("time_format must be a strftime pattern")


@dataclass(frozen=True)
class ChartConfig:
    """Profit chart settings."""
    min_range_big_blinds: int = 100
    min_samples: int = 2

    def __post_init__(self):
        """Validate chart values are positive."""
        if self.min_range_big_blinds <= 0:
            raise ValueError("min_range_big_blinds must be > 0")
        if self.min_samples < 1:
            raise ValueError("min_samples must be >= 1")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "warning"

    def __post_init__(self):
        if self.level not in LOG_LEVELS:
            raise ValueError(f"logging level must be one of: {list(LOG_LEVELS)}")


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    chart: ChartConfig = field(default_factory=ChartConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


DEFAULT_CONFIG = EngineConfig()

_ALLOWED_KEYS = {
    "timeline": {"time_format"},
    "chart": {"min_range_big_blinds", "min_samples"},
    "logging": {"level"},
}


def load_engine_config(path: Optional[str] = None) -> EngineConfig:
    """Load and validate engine configuration from a YAML file.

    Every section and key is optional; anything missing keeps its default.
    Unknown keys are rejected so that a typo never silently falls back to
    a default.

    Args:
        path: Path to YAML configuration file, or None for the defaults

    Returns:
        Validated EngineConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return DEFAULT_CONFIG

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return DEFAULT_CONFIG
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    unknown_keys = set(raw_config.keys()) - set(_ALLOWED_KEYS)
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    timeline_data = _section(raw_config, "timeline")
    chart_data = _section(raw_config, "chart")
    logging_data = _section(raw_config, "logging")

    timeline = TimelineConfig(
        time_format=_typed(timeline_data, "timeline.time_format", "time_format", str, "%H:%M"),
    )
    chart = ChartConfig(
        min_range_big_blinds=_typed(chart_data, "chart.min_range_big_blinds", "min_range_big_blinds", int, 100),
        min_samples=_typed(chart_data, "chart.min_samples", "min_samples", int, 2),
    )
    level = _typed(logging_data, "logging.level", "level", str, "warning")

    return EngineConfig(
        timeline=timeline,
        chart=chart,
        logging=LoggingConfig(level=level.lower()),
    )


def _section(raw_config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return a validated config section, empty if absent."""
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - _ALLOWED_KEYS[name]
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data


def _typed(data: Dict[str, Any], path: str, key: str, expected: type, default: Any) -> Any:
    if key not in data:
        return default
    value = data[key]
    # bool is an int subclass; reject it for numeric settings
    if not isinstance(value, expected) or isinstance(value, bool):
        raise ValueError(f"'{path}' must be of type {expected.__name__}")
    return value
