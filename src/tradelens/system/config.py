"""
System configuration for TradeLens.

One configuration object for the whole analyzer process:
- AnalyzerConfig: metrics constants, output artifact and chart geometry
- LoggingConfig: logging system (see log_system)
- SystemConfig: container with YAML loading, env substitution and merge

Lookup order for the YAML file:
1. Explicit path passed to SystemConfig.load()
2. TRADELENS_CONFIG environment variable
3. config/tradelens.yaml in the working directory
4. Built-in defaults
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tradelens.system.log_system import LoggingConfig

DEFAULT_CONFIG_PATH = Path("config/tradelens.yaml")
CONFIG_ENV_VAR = "TRADELENS_CONFIG"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


@dataclass
class AnalyzerConfig:
    """Analyzer settings.

    Attributes:
        output_path: Where the summary image is written at shutdown
        periods_per_year: Annualization factor (252 trading days)
        risk_free_rate: Annual risk-free rate used by Sharpe and alpha
        canvas_width: Raster width in pixels
        canvas_height: Raster height in pixels
        title: Chart caption
        label_length: X-axis labels are timestamps truncated to this many characters
        axis_headroom: Added above the largest standardized value on the value axis
        display_report: Print a Rich metrics table at shutdown
        export_history_path: Optional CSV file receiving the aligned series at shutdown
    """

    output_path: str = "sample_output.png"
    periods_per_year: int = 252
    risk_free_rate: float = 0.05
    canvas_width: int = 3840
    canvas_height: int = 2160
    title: str = "Market Data and Asset History"
    label_length: int = 10
    axis_headroom: float = 1.0
    display_report: bool = True
    export_history_path: str | None = None

    def __post_init__(self) -> None:
        if not self.output_path:
            raise ValueError("output_path cannot be empty")
        if self.periods_per_year <= 0:
            raise ValueError(f"periods_per_year must be positive, got {self.periods_per_year}")
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ValueError(f"Canvas must be positive, got {self.canvas_width}x{self.canvas_height}")
        if self.label_length <= 0:
            raise ValueError(f"label_length must be positive, got {self.label_length}")

    @classmethod
    def from_yaml(cls, path: Path) -> "AnalyzerConfig":
        """Load the `analyzer:` section of a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data.get("analyzer", {}))


@dataclass
class SystemConfig:
    """Complete system configuration."""

    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "SystemConfig":
        """
        Load configuration from YAML, falling back to defaults.

        Args:
            path: Explicit config file. Overrides env var and default location.

        Returns:
            SystemConfig with file values merged over defaults

        Raises:
            FileNotFoundError: If an explicitly requested file does not exist
        """
        explicit = path is not None or CONFIG_ENV_VAR in os.environ
        config_path = Path(path) if path is not None else Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))

        if not config_path.exists():
            if explicit:
                raise FileNotFoundError(f"Config file not found: {config_path}")
            return cls()

        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        merged = _deep_merge(cls._defaults(), _substitute_env_vars(raw))
        return cls._from_dict(merged)

    @staticmethod
    def _defaults() -> dict[str, Any]:
        return {
            "analyzer": {},
            "logging": {},
        }

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        return cls(
            analyzer=AnalyzerConfig(**data.get("analyzer", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} and ${VAR:-default} in all string values."""
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config() -> SystemConfig:
    """Get the cached system configuration, loading it on first use."""
    global _system_config
    if _system_config is None:
        _system_config = SystemConfig.load()
    return _system_config


def reload_system_config(path: str | Path | None = None) -> SystemConfig:
    """Force a reload of the system configuration."""
    global _system_config
    _system_config = SystemConfig.load(path)
    return _system_config
