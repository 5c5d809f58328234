"""
System configuration package.

Provides consolidated system-level configuration and logging.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - AnalyzerConfig: Analyzer settings (metrics constants, chart geometry)
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from tradelens.system.config import AnalyzerConfig, SystemConfig, get_system_config, reload_system_config
from tradelens.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "AnalyzerConfig",
    "SystemConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
]
