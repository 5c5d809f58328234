"""
TradeLens - risk/return analytics for an event-driven trading simulator.

Consumes market and portfolio events, keeps aligned histories and renders
one summary chart with performance metrics at shutdown.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tradelens")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"


__all__ = [
    "__version__",
]
