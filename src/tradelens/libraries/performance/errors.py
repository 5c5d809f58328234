"""Analytics failure types.

Each failure aborts the current metrics/render cycle only. Histories are
never modified by a failed cycle.
"""

from typing import Any


class AnalyticsError(Exception):
    """Base class for analyzer computation and rendering failures."""


class InsufficientDataError(AnalyticsError):
    """A required series has fewer observations than the computation needs."""

    def __init__(self, series: str, length: int, required: int = 2):
        self.series = series
        self.length = length
        self.required = required
        super().__init__(f"Insufficient data for metrics calculation: {series} has {length} point(s), needs {required}")


class InvalidSeriesValueError(AnalyticsError):
    """A series contains a value that is NaN, infinite or not strictly positive."""

    def __init__(self, series: str, index: int, value: Any):
        self.series = series
        self.index = index
        self.value = value
        super().__init__(f"{series} contains invalid or non-positive value {value!r} at index {index}")


class RenderFailureError(AnalyticsError):
    """The rendering surface failed to produce the output artifact."""

    def __init__(self, output_path: str, reason: str):
        self.output_path = output_path
        self.reason = reason
        super().__init__(f"Rendering to {output_path} failed: {reason}")
