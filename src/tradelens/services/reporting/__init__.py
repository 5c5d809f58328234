"""Reporting for the analyzer's final metrics and histories."""

from tradelens.services.reporting.formatters import display_metrics_report
from tradelens.services.reporting.writers import history_frame, write_history_csv

__all__ = [
    "display_metrics_report",
    "history_frame",
    "write_history_csv",
]
