"""Performance metrics library for the analyzer.

1. **Models** (`models.py`): Metrics value object and the HistoryPoint alias
2. **Metrics** (`metrics.py`): Pure calculation functions
   - Returns: period returns, cumulative/total return, annualization
   - Risk: volatility, max drawdown, longest drawdown, tracking error
   - Risk-adjusted: Sharpe, Sortino, information ratio, alpha/beta
   - compute_metrics: the full set for one snapshot
3. **Errors** (`errors.py`): InsufficientDataError, InvalidSeriesValueError,
   RenderFailureError

Usage:
    >>> from tradelens.libraries.performance import compute_metrics
    >>> metrics = compute_metrics(market_series, asset_series)
    >>> metrics.to_text_lines()[0]
    'Market Return: 3.10%'
"""

from tradelens.libraries.performance.errors import (
    AnalyticsError,
    InsufficientDataError,
    InvalidSeriesValueError,
    RenderFailureError,
)
from tradelens.libraries.performance.metrics import (
    ANNUALIZATION_FACTOR,
    RISK_FREE_RATE,
    annualize_return,
    calculate_alpha,
    calculate_beta,
    calculate_cumulative_return,
    calculate_downside_deviation,
    calculate_excess_returns,
    calculate_information_ratio,
    calculate_longest_drawdown,
    calculate_max_drawdown,
    calculate_period_returns,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
    calculate_total_return,
    calculate_tracking_error,
    calculate_volatility,
    compute_metrics,
    validate_series_values,
)
from tradelens.libraries.performance.models import HistoryPoint, Metrics

__all__ = [
    # Models
    "Metrics",
    "HistoryPoint",
    # Errors
    "AnalyticsError",
    "InsufficientDataError",
    "InvalidSeriesValueError",
    "RenderFailureError",
    # Constants
    "ANNUALIZATION_FACTOR",
    "RISK_FREE_RATE",
    # Metrics (pure functions)
    "calculate_period_returns",
    "calculate_cumulative_return",
    "calculate_total_return",
    "annualize_return",
    "calculate_volatility",
    "calculate_sharpe_ratio",
    "validate_series_values",
    "calculate_max_drawdown",
    "calculate_downside_deviation",
    "calculate_sortino_ratio",
    "calculate_beta",
    "calculate_alpha",
    "calculate_excess_returns",
    "calculate_tracking_error",
    "calculate_information_ratio",
    "calculate_longest_drawdown",
    "compute_metrics",
]
