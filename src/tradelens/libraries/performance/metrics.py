"""Performance metrics calculation functions.

Pure functions over the benchmark (market close) and portfolio (asset value)
histories. All functions are stateless: same inputs always produce the same
outputs, and inputs are never modified.

Conventions:
- Returns are fractions, not percentages
- Annualization assumes ANNUALIZATION_FACTOR periods per year
- Divisions whose denominator is structurally zero follow IEEE float
  semantics (NaN / +-inf) instead of raising; see _ieee_div

Usage:
    >>> from tradelens.libraries.performance import metrics
    >>> metrics.calculate_total_return([100.0, 110.0, 121.0])
    0.20999999999999996
    >>> result = metrics.compute_metrics(market_series, asset_series)
    >>> result.sharpe_ratio
"""

import math
from typing import Sequence

from tradelens.libraries.performance.errors import InsufficientDataError, InvalidSeriesValueError
from tradelens.libraries.performance.models import HistoryPoint, Metrics

ANNUALIZATION_FACTOR = 252
RISK_FREE_RATE = 0.05
MIN_OBSERVATIONS = 2


def _ieee_div(numerator: float, denominator: float) -> float:
    """Divide like IEEE 754 floats: x/0 -> +-inf, 0/0 -> nan."""
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def _mean(values: Sequence[float]) -> float:
    return _ieee_div(sum(values), len(values))


def _sample_std(values: Sequence[float]) -> float:
    """Standard deviation with n-1 denominator."""
    mean = _mean(values)
    variance = _ieee_div(sum((v - mean) * (v - mean) for v in values), len(values) - 1)
    return math.sqrt(variance)


def calculate_period_returns(values: Sequence[float]) -> list[float]:
    """
    Simple return between consecutive observations.

    Args:
        values: Series of prices or portfolio values

    Returns:
        List of len(values) - 1 returns, (v[i+1] - v[i]) / v[i]

    Example:
        >>> calculate_period_returns([100.0, 110.0, 99.0])
        [0.1, -0.1]
    """
    return [_ieee_div(curr - prev, prev) for prev, curr in zip(values, values[1:])]


def calculate_cumulative_return(returns: Sequence[float]) -> float:
    """
    Compound a return series: product of (1 + r), minus 1.

    Example:
        >>> calculate_cumulative_return([0.1, 0.1])
        0.2100000000000002
    """
    growth = 1.0
    for r in returns:
        growth *= 1.0 + r
    return growth - 1.0


def calculate_total_return(values: Sequence[float]) -> float:
    """
    Total return from first to last value.

    Example:
        >>> calculate_total_return([100.0, 90.0, 121.0])
        0.20999999999999996
    """
    return _ieee_div(values[-1], values[0]) - 1.0


def annualize_return(total_return: float, periods: int, annualization_factor: int = ANNUALIZATION_FACTOR) -> float:
    """
    Annualize a total return earned over `periods` observations.

    (1 + total_return) ** (annualization_factor / periods) - 1

    A growth factor below zero has no real root and yields NaN.
    """
    growth = 1.0 + total_return
    if growth < 0:
        return math.nan
    try:
        return growth ** _ieee_div(annualization_factor, periods) - 1.0
    except OverflowError:
        return math.inf


def calculate_volatility(returns: Sequence[float]) -> float:
    """
    Sample standard deviation of period returns (not annualized).

    Multiply by sqrt(annualization_factor) for annualized volatility.
    """
    return _sample_std(returns)


def calculate_sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = RISK_FREE_RATE,
    annualization_factor: int = ANNUALIZATION_FACTOR,
) -> float:
    """
    Sharpe ratio of a period-return series.

    Sharpe = (mean_return * factor - risk_free_rate) / (volatility * sqrt(factor))

    Zero volatility is not special-cased: the result is +-inf (or NaN).

    Example:
        >>> calculate_sharpe_ratio([0.01, -0.005, 0.02])
        10.26...
    """
    annualized_excess = _mean(returns) * annualization_factor - risk_free_rate
    annualized_volatility = calculate_volatility(returns) * math.sqrt(annualization_factor)
    return _ieee_div(annualized_excess, annualized_volatility)


def validate_series_values(values: Sequence[float], series: str = "asset") -> None:
    """
    Require every value to be finite and strictly positive.

    Raises:
        InvalidSeriesValueError: On the first NaN, infinite or <= 0 value
    """
    for index, value in enumerate(values):
        if math.isnan(value) or math.isinf(value) or value <= 0.0:
            raise InvalidSeriesValueError(series, index, value)


def calculate_max_drawdown(values: Sequence[float]) -> float:
    """
    Most negative decline from the running peak.

    Drawdown at each point is value / peak - 1; the result is <= 0.

    Raises:
        InvalidSeriesValueError: If any value is NaN, infinite or <= 0

    Example:
        >>> calculate_max_drawdown([100.0, 90.0, 80.0, 95.0, 100.0])
        -0.19999999999999996
    """
    validate_series_values(values)

    peak = values[0] if values else 0.0
    max_drawdown = 0.0
    for value in values:
        if value > peak:
            peak = value
        max_drawdown = min(max_drawdown, value / peak - 1.0)
    return max_drawdown


def calculate_downside_deviation(returns: Sequence[float]) -> float:
    """
    Root-mean-square of the negative returns only (0.0 when there are none).

    Example:
        >>> calculate_downside_deviation([0.02, -0.03, 0.01, -0.04])
        0.0353...
    """
    downside = [r for r in returns if r < 0]
    if not downside:
        return 0.0
    return math.sqrt(sum(r * r for r in downside) / len(downside))


def calculate_sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = RISK_FREE_RATE,
    annualization_factor: int = ANNUALIZATION_FACTOR,
) -> float:
    """
    Sortino ratio: annualized excess return over annualized downside deviation.

    Returns:
        Sortino ratio, or +inf when no negative return was observed
        (no downside risk)
    """
    annualized_excess = _mean(returns) * annualization_factor - risk_free_rate
    downside_deviation = calculate_downside_deviation(returns)
    if downside_deviation > 0:
        return annualized_excess / (downside_deviation * math.sqrt(annualization_factor))
    return math.inf


def calculate_beta(portfolio_returns: Sequence[float], benchmark_returns: Sequence[float]) -> float:
    """
    Beta from raw (uncentered) sums over paired returns.

    beta = sum(r_p * r_b) / sum(r_b ** 2)

    This is a second-moment ratio, not covariance / variance. Pairs are
    formed positionally and truncated to the shorter series.
    """
    pairs = list(zip(portfolio_returns, benchmark_returns))
    co_moment = sum(r_p * r_b for r_p, r_b in pairs)
    benchmark_moment = sum(r_b * r_b for _, r_b in pairs)
    return _ieee_div(co_moment, benchmark_moment)


def calculate_alpha(
    annualized_portfolio_return: float,
    annualized_market_return: float,
    beta: float,
    risk_free_rate: float = RISK_FREE_RATE,
) -> float:
    """Jensen-style alpha: R_p - rf - beta * (R_m - rf), on annualized returns."""
    return annualized_portfolio_return - risk_free_rate - beta * (annualized_market_return - risk_free_rate)


def calculate_excess_returns(portfolio_returns: Sequence[float], benchmark_returns: Sequence[float]) -> list[float]:
    """Portfolio minus benchmark return, per paired period."""
    return [r_p - r_b for r_p, r_b in zip(portfolio_returns, benchmark_returns)]


def calculate_tracking_error(excess_returns: Sequence[float]) -> float:
    """Sample standard deviation of the excess-return series."""
    return _sample_std(excess_returns)


def calculate_information_ratio(excess_returns: Sequence[float], tracking_error: float) -> float:
    """Mean excess return over tracking error."""
    return _ieee_div(_mean(excess_returns), tracking_error)


def calculate_longest_drawdown(values: Sequence[float]) -> int:
    """
    Longest drawdown episode, in index units.

    An episode opens at the first index whose value falls below the running
    peak. It closes when a value recovers to the peak or at the last index,
    and its length is closing index minus opening index.

    Example:
        >>> calculate_longest_drawdown([100.0, 90.0, 95.0, 80.0, 100.0, 100.0])
        3
        >>> calculate_longest_drawdown([100.0, 90.0, 80.0])  # ends underwater
        1
    """
    if not values:
        return 0

    last_index = len(values) - 1
    peak = values[0]
    drawdown_start: int | None = None
    longest = 0

    for i, value in enumerate(values):
        if drawdown_start is not None and (value >= peak or i == last_index):
            longest = max(longest, i - drawdown_start)
            drawdown_start = None
        if value > peak:
            peak = value
            drawdown_start = None
        elif value < peak and drawdown_start is None:
            drawdown_start = i

    return longest


def compute_metrics(
    market_series: Sequence[HistoryPoint],
    asset_series: Sequence[HistoryPoint],
    risk_free_rate: float = RISK_FREE_RATE,
    annualization_factor: int = ANNUALIZATION_FACTOR,
) -> Metrics:
    """
    Compute the full statistics set for one snapshot.

    Args:
        market_series: (timestamp, close) benchmark history
        asset_series: (timestamp, asset value) portfolio history
        risk_free_rate: Annual risk-free rate
        annualization_factor: Periods per year

    Returns:
        Immutable Metrics value

    Raises:
        InsufficientDataError: If either series has fewer than 2 points
        InvalidSeriesValueError: If an asset value is NaN, infinite or <= 0
    """
    if len(market_series) < MIN_OBSERVATIONS:
        raise InsufficientDataError("market", len(market_series), MIN_OBSERVATIONS)
    if len(asset_series) < MIN_OBSERVATIONS:
        raise InsufficientDataError("asset", len(asset_series), MIN_OBSERVATIONS)

    market_values = [value for _, value in market_series]
    asset_values = [value for _, value in asset_series]

    # Asset values divide every portfolio return; reject bad ones up front
    validate_series_values(asset_values)

    returns = calculate_period_returns(asset_values)
    benchmark_returns = calculate_period_returns(market_values)
    periods = len(returns)

    market_return = calculate_cumulative_return(benchmark_returns)
    portfolio_return = calculate_total_return(asset_values)
    annualized_market_return = annualize_return(market_return, periods, annualization_factor)
    annualized_portfolio_return = annualize_return(portfolio_return, periods, annualization_factor)

    volatility = calculate_volatility(returns)
    beta = calculate_beta(returns, benchmark_returns)
    excess_returns = calculate_excess_returns(returns, benchmark_returns)
    tracking_error = calculate_tracking_error(excess_returns)

    return Metrics(
        market_return=market_return,
        portfolio_return=portfolio_return,
        annualized_market_return=annualized_market_return,
        annualized_portfolio_return=annualized_portfolio_return,
        volatility=volatility,
        annualized_volatility=volatility * math.sqrt(annualization_factor),
        sharpe_ratio=calculate_sharpe_ratio(returns, risk_free_rate, annualization_factor),
        max_drawdown=calculate_max_drawdown(asset_values),
        alpha=calculate_alpha(annualized_portfolio_return, annualized_market_return, beta, risk_free_rate),
        beta=beta,
        sortino_ratio=calculate_sortino_ratio(returns, risk_free_rate, annualization_factor),
        information_ratio=calculate_information_ratio(excess_returns, tracking_error),
        tracking_error=tracking_error,
        longest_drawdown=calculate_longest_drawdown(asset_values),
        periods=periods,
        risk_free_rate=risk_free_rate,
    )
