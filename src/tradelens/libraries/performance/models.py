"""Performance metrics data models.

Pydantic models for the analyzer's derived statistics. A Metrics instance is
computed fresh for every render cycle and never mutated afterwards.
"""

from typing import Any

from pydantic import BaseModel, Field

# (timestamp label, value) as stored by the history store
HistoryPoint = tuple[str, float]


class Metrics(BaseModel):
    """
    Risk/return statistics for one snapshot of the histories.

    Return fields are fractions (0.21 == 21%). Ratio fields may be NaN or
    +/-inf when a denominator is structurally zero (flat benchmark, a single
    return observation). sortino_ratio is +inf when no negative portfolio
    return was observed.
    """

    market_return: float
    portfolio_return: float
    annualized_market_return: float
    annualized_portfolio_return: float
    volatility: float  # Sample std of period returns (not annualized)
    annualized_volatility: float
    sharpe_ratio: float
    max_drawdown: float  # <= 0
    alpha: float
    beta: float
    sortino_ratio: float
    information_ratio: float
    tracking_error: float
    longest_drawdown: int = Field(ge=0, description="Longest drawdown episode, in periods")
    periods: int = Field(ge=1, description="Number of portfolio return observations")
    risk_free_rate: float

    model_config = {"frozen": True}

    def to_text_lines(self) -> list[str]:
        """Metric summary lines in chart display order."""
        return [
            f"Market Return: {self.market_return * 100:.2f}%",
            f"Portfolio Return: {self.portfolio_return * 100:.2f}%",
            f"Annualized Portfolio Return: {self.annualized_portfolio_return * 100:.2f}%",
            f"Volatility: {self.volatility:.4f}",
            f"Sharpe Ratio: {self.sharpe_ratio:.2f}",
            f"Max Drawdown: {self.max_drawdown * 100:.2f}%",
            f"Alpha: {self.alpha:.4f}",
            f"Beta: {self.beta:.4f}",
            f"Sortino Ratio: {self.sortino_ratio:.4f}",
            f"Information Ratio: {self.information_ratio:.4f}",
            f"Tracking Error: {self.tracking_error:.4f}",
            f"Longest Drawdown Period: {self.longest_drawdown} days",
        ]

    def as_dict(self) -> dict[str, Any]:
        """Plain dict of all fields (for structured logging)."""
        return self.model_dump()
