"""Rich console formatters for the analyzer's final metrics.

Prints the same statistics that appear on the summary chart, grouped into
return, risk and risk-adjusted tables.
"""

import math

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tradelens.libraries.performance.models import Metrics


def _format_pct(value: float, precision: int = 2) -> str:
    """Format a fraction as a percentage."""
    return f"{value * 100:.{precision}f}%"


def _format_ratio(value: float, precision: int = 4) -> str:
    """Format a ratio, spelling out non-finite values."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    return f"{value:.{precision}f}"


def _get_color(value: float) -> str:
    """Get color based on positive/negative value."""
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    return "white"


def _ratio_color(value: float) -> str:
    if math.isnan(value):
        return "dim"
    return "green" if value > 1.0 else "yellow" if value > 0 else "red"


def _create_returns_table(metrics: Metrics) -> Table:
    """Create returns table."""
    table = Table(title="📊 Returns", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Observations", f"{metrics.periods + 1:,}")
    for label, value in (
        ("Market Return", metrics.market_return),
        ("Portfolio Return", metrics.portfolio_return),
        ("Annualized Market Return", metrics.annualized_market_return),
        ("Annualized Portfolio Return", metrics.annualized_portfolio_return),
    ):
        color = _get_color(value)
        table.add_row(label, f"[{color}]{_format_pct(value)}[/{color}]")

    return table


def _create_risk_table(metrics: Metrics) -> Table:
    """Create risk metrics table."""
    table = Table(title="⚠️  Risk Metrics", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Volatility (Period)", _format_ratio(metrics.volatility))
    table.add_row("Volatility (Annual)", _format_pct(metrics.annualized_volatility))
    table.add_row("Max Drawdown", f"[red]{_format_pct(metrics.max_drawdown)}[/red]")
    table.add_row("Longest Drawdown", f"{metrics.longest_drawdown} days")
    table.add_row("Tracking Error", _format_ratio(metrics.tracking_error))
    table.add_row("Beta", _format_ratio(metrics.beta))

    return table


def _create_risk_adjusted_table(metrics: Metrics) -> Table:
    """Create risk-adjusted returns table."""
    table = Table(title=" 📈 Risk-Adjusted Returns ", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    sharpe_color = _ratio_color(metrics.sharpe_ratio)
    table.add_row("Sharpe Ratio", f"[{sharpe_color}]{_format_ratio(metrics.sharpe_ratio, 2)}[/{sharpe_color}]")

    if math.isinf(metrics.sortino_ratio) and metrics.sortino_ratio > 0:
        table.add_row("Sortino Ratio", "[dim]∞ (no downside)[/dim]")
    else:
        sortino_color = _ratio_color(metrics.sortino_ratio)
        table.add_row("Sortino Ratio", f"[{sortino_color}]{_format_ratio(metrics.sortino_ratio)}[/{sortino_color}]")

    info_color = _ratio_color(metrics.information_ratio)
    table.add_row(
        "Information Ratio", f"[{info_color}]{_format_ratio(metrics.information_ratio)}[/{info_color}]"
    )

    alpha_color = _get_color(metrics.alpha)
    table.add_row("Alpha", f"[{alpha_color}]{_format_ratio(metrics.alpha)}[/{alpha_color}]")
    table.add_row("Risk-Free Rate", _format_pct(metrics.risk_free_rate))

    return table


def display_metrics_report(metrics: Metrics, output_path: str | None = None, console: Console | None = None) -> None:
    """
    Display final metrics in Rich-formatted console output.

    Args:
        metrics: Metrics computed at shutdown
        output_path: Chart location, shown in the closing panel if given
        console: Rich Console instance (creates new if None)

    Example:
        >>> display_metrics_report(metrics, output_path="sample_output.png")
    """
    if console is None:
        console = Console()

    console.print()

    console.print(_create_returns_table(metrics))
    console.print()
    console.print(_create_risk_table(metrics))
    console.print()
    console.print(_create_risk_adjusted_table(metrics))
    console.print()

    summary_text = Text()
    summary_text.append("🏁 Analysis Complete: ", style="bold")
    summary_text.append(
        f"portfolio {_format_pct(metrics.portfolio_return)}", style=f"bold {_get_color(metrics.portfolio_return)}"
    )
    summary_text.append(f" vs market {_format_pct(metrics.market_return)}", style="bold cyan")
    if output_path:
        summary_text.append(f"\nChart: {output_path}", style="dim")

    console.print(Panel(summary_text, border_style="green" if metrics.portfolio_return > 0 else "red"))
    console.print()
