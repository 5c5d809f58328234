"""Render planning for the end-of-run summary chart.

The planner decides what to draw: three standardized series, axis bounds,
x-axis labels and the block of metric text lines. It never touches pixels;
a RenderSurface turns the plan into an image.

Geometry is expressed in data coordinates (x = observation index,
y = standardized value) and font sizes are derived from the canvas width,
so the same plan renders consistently at any resolution.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from tradelens.libraries.performance.errors import InvalidSeriesValueError, RenderFailureError
from tradelens.libraries.performance.models import HistoryPoint, Metrics
from tradelens.services.analyzer.history import HistorySnapshot
from tradelens.services.analyzer.surface import RenderSurface
from tradelens.system import LoggerFactory
from tradelens.system.config import AnalyzerConfig

logger = LoggerFactory.get_logger()

MARKET_LABEL = " Market Data"
ASSET_LABEL = " Total Asset Value"
POSITION_LABEL = " Position Value"

# Canvas width divisors for font sizes
TITLE_FONT_DIVISOR = 52
AXIS_DESC_FONT_DIVISOR = 58
TICK_FONT_DIVISOR = 71
TEXT_FONT_DIVISOR = 77

# Text block layout, in fractions of the value range
TEXT_TOP_MARGIN_DIVISOR = 30
TEXT_LINE_STEP_DIVISOR = 42


class RenderOutcome(str, Enum):
    """Result of a render request."""

    RENDERED = "rendered"
    NO_UPDATE = "no_update"  # Lengths unchanged since the last render
    NO_DATA = "no_data"  # Market and asset histories both empty


@dataclass(frozen=True)
class PlotSeries:
    """One standardized series as (index, value) points."""

    label: str
    color: str
    points: tuple[tuple[int, float], ...]
    kind: str = "line"  # "line" or "area" (filled down to zero)
    opacity: float = 1.0

    @property
    def values(self) -> list[float]:
        return [value for _, value in self.points]


@dataclass(frozen=True)
class TextBlock:
    """Left-aligned metric lines, drawn top-down from (origin_x, origin_y)."""

    lines: tuple[str, ...]
    origin_x: int
    origin_y: float
    line_step: float

    def positions(self) -> list[tuple[int, float, str]]:
        """(x, y, line) for every line."""
        return [(self.origin_x, self.origin_y - i * self.line_step, line) for i, line in enumerate(self.lines)]


@dataclass(frozen=True)
class FontSizes:
    title: int
    axis_desc: int
    tick: int
    text: int

    @classmethod
    def for_canvas(cls, width: int) -> "FontSizes":
        return cls(
            title=width // TITLE_FONT_DIVISOR,
            axis_desc=width // AXIS_DESC_FONT_DIVISOR,
            tick=width // TICK_FONT_DIVISOR,
            text=width // TEXT_FONT_DIVISOR,
        )


@dataclass(frozen=True)
class RenderPlan:
    """
    Complete, resolution-independent description of the summary chart.

    Attributes:
        title: Chart caption
        width: Canvas width in pixels
        height: Canvas height in pixels
        series: Market line, asset line and position-value area, in draw order
        x_labels: Market timestamps truncated for the x-axis, indexed by position
        x_extent: Upper bound of the x-axis (observation index)
        y_min: Lower bound of the value axis
        y_max: Largest standardized value across all series
        y_top: Upper bound of the value axis (y_max plus headroom)
        text: Metric text block
        fonts: Font sizes derived from the canvas width
    """

    title: str
    width: int
    height: int
    series: tuple[PlotSeries, ...]
    x_labels: tuple[str, ...]
    x_extent: int
    y_min: float
    y_max: float
    y_top: float
    text: TextBlock
    fonts: FontSizes
    x_description: str = "Date"
    y_description: str = "Value"


def _first_value(series: Sequence[HistoryPoint], name: str) -> float:
    """Standardization divisor: the first value, or 1.0 for an empty series."""
    if not series:
        return 1.0
    first = series[0][1]
    if first == 0:
        raise InvalidSeriesValueError(name, 0, first)
    return first


def standardize(series: Sequence[HistoryPoint], divisor: float) -> tuple[tuple[int, float], ...]:
    """Divide every value by divisor, keyed by position."""
    return tuple((i, value / divisor) for i, (_, value) in enumerate(series))


def position_values(
    asset: Sequence[HistoryPoint], cash: Sequence[HistoryPoint], divisor: float
) -> tuple[tuple[int, float], ...]:
    """
    Standardized (asset - cash) per asset observation.

    Cash is matched by timestamp label (first match wins); an asset point
    with no matching cash observation counts cash as 0.
    """
    cash_by_timestamp: dict[str, float] = {}
    for timestamp, value in cash:
        cash_by_timestamp.setdefault(timestamp, value)
    return tuple(
        (i, (value - cash_by_timestamp.get(timestamp, 0.0)) / divisor) for i, (timestamp, value) in enumerate(asset)
    )


class RenderPlanner:
    """
    Builds render plans and skips redundant renders.

    The planner remembers the (market_len, asset_len) pair of the last
    render request. A request with the same pair is a no-op.

    Example:
        >>> planner = RenderPlanner(AnalyzerConfig())
        >>> planner.render(snapshot, metrics, surface)
        <RenderOutcome.RENDERED: 'rendered'>
        >>> planner.render(snapshot, metrics, surface)
        <RenderOutcome.NO_UPDATE: 'no_update'>
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()
        self.last_lengths: tuple[int, int] | None = None

    def plan(self, snapshot: HistorySnapshot, metrics: Metrics) -> RenderPlan:
        """
        Build the plan for a snapshot. Does not consult or update the memo.

        Raises:
            InvalidSeriesValueError: If a series starts at exactly 0
        """
        config = self.config
        market, asset, cash = snapshot.market, snapshot.asset, snapshot.cash

        market_divisor = _first_value(market, "market")
        asset_divisor = _first_value(asset, "asset")

        market_series = PlotSeries(label=MARKET_LABEL, color="blue", points=standardize(market, market_divisor))
        asset_series = PlotSeries(label=ASSET_LABEL, color="red", points=standardize(asset, asset_divisor))
        position_series = PlotSeries(
            label=POSITION_LABEL,
            color="green",
            points=position_values(asset, cash, asset_divisor),
            kind="area",
            opacity=0.4,
        )
        series = (market_series, asset_series, position_series)

        all_values = [value for s in series for value in s.values]
        y_min = min(all_values)
        y_max = max(all_values)
        y_top = y_max + config.axis_headroom

        text = TextBlock(
            lines=tuple(metrics.to_text_lines()),
            origin_x=len(market) // 50,
            origin_y=y_top - (y_max - y_min) / TEXT_TOP_MARGIN_DIVISOR,
            line_step=(y_top - y_min) / TEXT_LINE_STEP_DIVISOR,
        )

        return RenderPlan(
            title=config.title,
            width=config.canvas_width,
            height=config.canvas_height,
            series=series,
            x_labels=tuple(timestamp[: config.label_length] for timestamp, _ in market),
            x_extent=max(len(market), len(asset)) + len(market) // 25,
            y_min=y_min,
            y_max=y_max,
            y_top=y_top,
            text=text,
            fonts=FontSizes.for_canvas(config.canvas_width),
        )

    def render(
        self,
        snapshot: HistorySnapshot,
        metrics: Metrics,
        surface: RenderSurface,
        output_path: str | None = None,
    ) -> RenderOutcome:
        """
        Plan and draw the chart unless nothing changed since the last call.

        The memo is updated before drawing, so a failed render is not retried
        for the same lengths.

        Args:
            snapshot: Copied histories
            metrics: Metrics computed from the same snapshot
            surface: Drawing backend
            output_path: Image path (defaults to config.output_path)

        Returns:
            RenderOutcome describing what happened

        Raises:
            InvalidSeriesValueError: If a series starts at exactly 0
            RenderFailureError: If the surface fails to draw
        """
        output_path = output_path or self.config.output_path

        lengths = snapshot.lengths
        if lengths == self.last_lengths:
            logger.info("analyzer.render_skipped", reason="no_update", market_len=lengths[0], asset_len=lengths[1])
            return RenderOutcome.NO_UPDATE
        self.last_lengths = lengths

        if snapshot.is_empty:
            logger.warning("analyzer.render_skipped", reason="no_data")
            return RenderOutcome.NO_DATA

        plan = self.plan(snapshot, metrics)

        try:
            surface.draw(plan, output_path)
        except Exception as e:
            raise RenderFailureError(output_path, str(e)) from e

        logger.info("analyzer.plot_saved", path=output_path, market_len=lengths[0], asset_len=lengths[1])
        return RenderOutcome.RENDERED
