"""Drawing surfaces for render plans.

RenderSurface is the boundary between planning and pixels. The production
surface draws the plan with Plotly and writes a raster image via Kaleido.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import plotly.graph_objects as go

if TYPE_CHECKING:
    from tradelens.services.analyzer.planner import PlotSeries, RenderPlan

# Plotly color for each plan color name
_COLORS = {
    "blue": (0, 0, 255),
    "red": (255, 0, 0),
    "green": (0, 255, 0),
}

MAX_X_TICKS = 12


class RenderSurface(Protocol):
    """Anything that can turn a RenderPlan into an artifact at output_path."""

    def draw(self, plan: "RenderPlan", output_path: str) -> None:
        """Draw the plan. Raise on failure."""
        ...


def _rgba(color: str, opacity: float = 1.0) -> str:
    r, g, b = _COLORS.get(color, (0, 0, 0))
    return f"rgba({r}, {g}, {b}, {opacity})"


class PlotlyRenderSurface:
    """
    Renders plans to PNG with Plotly + Kaleido.

    Example:
        >>> surface = PlotlyRenderSurface()
        >>> surface.draw(plan, "sample_output.png")
    """

    def build_figure(self, plan: "RenderPlan") -> go.Figure:
        """Translate a plan into a Plotly figure (no I/O)."""
        fig = go.Figure()

        for series in plan.series:
            fig.add_trace(self._trace(series))

        for x, y, line in plan.text.positions():
            fig.add_annotation(
                x=x,
                y=y,
                xref="x",
                yref="y",
                text=line,
                showarrow=False,
                xanchor="left",
                yanchor="top",
                font=dict(family="sans-serif", size=plan.fonts.text, color="black"),
            )

        tick_step = max(1, len(plan.x_labels) // MAX_X_TICKS)
        tick_values = list(range(0, len(plan.x_labels), tick_step))

        fig.update_layout(
            title=dict(text=plan.title, x=0.5, font=dict(family="sans-serif", size=plan.fonts.title)),
            width=plan.width,
            height=plan.height,
            plot_bgcolor="white",
            paper_bgcolor="white",
            showlegend=True,
            legend=dict(
                x=0.5 - 1 / 14,
                y=1.0,
                xanchor="left",
                yanchor="top",
                bgcolor="rgba(255, 255, 255, 0.2)",
                bordercolor="black",
                borderwidth=1,
                font=dict(family="sans-serif", size=plan.fonts.text),
            ),
        )
        fig.update_xaxes(
            title=dict(text=plan.x_description, font=dict(family="sans-serif", size=plan.fonts.axis_desc)),
            range=[0, plan.x_extent],
            tickmode="array",
            tickvals=tick_values,
            ticktext=[plan.x_labels[i] for i in tick_values],
            tickfont=dict(family="sans-serif", size=plan.fonts.tick),
            showgrid=True,
            gridcolor="#f0f0f0",
        )
        fig.update_yaxes(
            title=dict(text=plan.y_description, font=dict(family="sans-serif", size=plan.fonts.axis_desc)),
            range=[plan.y_min, plan.y_top],
            tickfont=dict(family="sans-serif", size=plan.fonts.tick),
            showgrid=True,
            gridcolor="#f0f0f0",
        )
        return fig

    def draw(self, plan: "RenderPlan", output_path: str) -> None:
        """Write the plan as a raster image at the plan's canvas size."""
        fig = self.build_figure(plan)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.write_image(output_path, width=plan.width, height=plan.height)

    @staticmethod
    def _trace(series: "PlotSeries") -> go.Scatter:
        x = [i for i, _ in series.points]
        y = [value for _, value in series.points]
        if series.kind == "area":
            return go.Scatter(
                x=x,
                y=y,
                mode="lines",
                name=series.label,
                line=dict(color=_rgba(series.color, series.opacity), width=0),
                fill="tozeroy",
                fillcolor=_rgba(series.color, series.opacity),
            )
        return go.Scatter(
            x=x,
            y=y,
            mode="lines",
            name=series.label,
            line=dict(color=_rgba(series.color), width=2),
        )
