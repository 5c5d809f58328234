"""Analyzer service: ingestion loop, history store and render planning."""

from tradelens.services.analyzer.history import HistorySnapshot, HistoryStore
from tradelens.services.analyzer.planner import (
    FontSizes,
    PlotSeries,
    RenderOutcome,
    RenderPlan,
    RenderPlanner,
    TextBlock,
)
from tradelens.services.analyzer.service import ANALYZER_EVENT_TYPES, IngestionLoop, LoopState
from tradelens.services.analyzer.surface import PlotlyRenderSurface, RenderSurface

__all__ = [
    "IngestionLoop",
    "LoopState",
    "ANALYZER_EVENT_TYPES",
    "HistoryStore",
    "HistorySnapshot",
    "RenderPlanner",
    "RenderPlan",
    "RenderOutcome",
    "PlotSeries",
    "TextBlock",
    "FontSizes",
    "RenderSurface",
    "PlotlyRenderSurface",
]
