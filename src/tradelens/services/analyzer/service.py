"""Analyzer ingestion loop.

Single consumer of the analyzer's EventChannel. Records market and portfolio
observations into the HistoryStore and, on shutdown, runs one final
metrics + render pass before stopping.

States:
    RUNNING -> SHUTTING_DOWN -> STOPPED

The blocking channel receive is the loop's only suspension point. The loop
ends only when a ShutdownEvent arrives through the same channel as the data.
"""

import threading
from enum import Enum
from typing import Any, Optional

from rich.console import Console

from tradelens.events.channel import EventChannel
from tradelens.events.event_bus import EventBus
from tradelens.events.events import BaseEvent, MarketDataEvent, PortfolioInfoEvent, ShutdownEvent
from tradelens.libraries.performance.errors import (
    AnalyticsError,
    InsufficientDataError,
    InvalidSeriesValueError,
    RenderFailureError,
)
from tradelens.libraries.performance.metrics import compute_metrics
from tradelens.libraries.performance.models import Metrics
from tradelens.services.analyzer.history import HistorySnapshot, HistoryStore
from tradelens.services.analyzer.planner import RenderOutcome, RenderPlanner
from tradelens.services.analyzer.surface import PlotlyRenderSurface, RenderSurface
from tradelens.services.reporting.formatters import display_metrics_report
from tradelens.services.reporting.writers import write_history_csv
from tradelens.system import LoggerFactory
from tradelens.system.config import AnalyzerConfig, get_system_config

logger = LoggerFactory.get_logger()
display_logger = LoggerFactory.get_logger("tradelens.events.analyzer")

# Event kinds the analyzer subscribes to on the bus
ANALYZER_EVENT_TYPES = (MarketDataEvent, PortfolioInfoEvent, ShutdownEvent)


class LoopState(str, Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class IngestionLoop:
    """
    Event-driven analyzer.

    Attributes:
        channel: Inbound event channel (fed by EventBus.connect)
        config: Analyzer configuration (system configuration by default)
        store: Observation histories
        planner: Render planner with the skip-redundant-render memo
        surface: Drawing backend for the summary chart
        last_metrics: Metrics from the shutdown pass (None if it failed)
        last_outcome: Render outcome from the shutdown pass

    Example:
        >>> bus = EventBus()
        >>> analyzer = IngestionLoop.attach(bus)
        >>> analyzer.start()
        >>> bus.publish(bus.make_market_data("2024-01-02", "AAPL", 185.0, 187.1, 188.4, 183.9, 1_000))
        >>> bus.publish(bus.make_portfolio_info(PortfolioSnapshot.with_cash(100_000.0)))
        >>> bus.publish(bus.make_shutdown())
        >>> analyzer.join()
        True
    """

    def __init__(
        self,
        channel: EventChannel,
        config: Optional[AnalyzerConfig] = None,
        surface: Optional[RenderSurface] = None,
        store: Optional[HistoryStore] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.channel = channel
        self.config = config or get_system_config().analyzer
        self.store = store or HistoryStore()
        self.planner = RenderPlanner(self.config)
        self.surface: RenderSurface = surface or PlotlyRenderSurface()
        self._console = console

        self._state = LoopState.RUNNING
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

        self.last_metrics: Metrics | None = None
        self.last_outcome: RenderOutcome | None = None

        self._market_events = 0
        self._portfolio_events = 0
        self._unaligned_events = 0
        self._ignored_events = 0

    @classmethod
    def attach(
        cls,
        bus: EventBus,
        config: Optional[AnalyzerConfig] = None,
        surface: Optional[RenderSurface] = None,
        console: Optional[Console] = None,
    ) -> "IngestionLoop":
        """
        Create an analyzer with its own channel connected to the bus.

        Without an explicit config the system configuration is used, and its
        logging section is applied to LoggerFactory.
        """
        if config is None:
            system = get_system_config()
            LoggerFactory.configure(system.logging)
            config = system.analyzer
        channel = EventChannel(name="analyzer")
        bus.connect(channel, ANALYZER_EVENT_TYPES)
        return cls(channel, config=config, surface=surface, console=console)

    @property
    def state(self) -> LoopState:
        return self._state

    # ==================== Loop ====================

    def run(self) -> None:
        """Receive and handle events until a ShutdownEvent has been processed."""
        if self._state is not LoopState.RUNNING:
            logger.warning("analyzer.already_stopped", state=self._state.value)
            return

        logger.info("analyzer.started", channel=self.channel.name, output_path=self.config.output_path)
        while self._state is LoopState.RUNNING:
            self.handle(self.channel.receive())

    def handle(self, event: BaseEvent) -> None:
        """Dispatch one event."""
        match event:
            case MarketDataEvent():
                self._on_market_data(event)
            case PortfolioInfoEvent():
                self._on_portfolio_info(event)
            case ShutdownEvent():
                self._on_shutdown(event)
            case _:
                self._ignored_events += 1
                logger.warning(
                    "analyzer.unsupported_event",
                    event_type=getattr(event, "event_type", type(event).__name__),
                    event_id=getattr(event, "event_id", None),
                )

    def start(self) -> threading.Thread:
        """Run the loop on a daemon worker thread."""
        if self._thread is not None:
            raise RuntimeError("Analyzer loop already started")
        self._thread = threading.Thread(target=self.run, name="tradelens-analyzer", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the loop to stop.

        Returns:
            True if the loop reached STOPPED within the timeout
        """
        if self._thread is not None:
            self._thread.join(timeout)
        else:
            self._stopped.wait(timeout)
        return self._state is LoopState.STOPPED

    def stats(self) -> dict[str, Any]:
        """Counters and current state."""
        snapshot = self.store.snapshot()
        return {
            "state": self._state.value,
            "market_events": self._market_events,
            "portfolio_events": self._portfolio_events,
            "unaligned_events": self._unaligned_events,
            "ignored_events": self._ignored_events,
            "market_len": len(snapshot.market),
            "asset_len": len(snapshot.asset),
        }

    # ==================== Handlers ====================

    def _on_market_data(self, event: MarketDataEvent) -> None:
        self.store.record_market(event.timestamp, event.close)
        self._market_events += 1
        display_logger.info(
            "event.display",
            event_type="market_data",
            symbol=event.symbol,
            timestamp=event.timestamp,
            close=event.close,
        )
        logger.debug("analyzer.market_recorded", timestamp=event.timestamp, close=event.close, count=len(self.store))

    def _on_portfolio_info(self, event: PortfolioInfoEvent) -> None:
        portfolio = event.portfolio
        self._portfolio_events += 1
        if not self.store.record_portfolio(portfolio.asset, portfolio.cash):
            self._unaligned_events += 1
            logger.warning("analyzer.portfolio_unaligned", event_id=event.event_id, asset=portfolio.asset)
            return
        display_logger.info("event.display", event_type="portfolio_info", portfolio=portfolio.model_dump())
        logger.debug(
            "analyzer.portfolio_recorded",
            timestamp=self.store.last_market_timestamp,
            asset=portfolio.asset,
            cash=portfolio.cash,
        )

    def _on_shutdown(self, event: ShutdownEvent) -> None:
        self._state = LoopState.SHUTTING_DOWN
        logger.info("analyzer.shutting_down", event_id=event.event_id)

        snapshot = self.store.snapshot()
        try:
            for stage, step in (("final_pass", self._final_pass), ("export", self._export_history)):
                try:
                    step(snapshot)
                except Exception:
                    logger.exception("analyzer.shutdown_pass_failed", stage=stage)
        finally:
            self._state = LoopState.STOPPED
            self._stopped.set()
            logger.info("analyzer.stopped", **self.stats())

    # ==================== Shutdown pass ====================

    def _final_pass(self, snapshot: HistorySnapshot) -> None:
        """Metrics, chart and console report. Analytics failures are logged here."""
        try:
            metrics = compute_metrics(
                snapshot.market,
                snapshot.asset,
                risk_free_rate=self.config.risk_free_rate,
                annualization_factor=self.config.periods_per_year,
            )
        except InsufficientDataError as e:
            logger.warning("analyzer.metrics_failed", series=e.series, length=e.length, error=str(e))
            return
        except InvalidSeriesValueError as e:
            logger.error("analyzer.metrics_failed", series=e.series, index=e.index, value=e.value, error=str(e))
            return

        self.last_metrics = metrics
        display_logger.info("event.display", event_type="metrics", **metrics.as_dict())
        logger.info(
            "analyzer.metrics_computed",
            portfolio_return=metrics.portfolio_return,
            market_return=metrics.market_return,
            sharpe_ratio=metrics.sharpe_ratio,
            max_drawdown=metrics.max_drawdown,
        )

        try:
            self.last_outcome = self.planner.render(snapshot, metrics, self.surface, self.config.output_path)
        except RenderFailureError as e:
            logger.error("analyzer.render_failed", path=e.output_path, error=e.reason)
        except AnalyticsError as e:
            logger.error("analyzer.render_failed", path=self.config.output_path, error=str(e))

        if self.config.display_report:
            display_metrics_report(metrics, output_path=self.config.output_path, console=self._console)

    def _export_history(self, snapshot: HistorySnapshot) -> None:
        if not self.config.export_history_path:
            return
        try:
            path = write_history_csv(snapshot, self.config.export_history_path)
        except OSError as e:
            logger.error("analyzer.export_failed", path=self.config.export_history_path, error=str(e))
            return
        logger.info("analyzer.history_exported", path=str(path), rows=len(snapshot.market))
