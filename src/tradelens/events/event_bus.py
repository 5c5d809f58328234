"""
EventBus implementation for the TradeLens transport.

Minimal synchronous router: events are handed to every handler registered
for their event_type, in registration order, on the publisher's thread.
Modules that run their own consumer loop attach an EventChannel through
connect().

Key Features:
- Synchronous dispatch on the publisher's thread
- Error isolation (one handler failure doesn't stop others)
- Owns the EventIdGenerator used to stamp event identifiers
"""

import threading
from collections import defaultdict
from typing import Callable, Iterable, Optional, Type, Union

from tradelens.events.channel import EventChannel
from tradelens.events.events import (
    BaseEvent,
    MarketDataEvent,
    PortfolioInfoEvent,
    PortfolioSnapshot,
    ShutdownEvent,
)
from tradelens.events.ids import EventIdGenerator
from tradelens.system import LoggerFactory

logger = LoggerFactory.get_logger()

EventHandler = Callable[[BaseEvent], None]


def _event_type_name(event_type: Union[str, Type[BaseEvent]]) -> str:
    """Resolve an event class to its event_type string."""
    if isinstance(event_type, str):
        return event_type
    field_info = event_type.model_fields.get("event_type")
    default = field_info.default if field_info is not None else None
    if not isinstance(default, str):
        raise ValueError(f"Event class {event_type} missing event_type")
    return default


class EventBus:
    """
    Synchronous event router.

    publish() blocks until all handlers for the event's type have run.

    Thread Safety: the routing table is guarded by a lock so producers on
    different threads may publish concurrently. Handlers run on the
    publisher's thread.

    Example:
        >>> bus = EventBus()
        >>> channel = EventChannel("analyzer")
        >>> bus.connect(channel, ["market_data", "portfolio_info", "shutdown"])
        >>> bus.publish(bus.make_market_data("2024-01-02", "SPY", 470.0, 472.5, 473.1, 469.8, 1_000_000))
    """

    def __init__(self, id_generator: Optional[EventIdGenerator] = None):
        """
        Initialize event bus.

        Args:
            id_generator: Identifier source for the make_* factories. A fresh
                          generator is created when omitted.
        """
        self._routes: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self.ids = id_generator or EventIdGenerator()

    # ==================== Event factories ====================

    def next_event_id(self, kind: str) -> str:
        """Next identifier for an event kind, e.g. "market_data-7"."""
        return self.ids.next_id(kind)

    def make_market_data(
        self,
        timestamp: str,
        symbol: str,
        open: float,
        close: float,
        high: float,
        low: float,
        volume: int,
        source_service: str = "market_data_feeder",
    ) -> MarketDataEvent:
        """Build a MarketDataEvent stamped with this bus's next identifier."""
        return MarketDataEvent(
            event_id=self.next_event_id("market_data"),
            source_service=source_service,
            timestamp=timestamp,
            symbol=symbol,
            open=open,
            close=close,
            high=high,
            low=low,
            volume=volume,
        )

    def make_portfolio_info(
        self, portfolio: PortfolioSnapshot, source_service: str = "mock_exchange"
    ) -> PortfolioInfoEvent:
        """Build a PortfolioInfoEvent stamped with this bus's next identifier."""
        return PortfolioInfoEvent(
            event_id=self.next_event_id("portfolio_info"),
            source_service=source_service,
            portfolio=portfolio,
        )

    def make_shutdown(self, source_service: str = "event_manager") -> ShutdownEvent:
        """Build a ShutdownEvent stamped with this bus's next identifier."""
        return ShutdownEvent(event_id=self.next_event_id("shutdown"), source_service=source_service)

    # ==================== Routing ====================

    def subscribe(self, event_type: Union[str, Type[BaseEvent]], handler: EventHandler) -> None:
        """Route events of event_type (string or class) to handler."""
        name = _event_type_name(event_type)
        with self._lock:
            self._routes[name].append(handler)
        logger.debug("event_bus.subscribed", event_type=name, handler=getattr(handler, "__name__", str(handler)))

    def connect(self, channel: EventChannel, event_types: Iterable[Union[str, Type[BaseEvent]]]) -> list[str]:
        """
        Route the given event types into a consumer channel.

        Args:
            channel: Channel receiving the events
            event_types: Event types (strings or classes) to forward

        Returns:
            The connected event_type names
        """
        names = [_event_type_name(event_type) for event_type in event_types]
        for name in names:
            self.subscribe(name, channel.send)
        logger.debug("event_bus.channel_connected", channel=channel.name, event_types=names)
        return names

    def publish(self, event: BaseEvent) -> None:
        """
        Hand event to every handler routed for its type.

        A handler that raises is logged and skipped; the remaining handlers
        still run. An event type with no route is dropped.
        """
        with self._lock:
            handlers = list(self._routes.get(event.event_type, ()))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    "event_bus.handler_error",
                    event_type=event.event_type,
                    event_id=event.event_id,
                    handler=getattr(handler, "__name__", str(handler)),
                    error=str(e),
                )

    def routed_types(self) -> list[str]:
        """Event types that have at least one handler."""
        with self._lock:
            return [name for name, handlers in self._routes.items() if handlers]
