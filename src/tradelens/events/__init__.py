"""
Event infrastructure for the TradeLens transport.

- Event classes: Immutable Pydantic events validated against JSON Schema contracts
  - BaseEvent: Provides envelope fields only
  - ValidatedEvent: Domain events with payload validation
  - ControlEvent: Lifecycle signals (no payload validation)
- EventBus: Synchronous routing of events by type
- EventChannel: Unbounded queue feeding a single consumer loop
- EventIdGenerator: Per-kind identifier sequences owned by the bus
"""

from tradelens.events.channel import EventChannel
from tradelens.events.event_bus import EventBus
from tradelens.events.events import (
    AnalyzerEvent,
    BaseEvent,
    ControlEvent,
    MarketDataEvent,
    PortfolioInfoEvent,
    PortfolioSnapshot,
    ShutdownEvent,
    ValidatedEvent,
)
from tradelens.events.ids import EventIdGenerator

__all__ = [
    # Base classes
    "BaseEvent",
    "ValidatedEvent",
    "ControlEvent",
    # Domain events
    "MarketDataEvent",
    "PortfolioInfoEvent",
    "PortfolioSnapshot",
    "ShutdownEvent",
    "AnalyzerEvent",
    # Transport
    "EventBus",
    "EventChannel",
    "EventIdGenerator",
]
