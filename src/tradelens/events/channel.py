"""Unbounded FIFO channel delivering events to a single consumer.

The EventBus dispatches synchronously on the publisher's thread. A module
that runs its own loop (the analyzer) receives events through a channel
instead: handlers only enqueue, and the consumer blocks on receive().

No backpressure is applied. If producers outpace the consumer the queue
grows without bound.
"""

import queue

from tradelens.events.events import BaseEvent


class EventChannel:
    """
    Multi-producer, single-consumer event queue.

    Example:
        >>> channel = EventChannel()
        >>> bus.connect(channel, ["market_data", "portfolio_info", "shutdown"])
        >>> event = channel.receive()  # blocks until an event arrives
    """

    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self._queue: queue.SimpleQueue[BaseEvent] = queue.SimpleQueue()

    def send(self, event: BaseEvent) -> None:
        """Enqueue event. Never blocks."""
        self._queue.put(event)

    def receive(self) -> BaseEvent:
        """Block until an event is available and return it. No timeout."""
        return self._queue.get()

    def __len__(self) -> int:
        """Approximate number of queued events."""
        return self._queue.qsize()

    def __repr__(self) -> str:
        return f"EventChannel(name={self.name!r}, pending={len(self)})"
