"""Event identifier generation.

Identifiers are sequential per event kind. Each EventBus owns one
generator; counters are not shared between buses.
"""

import threading
from collections import defaultdict


class EventIdGenerator:
    """
    Thread-safe per-kind sequence generator.

    Example:
        >>> ids = EventIdGenerator()
        >>> ids.next("market_data")
        1
        >>> ids.next("market_data")
        2
        >>> ids.next("portfolio_info")
        1
        >>> ids.next_id("market_data")
        'market_data-3'
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: defaultdict[str, int] = defaultdict(int)

    def next(self, kind: str) -> int:
        """Return the next sequence number for kind (starting at 1)."""
        with self._lock:
            self._counters[kind] += 1
            return self._counters[kind]

    def next_id(self, kind: str) -> str:
        """Return the next identifier for kind, formatted as "{kind}-{n}"."""
        return f"{kind}-{self.next(kind)}"

    def peek(self, kind: str) -> int:
        """Last number issued for kind (0 if none)."""
        with self._lock:
            return self._counters.get(kind, 0)
