"""Aligned observation histories shared by the ingestion loop and the render path.

Three append-only series live behind one lock:
- market: (timestamp, close) for every market_data event
- asset: (timestamp, asset value) for every aligned portfolio_info event
- cash: (timestamp, cash value), always appended together with asset

Portfolio events carry no timestamp. They borrow the most recent market
timestamp; before the first market observation they are dropped.
"""

import threading
from dataclasses import dataclass

from tradelens.libraries.performance.models import HistoryPoint
from tradelens.system import LoggerFactory

logger = LoggerFactory.get_logger()


@dataclass(frozen=True)
class HistorySnapshot:
    """Independent copies of the three series, safe to use without the lock."""

    market: tuple[HistoryPoint, ...]
    asset: tuple[HistoryPoint, ...]
    cash: tuple[HistoryPoint, ...]

    @property
    def lengths(self) -> tuple[int, int]:
        """(market_len, asset_len) used by the render memo."""
        return len(self.market), len(self.asset)

    @property
    def is_empty(self) -> bool:
        return not self.market and not self.asset


class HistoryStore:
    """
    Append-only market/asset/cash histories.

    There is a single writer (the ingestion loop). The lock makes snapshot()
    consistent with respect to a concurrent record_portfolio(), which appends
    to two series.

    Example:
        >>> store = HistoryStore()
        >>> store.record_portfolio(100_000.0, 100_000.0)  # no market data yet
        False
        >>> store.record_market("2024-01-02 00:00:00", 187.15)
        >>> store.record_portfolio(100_000.0, 100_000.0)
        True
        >>> store.snapshot().asset
        (('2024-01-02 00:00:00', 100000.0),)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._market: list[HistoryPoint] = []
        self._asset: list[HistoryPoint] = []
        self._cash: list[HistoryPoint] = []

    def record_market(self, timestamp: str, price: float) -> None:
        """Append a benchmark observation. Always succeeds."""
        with self._lock:
            self._market.append((timestamp, float(price)))

    def record_portfolio(self, asset: float, cash: float) -> bool:
        """
        Append asset and cash under the latest market timestamp.

        Returns:
            True if appended, False if dropped because no market observation
            has arrived yet
        """
        with self._lock:
            if not self._market:
                return False
            timestamp = self._market[-1][0]
            self._asset.append((timestamp, float(asset)))
            self._cash.append((timestamp, float(cash)))
            return True

    def snapshot(self) -> HistorySnapshot:
        """Copy all three series under the lock."""
        with self._lock:
            return HistorySnapshot(
                market=tuple(self._market),
                asset=tuple(self._asset),
                cash=tuple(self._cash),
            )

    @property
    def last_market_timestamp(self) -> str | None:
        with self._lock:
            return self._market[-1][0] if self._market else None

    def __len__(self) -> int:
        """Number of market observations."""
        with self._lock:
            return len(self._market)
