"""Root conftest: shared history fixtures."""

import pytest

from tradelens.libraries.performance.metrics import compute_metrics
from tradelens.services.analyzer.history import HistorySnapshot, HistoryStore

TIMESTAMPS = [f"2024-01-{day:02d} 00:00:00" for day in range(2, 7)]
MARKET_CLOSES = [100.0, 102.0, 101.0, 105.0, 104.0]
ASSET_VALUES = [1000.0, 1015.0, 1002.0, 1040.0, 1020.0]
CASH_VALUES = [1000.0, 500.0, 500.0, 200.0, 200.0]


@pytest.fixture
def session_rows() -> list[tuple[str, float, float, float]]:
    """(timestamp, close, asset, cash) for a five-bar session."""
    return list(zip(TIMESTAMPS, MARKET_CLOSES, ASSET_VALUES, CASH_VALUES))


@pytest.fixture
def populated_store(session_rows) -> HistoryStore:
    """Store with five aligned market/portfolio observations."""
    store = HistoryStore()
    for timestamp, close, asset, cash in session_rows:
        store.record_market(timestamp, close)
        store.record_portfolio(asset, cash)
    return store


@pytest.fixture
def snapshot(populated_store) -> HistorySnapshot:
    return populated_store.snapshot()


@pytest.fixture
def metrics(snapshot):
    return compute_metrics(snapshot.market, snapshot.asset)
