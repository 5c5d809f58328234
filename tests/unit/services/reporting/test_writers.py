"""Tests for history export writers."""

import math

import pandas as pd

from tradelens.services.analyzer.history import HistorySnapshot, HistoryStore
from tradelens.services.reporting.writers import HISTORY_COLUMNS, history_frame, write_history_csv


class TestHistoryFrame:
    """Test alignment of the exported frame."""

    def test_one_row_per_market_observation(self, snapshot):
        frame = history_frame(snapshot)

        assert list(frame.columns) == HISTORY_COLUMNS
        assert len(frame) == 5
        assert frame["close"].tolist() == [100.0, 102.0, 101.0, 105.0, 104.0]
        assert frame["cash"].tolist() == [1000.0, 500.0, 500.0, 200.0, 200.0]

    def test_last_portfolio_update_per_timestamp_wins(self):
        store = HistoryStore()
        store.record_market("2024-01-02", 100.0)
        store.record_portfolio(1_000.0, 1_000.0)
        store.record_portfolio(1_010.0, 400.0)

        frame = history_frame(store.snapshot())

        assert len(frame) == 1
        assert frame.loc[0, "asset"] == 1_010.0
        assert frame.loc[0, "cash"] == 400.0

    def test_market_without_portfolio_is_nan(self):
        snapshot = HistorySnapshot(market=(("2024-01-02", 100.0),), asset=(), cash=())

        frame = history_frame(snapshot)

        assert math.isnan(frame.loc[0, "asset"])
        assert math.isnan(frame.loc[0, "cash"])


class TestWriteHistoryCsv:
    def test_writes_csv_creating_directories(self, snapshot, tmp_path):
        path = write_history_csv(snapshot, tmp_path / "nested" / "history.csv")

        assert path.exists()
        frame = pd.read_csv(path)
        assert list(frame.columns) == HISTORY_COLUMNS
        assert frame["timestamp"].iloc[0] == "2024-01-02 00:00:00"
        assert frame["asset"].iloc[-1] == 1020.0

    def test_empty_snapshot_writes_header_only(self, tmp_path):
        path = write_history_csv(HistorySnapshot(market=(), asset=(), cash=()), tmp_path / "empty.csv")

        assert path.read_text().strip() == "timestamp,close,asset,cash"
