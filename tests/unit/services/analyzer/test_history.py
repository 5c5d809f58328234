"""Unit tests for HistoryStore."""

import threading

import pytest

from tradelens.services.analyzer.history import HistorySnapshot, HistoryStore


@pytest.fixture
def store():
    return HistoryStore()


class TestRecording:
    """Test appends and the alignment policy."""

    def test_record_market_appends(self, store):
        store.record_market("2024-01-02 00:00:00", 187.15)

        assert store.snapshot().market == (("2024-01-02 00:00:00", 187.15),)
        assert len(store) == 1

    def test_portfolio_before_market_is_dropped(self, store):
        """No market timestamp yet: nothing is appended."""
        appended = store.record_portfolio(100_000.0, 100_000.0)

        snapshot = store.snapshot()
        assert appended is False
        assert snapshot.asset == ()
        assert snapshot.cash == ()

    def test_portfolio_borrows_latest_market_timestamp(self, store):
        store.record_market("2024-01-02", 100.0)
        store.record_market("2024-01-03", 101.0)

        assert store.record_portfolio(1_000.0, 400.0) is True

        snapshot = store.snapshot()
        assert snapshot.asset == (("2024-01-03", 1_000.0),)
        assert snapshot.cash == (("2024-01-03", 400.0),)
        assert store.last_market_timestamp == "2024-01-03"

    def test_several_portfolio_updates_share_a_timestamp(self, store):
        store.record_market("2024-01-02", 100.0)
        store.record_portfolio(1_000.0, 1_000.0)
        store.record_portfolio(1_001.0, 500.0)

        assert [t for t, _ in store.snapshot().asset] == ["2024-01-02", "2024-01-02"]

    def test_last_market_timestamp_empty(self, store):
        assert store.last_market_timestamp is None


class TestMonotonicity:
    """Series lengths never decrease."""

    def test_lengths_non_decreasing(self, store):
        operations = ["portfolio", "market", "portfolio", "portfolio", "market", "market", "portfolio"]
        previous = (0, 0, 0)

        for i, op in enumerate(operations):
            if op == "market":
                store.record_market(f"t{i}", 100.0 + i)
            else:
                store.record_portfolio(1_000.0 + i, 500.0)
            snapshot = store.snapshot()
            current = (len(snapshot.market), len(snapshot.asset), len(snapshot.cash))
            assert all(c >= p for c, p in zip(current, previous))
            assert len(snapshot.asset) == len(snapshot.cash)
            previous = current

        assert previous == (3, 3, 3)


class TestSnapshot:
    """Snapshots are independent copies."""

    def test_snapshot_not_affected_by_later_appends(self, store):
        store.record_market("2024-01-02", 100.0)
        snapshot = store.snapshot()

        store.record_market("2024-01-03", 101.0)

        assert len(snapshot.market) == 1
        assert len(store.snapshot().market) == 2

    def test_snapshot_properties(self, populated_store):
        snapshot = populated_store.snapshot()

        assert isinstance(snapshot, HistorySnapshot)
        assert snapshot.lengths == (5, 5)
        assert not snapshot.is_empty
        assert HistoryStore().snapshot().is_empty

    def test_concurrent_reader_sees_aligned_asset_and_cash(self, store):
        """A reader never observes asset without its cash partner."""
        store.record_market("2024-01-02", 100.0)
        mismatches = []

        def reader():
            for _ in range(500):
                snapshot = store.snapshot()
                if len(snapshot.asset) != len(snapshot.cash):
                    mismatches.append(snapshot.lengths)

        thread = threading.Thread(target=reader)
        thread.start()
        for i in range(500):
            store.record_portfolio(1_000.0 + i, 500.0)
        thread.join()

        assert mismatches == []
