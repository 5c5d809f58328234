"""
Unit tests for Event models.

Tests BaseEvent envelope validation, the analyzer's domain events and their
JSON Schema contracts.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from tradelens.events.events import (
    BaseEvent,
    MarketDataEvent,
    PortfolioInfoEvent,
    PortfolioSnapshot,
    ShutdownEvent,
    load_and_compile_schema,
)

# ============================================
# Fixtures
# ============================================


@pytest.fixture
def market_data_kwargs():
    return dict(
        source_service="market_data_feeder",
        timestamp="2024-01-02 00:00:00",
        symbol="AAPL",
        open=185.0,
        close=187.15,
        high=188.44,
        low=183.89,
        volume=82_488_700,
    )


# ============================================
# BaseEvent Tests
# ============================================


class TestBaseEvent:
    """Test BaseEvent envelope validation and fields."""

    def test_baseevent_creates_with_defaults(self):
        """BaseEvent should create with default values."""
        event = BaseEvent(source_service="test_service")

        assert event.event_id
        assert event.event_type == "base"
        assert event.event_version == 1
        assert event.occurred_at.tzinfo == timezone.utc

    def test_baseevent_generates_unique_ids(self):
        assert BaseEvent(source_service="test").event_id != BaseEvent(source_service="test").event_id

    def test_naive_datetime_becomes_utc(self):
        event = BaseEvent(source_service="test", occurred_at=datetime(2024, 1, 2, 9, 30))

        assert event.occurred_at == datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)

    def test_offset_datetime_converted_to_utc(self):
        est = timezone(timedelta(hours=-5))
        event = BaseEvent(source_service="test", occurred_at=datetime(2024, 1, 2, 9, 30, tzinfo=est))

        assert event.occurred_at == datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)

    def test_string_datetime_with_z_suffix(self):
        event = BaseEvent(source_service="test", occurred_at="2024-01-02T14:30:00Z")

        assert event.occurred_at == datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)

    def test_serializes_occurred_at_with_z(self):
        event = BaseEvent(source_service="test", occurred_at="2024-01-02T14:30:00Z")

        data = json.loads(event.model_dump_json())

        assert data["occurred_at"] == "2024-01-02T14:30:00Z"

    def test_envelope_rejects_empty_source_service(self):
        with pytest.raises(ValueError, match="envelope"):
            BaseEvent(source_service="")

    def test_envelope_rejects_bad_event_type(self):
        with pytest.raises(ValueError, match="envelope"):
            BaseEvent(source_service="test", event_type="Bad-Type")

    def test_events_are_frozen(self):
        event = BaseEvent(source_service="test")

        with pytest.raises(ValueError):
            event.source_service = "other"  # type: ignore[misc]

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValueError):
            BaseEvent(source_service="test", unexpected=1)  # type: ignore[call-arg]


# ============================================
# Domain Event Tests
# ============================================


class TestMarketDataEvent:
    """Test MarketDataEvent payload validation."""

    def test_valid_bar(self, market_data_kwargs):
        event = MarketDataEvent(**market_data_kwargs)

        assert event.event_type == "market_data"
        assert event.close == 187.15
        assert event.timestamp == "2024-01-02 00:00:00"

    def test_non_positive_price_rejected(self, market_data_kwargs):
        market_data_kwargs["close"] = 0.0

        with pytest.raises(ValueError, match="market_data.v1.json"):
            MarketDataEvent(**market_data_kwargs)

    def test_negative_volume_rejected(self, market_data_kwargs):
        market_data_kwargs["volume"] = -1

        with pytest.raises(ValueError, match="market_data.v1.json"):
            MarketDataEvent(**market_data_kwargs)

    def test_event_type_must_match_contract(self, market_data_kwargs):
        with pytest.raises(ValueError, match="must equal contract name"):
            MarketDataEvent(event_type="portfolio_info", **market_data_kwargs)


class TestPortfolioInfoEvent:
    """Test PortfolioInfoEvent and PortfolioSnapshot."""

    def test_with_cash_snapshot(self):
        snapshot = PortfolioSnapshot.with_cash(100_000.0)

        assert snapshot.asset == snapshot.cash == snapshot.available_cash == 100_000.0
        assert snapshot.positions == {}

    def test_valid_event(self):
        event = PortfolioInfoEvent(
            source_service="mock_exchange",
            portfolio=PortfolioSnapshot(asset=101_000.0, cash=50_000.0, available_cash=49_000.0, positions={"AAPL": 10}),
        )

        assert event.event_type == "portfolio_info"
        assert event.portfolio.positions == {"AAPL": 10}


class TestShutdownEvent:
    def test_shutdown_is_control_event(self):
        event = ShutdownEvent(source_service="event_manager")

        assert event.event_type == "shutdown"


class TestSchemaLoading:
    """Test contract loading."""

    def test_schemas_are_cached(self):
        assert load_and_compile_schema("market_data.v1.json") is load_and_compile_schema("market_data.v1.json")

    def test_missing_schema_raises(self):
        with pytest.raises(FileNotFoundError):
            load_and_compile_schema("does_not_exist.v1.json")
