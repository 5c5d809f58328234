"""
Event models for TradeLens - Pydantic models validated against JSON Schema contracts.

Architecture:
    JSON Schema (*.v1.json) ← Source of truth (wire contract)
         ↓
    Pydantic Event ← Python implementation with automatic validation
         ↓
    EventBus → EventChannel → IngestionLoop

The analyzer consumes a closed set of event kinds:
- MarketDataEvent: one bar of market data (only timestamp and close are used)
- PortfolioInfoEvent: portfolio state (only asset and cash are used)
- ShutdownEvent: control event that ends the ingestion loop
"""

import json
from datetime import datetime, timezone
from functools import lru_cache
from importlib import resources
from typing import Any, ClassVar, Optional, Union
from uuid import uuid4

import jsonschema
from jsonschema import Draft202012Validator, FormatChecker
from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

# Reserved envelope field names (excluded from payload validation)
RESERVED_ENVELOPE_KEYS = {
    "event_id",
    "event_type",
    "event_version",
    "occurred_at",
    "correlation_id",
    "causation_id",
    "source_service",
}

SCHEMA_PACKAGE = "tradelens.contracts.schemas"


@lru_cache(maxsize=32)
def load_and_compile_schema(schema_name: str) -> Draft202012Validator:
    """
    Load and compile JSON Schema validator with caching.

    Args:
        schema_name: Schema filename (e.g., "market_data.v1.json")

    Returns:
        Pre-compiled validator with format checker

    Raises:
        FileNotFoundError: If schema file doesn't exist
    """
    try:
        schema_file = resources.files(SCHEMA_PACKAGE).joinpath(schema_name)
        with schema_file.open("r", encoding="utf-8") as f:
            schema = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Schema not found: {schema_name} in package {SCHEMA_PACKAGE}")

    return Draft202012Validator(schema, format_checker=FormatChecker())


def load_envelope_schema() -> Draft202012Validator:
    """Load and compile envelope schema validator."""
    return load_and_compile_schema("envelope.v1.json")


class BaseEvent(BaseModel):
    """
    Base for all events - provides envelope fields only.
    All events (including control events) validate the envelope.
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str = "base"
    event_version: int = Field(default=1, description="Schema major version")
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="UTC timestamp RFC3339"
    )
    correlation_id: Optional[str] = None
    causation_id: Optional[str] = None
    source_service: str = "unknown"

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("occurred_at", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> datetime:
        """Ensure timestamp is UTC timezone-aware."""
        if isinstance(v, str):
            dt = datetime.fromisoformat(v.replace("Z", "+00:00"))
        elif isinstance(v, datetime):
            dt = v
        else:
            raise ValueError(f"Cannot parse datetime from {type(v)}: {v}")

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        elif dt.tzinfo != timezone.utc:
            dt = dt.astimezone(timezone.utc)

        return dt

    @field_serializer("occurred_at")
    def _serialize_occurred_at(self, v: datetime) -> str:
        """Serialize datetime to RFC3339 with Z suffix."""
        return v.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    @model_validator(mode="after")
    def _validate_envelope(self) -> "BaseEvent":
        """Validate envelope fields against envelope.v1.json."""
        envelope_data: dict[str, Any] = {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "event_version": self.event_version,
            "occurred_at": self._serialize_occurred_at(self.occurred_at),
            "source_service": self.source_service,
        }
        if self.correlation_id is not None:
            envelope_data["correlation_id"] = self.correlation_id
        if self.causation_id is not None:
            envelope_data["causation_id"] = self.causation_id

        try:
            load_envelope_schema().validate(envelope_data)
        except jsonschema.ValidationError as e:
            raise ValueError(
                f"{self.__class__.__name__} envelope validation failed (envelope.v1.json): {e.message}\n"
                f"Path: {list(e.path)}"
            )

        return self


class ValidatedEvent(BaseEvent):
    """
    Base for domain events that require JSON Schema validation.

    Validates payload against {SCHEMA_BASE}.v{event_version}.json.
    """

    SCHEMA_BASE: ClassVar[Optional[str]] = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "ValidatedEvent":
        if self.SCHEMA_BASE is None:
            raise ValueError(f"{self.__class__.__name__} must specify SCHEMA_BASE")

        if self.event_type != self.SCHEMA_BASE:
            raise ValueError(
                f"{self.__class__.__name__}: event_type '{self.event_type}' must equal contract name "
                f"'{self.SCHEMA_BASE}'"
            )

        payload_data = {k: v for k, v in self.model_dump().items() if k not in RESERVED_ENVELOPE_KEYS}
        schema_file = f"{self.SCHEMA_BASE}.v{self.event_version}.json"

        try:
            load_and_compile_schema(schema_file).validate(payload_data)
        except FileNotFoundError as e:
            raise ValueError(f"{self.__class__.__name__}: Schema not found: {schema_file}") from e
        except jsonschema.ValidationError as e:
            raise ValueError(
                f"{self.__class__.__name__} payload validation failed against {schema_file}: {e.message}\n"
                f"Path: {list(e.path)}\n"
                f"Failed value: {e.instance}"
            )

        return self


class ControlEvent(BaseEvent):
    """
    Base for control/lifecycle events that don't require payload validation.

    Only validates envelope.
    """

    pass


class MarketDataEvent(ValidatedEvent):
    """
    One bar of market data for a symbol.

    The timestamp is an opaque, ordered label (e.g. "2024-01-02 00:00:00");
    producers deliver bars in chronological order.
    """

    SCHEMA_BASE: ClassVar[Optional[str]] = "market_data"
    event_type: str = "market_data"

    timestamp: str
    symbol: str
    open: float
    close: float
    high: float
    low: float
    volume: int


class PortfolioSnapshot(BaseModel):
    """Portfolio state as broadcast by the portfolio owner."""

    asset: float
    cash: float
    available_cash: float
    positions: dict[str, int] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def with_cash(cls, initial_cash: float) -> "PortfolioSnapshot":
        """Fresh portfolio holding only cash."""
        return cls(asset=initial_cash, cash=initial_cash, available_cash=initial_cash)


class PortfolioInfoEvent(ValidatedEvent):
    """Portfolio state update. Carries no market timestamp of its own."""

    SCHEMA_BASE: ClassVar[Optional[str]] = "portfolio_info"
    event_type: str = "portfolio_info"

    portfolio: PortfolioSnapshot


class ShutdownEvent(ControlEvent):
    """Terminal signal travelling through the same channel as data events."""

    event_type: str = "shutdown"


AnalyzerEvent = Union[MarketDataEvent, PortfolioInfoEvent, ShutdownEvent]
