"""Tests for centralized logging configuration."""

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest
import structlog

from tradelens.system import LoggerFactory, LoggingConfig
from tradelens.system.log_system import _EventFormatters


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before and after each test."""
    LoggerFactory.reset()
    yield
    LoggerFactory.reset()


def test_default_configuration():
    """Test logger factory with default configuration."""
    logger = LoggerFactory.get_logger()

    assert LoggerFactory.is_configured()
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")

    config = LoggerFactory.get_config()
    assert config.level == "INFO"
    assert config.format == "console"
    assert config.enable_file is False
    assert config.file_level == "WARNING"
    assert config.enable_event_display is False


def test_explicit_configuration():
    """Test configuring logger factory explicitly."""
    config = LoggingConfig(level="DEBUG", format="json", enable_file=False)

    LoggerFactory.configure(config)

    assert LoggerFactory.is_configured()
    assert LoggerFactory.get_config().level == "DEBUG"
    assert LoggerFactory.get_config().format == "json"


def test_auto_configure_on_first_use():
    """Logger auto-configures with defaults on first use."""
    assert not LoggerFactory.is_configured()

    LoggerFactory.get_logger("tradelens.test")

    assert LoggerFactory.is_configured()


def test_file_logging_configuration(tmp_path):
    """File output is one JSON object per line."""
    log_file = tmp_path / "test.log"

    LoggerFactory.configure(
        LoggingConfig(level="INFO", enable_file=True, file_path=log_file, file_level="DEBUG", file_rotation=False)
    )
    logger = LoggerFactory.get_logger()

    logger.info("analyzer.plot_saved", path="sample_output.png")

    log_entry = json.loads(log_file.read_text().strip())
    assert log_entry["event"] == "analyzer.plot_saved"
    assert log_entry["path"] == "sample_output.png"
    assert "log_timestamp" in log_entry


def test_file_logging_default_path():
    """Enabling file logging without a path uses logs/tradelens.log."""
    config = LoggingConfig(level="INFO", enable_file=True, file_path=None)

    LoggerFactory.configure(config)

    assert str(LoggerFactory.get_config().file_path) == "logs/tradelens.log"


def test_file_logging_creates_directory(tmp_path):
    """File logging creates parent directories."""
    log_file = tmp_path / "logs" / "subdir" / "test.log"

    LoggerFactory.configure(LoggingConfig(enable_file=True, file_path=log_file, file_rotation=False))
    LoggerFactory.get_logger().warning("analyzer.portfolio_unaligned")

    assert log_file.exists()


def test_rotating_file_handler(tmp_path):
    """Rotation settings reach the RotatingFileHandler."""
    log_file = tmp_path / "rotating.log"

    LoggerFactory.configure(
        LoggingConfig(enable_file=True, file_path=log_file, file_rotation=True, max_file_size_mb=1, backup_count=3)
    )

    handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
    handler = next((h for h in handlers if str(log_file) in str(h.baseFilename)), None)
    assert handler is not None
    assert handler.maxBytes == 1 * 1024 * 1024
    assert handler.backupCount == 3


def test_file_level_filters_entries(tmp_path):
    """File level is independent from console level."""
    log_file = tmp_path / "warnings.log"

    LoggerFactory.configure(
        LoggingConfig(level="DEBUG", enable_file=True, file_path=log_file, file_level="WARNING", file_rotation=False)
    )
    logger = LoggerFactory.get_logger()

    logger.info("analyzer.started")
    logger.warning("analyzer.metrics_failed", series="asset", length=1)

    events = [json.loads(line)["event"] for line in log_file.read_text().splitlines() if line.strip()]
    assert events == ["analyzer.metrics_failed"]


def test_reset_clears_configuration():
    """Reset returns to defaults."""
    LoggerFactory.configure(LoggingConfig(level="DEBUG"))
    assert LoggerFactory.get_config().level == "DEBUG"

    LoggerFactory.reset()

    assert not LoggerFactory.is_configured()
    assert LoggerFactory.get_config().level == "INFO"


def test_invalid_level_rejected():
    """LoggingConfig is validated by pydantic."""
    with pytest.raises(ValueError):
        LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]


class TestConsoleRenderer:
    """Test the custom console renderer."""

    def test_regular_event_includes_level_event_and_context(self):
        """Regular events render level, event name and sorted context."""
        LoggerFactory.configure(LoggingConfig())
        renderer = LoggerFactory._custom_console_renderer()

        line = renderer(
            None,
            "info",
            {
                "log_timestamp": "241022-205007.28",
                "level": "warning",
                "event": "analyzer.metrics_failed",
                "series": "asset",
                "length": 1,
                "logger": "tradelens.services.analyzer.service",
                "filename": "service.py",
                "lineno": 42,
            },
        )

        assert "analyzer.metrics_failed" in line
        assert "warning" in line
        assert "length=1 series=asset" in line
        assert "service:42" in line

    def test_display_event_dropped_when_disabled(self):
        """Display events are dropped unless enable_event_display is set."""
        LoggerFactory.configure(LoggingConfig(enable_event_display=False))
        renderer = LoggerFactory._custom_console_renderer()

        with pytest.raises(structlog.DropEvent):
            renderer(
                None,
                "info",
                {"event": "event.display", "logger": "tradelens.events.analyzer", "event_type": "market_data"},
            )

    def test_display_event_uses_compact_formatter(self):
        """Display events use the per-kind formatter and count occurrences."""
        LoggerFactory.configure(LoggingConfig(enable_event_display=True))
        renderer = LoggerFactory._custom_console_renderer()
        event = {
            "event": "event.display",
            "logger": "tradelens.events.analyzer",
            "event_type": "market_data",
            "symbol": "AAPL",
            "timestamp": "2024-01-02 00:00:00",
            "close": 187.15,
        }

        first = renderer(None, "info", dict(event))
        second = renderer(None, "info", dict(event))

        assert "AAPL" in first
        assert "187.15" in first
        assert "#1" in first
        assert "#2" in second


class TestEventFormatters:
    """Test compact display formatters."""

    def test_format_portfolio_info(self):
        line = _EventFormatters.format_portfolio_info(
            {"portfolio": {"asset": 100_500.0, "cash": 50_000.0, "positions": {"AAPL": 10}}}, 3
        )

        assert "$100,500.00" in line
        assert "Cash: $50,000.00" in line
        assert "Positions: 1" in line
        assert "#3" in line

    def test_format_metrics(self):
        line = _EventFormatters.format_metrics({"portfolio_return": 0.21, "max_drawdown": -0.2, "sharpe_ratio": 1.5}, 1)

        assert "+21.00%" in line
        assert "-20.00%" in line
        assert "1.50" in line
