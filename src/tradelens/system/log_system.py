"""Centralized logging configuration for TradeLens."""

import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Structlog metadata keys stripped before rendering context
_META_KEYS = ("log_timestamp", "level", "event", "filename", "lineno", "logger")


class LoggingConfig(BaseModel):
    """Configuration for logging system.

    Logging Levels Guide:

    INFO (Default):
    - Analyzer started/stopped
    - Plot saved
    - Final metrics summary

    DEBUG (Developer Mode):
    - Every recorded market/portfolio observation
    - EventBus subscriptions and channel connections

    WARNING:
    - Metrics skipped for insufficient data
    - Portfolio observations dropped before the first market event
    - Unsupported event kinds

    ERROR:
    - Invalid series values
    - Rendering failures
    - Handler exceptions inside the EventBus

    Timestamp Format Options:
    - "iso": 2025-10-22T20:50:07.288824Z (full ISO format)
    - "compact": 251022-205007.28 (YYMMDD-HHMMSS.ms) - recommended
    - "time": 20:50:07.28 (time only)
    - "short": 1022T205007 (MMDDTHHMMSS)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Minimum log level (INFO=user-friendly, DEBUG=verbose, WARNING=issues only)",
    )
    format: Literal["console", "json"] = Field(
        default="console",
        description="Output format: console, or json",
    )
    timestamp_format: Literal["iso", "compact", "time", "short"] = Field(
        default="compact",
        description="Timestamp format for console output",
    )
    enable_file: bool = Field(
        default=False,
        description="Enable logging to file (WARNING and above by default)",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file (uses logs/tradelens.log if None)",
    )
    file_level: LogLevel = Field(
        default="WARNING",
        description="Minimum log level for file output",
    )
    file_rotation: bool = Field(
        default=True,
        description="Enable log file rotation (when file gets too large)",
    )
    max_file_size_mb: int = Field(
        default=10,
        description="Maximum log file size in MB before rotation",
    )
    backup_count: int = Field(
        default=3,
        description="Number of rotated log files to keep",
    )
    enable_event_display: bool = Field(
        default=False,
        description="Render market_data/portfolio_info/metrics display logs in compact colored form",
    )


class LoggerFactory:
    """
    Factory for creating and configuring structured loggers.

    Call configure() once at application startup, then use get_logger()
    to get configured logger instances throughout the codebase.

    Example:
        # At startup
        LoggerFactory.configure(LoggingConfig(level="DEBUG"))

        # In modules
        logger = LoggerFactory.get_logger()
        logger.info("analyzer.plot_saved", path="sample_output.png")
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Configure the logging system.

        Args:
            config: LoggingConfig instance. If None, uses default configuration.
        """
        if config is None:
            config = LoggingConfig()

        cls._config = config

        processors = cls._build_common_processors(config.timestamp_format)

        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.setLevel(getattr(logging, config.level))
        console_processor: Any
        if config.format == "console":
            console_processor = cls._custom_console_renderer()
        else:
            console_processor = structlog.processors.JSONRenderer()
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=console_processor,
                foreign_pre_chain=processors,
            )
        )

        handlers: list[logging.Handler] = [console_handler]
        root_level = getattr(logging, config.level)

        if config.enable_file:
            if config.file_path is None:
                config.file_path = Path("logs/tradelens.log")

            file_handler = cls._configure_file_logging(config, processors)
            handlers.append(file_handler)
            root_level = min(root_level, getattr(logging, config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        configured_processors = list(processors)
        if config.format == "console":
            configured_processors.extend(
                [
                    structlog.dev.set_exc_info,
                    structlog.processors.ExceptionRenderer(
                        structlog.dev.plain_traceback,  # type: ignore[arg-type]
                    ),
                ]
            )
        else:
            configured_processors.append(structlog.processors.format_exc_info)
        configured_processors.append(structlog.stdlib.ProcessorFormatter.wrap_for_formatter)

        structlog.configure(
            processors=configured_processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        cls._configured = True

    @classmethod
    def _build_common_processors(cls, timestamp_format: str) -> list[Any]:
        """Processors shared by both structlog and stdlib handlers before rendering."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            cls._get_timestamper(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
        ]

    @staticmethod
    def _get_timestamper(fmt: str) -> Any:
        """Get timestamper for the configured format.

        Uses 'log_timestamp' key to avoid clashing with the market 'timestamp'
        carried by market_data events.
        """

        def add_timestamp_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
            now = datetime.now(timezone.utc)
            ms = now.microsecond // 10000

            if fmt == "compact":
                event_dict["log_timestamp"] = now.strftime(f"%y%m%d-%H%M%S.{ms:02d}")
            elif fmt == "time":
                event_dict["log_timestamp"] = now.strftime(f"%H:%M:%S.{ms:02d}")
            elif fmt == "short":
                event_dict["log_timestamp"] = now.strftime("%m%dT%H%M%S")
            else:
                event_dict["log_timestamp"] = now.isoformat()

            return event_dict

        return add_timestamp_processor

    @staticmethod
    def _custom_console_renderer() -> Callable[[Any, str, dict[str, Any]], str]:
        """Console renderer with file:line info and compact event formatting."""
        event_counters: dict[str, int] = {}
        config = LoggerFactory.get_config()

        def renderer(logger: Any, name: str, event_dict: dict[str, Any]) -> str:
            logger_name = event_dict.get("logger", "")
            event = event_dict.get("event", "")

            if logger_name.startswith("tradelens.events.") and event == "event.display":
                if not config.enable_event_display:
                    raise structlog.DropEvent
                for key in _META_KEYS:
                    event_dict.pop(key, None)
                return LoggerFactory._format_event(event_dict, event_counters)

            timestamp = event_dict.pop("log_timestamp", "")
            level = event_dict.pop("level", "info").upper()
            event = event_dict.pop("event", "")
            filename = event_dict.pop("filename", "")
            lineno = event_dict.pop("lineno", "")
            logger_name = event_dict.pop("logger", "")

            colors = {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
            }
            reset = "\033[0m"
            gray = "\033[90m"

            level_str = f"[{colors.get(level, '')}{level.lower()}{reset}]"

            context_parts = []
            for key, value in sorted(event_dict.items()):
                if key.startswith("_"):
                    continue
                context_parts.append(f"{key}={value}")
            context_str = " ".join(context_parts)

            if filename and lineno:
                module_file = Path(filename).stem
                if logger_name and logger_name != "tradelens":
                    location = f"{gray}({logger_name}.{module_file}:{lineno}){reset}"
                else:
                    location = f"{gray}({module_file}:{lineno}){reset}"
            else:
                location = ""

            parts = [timestamp, level_str, event]
            if context_str:
                parts.append(f"{gray}|{reset} {context_str}")
            if location:
                parts.append(location)

            return " ".join(parts)

        return renderer

    @staticmethod
    def _format_event(event_dict: dict[str, Any], counters: dict[str, int]) -> str:
        """Format a display event, delegating to the per-kind formatter."""
        event_type = event_dict.get("event_type", "unknown")
        counters[event_type] = counters.get(event_type, 0) + 1
        count = counters[event_type]

        formatter_map = {
            "market_data": _EventFormatters.format_market_data,
            "portfolio_info": _EventFormatters.format_portfolio_info,
            "metrics": _EventFormatters.format_metrics,
        }
        formatter = formatter_map.get(event_type)
        if formatter:
            return formatter(event_dict, count)
        return f"{_EventFormatters.DIM}• {event_type} #{count}{_EventFormatters.RESET} | {event_dict}"

    @classmethod
    def _configure_file_logging(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """Configure file output for logging."""
        file_path = config.file_path
        assert file_path is not None  # Already defaulted in configure()

        file_path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                filename=str(file_path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(filename=str(file_path), encoding="utf-8")

        handler.setLevel(getattr(logging, config.file_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )

        return handler

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a configured logger instance.

        Args:
            name: Optional logger name. If None, uses the calling module's __name__.

        Returns:
            Configured structlog BoundLogger instance.
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            import inspect

            frame = inspect.currentframe()
            if frame and frame.f_back:
                name = frame.f_back.f_globals.get("__name__", "tradelens")
            else:
                name = "tradelens"

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Get current logging configuration."""
        if cls._config is None:
            return LoggingConfig()
        return cls._config

    @classmethod
    def is_configured(cls) -> bool:
        """Check if logging has been configured."""
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Reset logging configuration (mainly for testing)."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.NOTSET)
        cls._config = None
        cls._configured = False
        structlog.reset_defaults()


class _EventFormatters:
    """Compact colored formatters for display events."""

    CYAN = "\033[36m"
    MAGENTA = "\033[35m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    BLUE = "\033[34m"
    DIM = "\033[2m"
    RESET = "\033[0m"

    @staticmethod
    def format_market_data(event_dict: dict[str, Any], count: int) -> str:
        """Format market data event with timestamp and close."""
        symbol = event_dict.get("symbol", "?")
        timestamp = str(event_dict.get("timestamp", "?"))
        close = event_dict.get("close", 0)

        parts = [
            f"  {_EventFormatters.DIM}└─{_EventFormatters.RESET}",
            f"{_EventFormatters.CYAN}{'Market':<10}#{count:<4}{_EventFormatters.RESET}",
            f"{_EventFormatters.MAGENTA}{symbol}{_EventFormatters.RESET}",
            timestamp[:19],
            f"C: {_EventFormatters.BLUE}{float(close):9.2f}{_EventFormatters.RESET}",
        ]
        return " | ".join(parts)

    @staticmethod
    def format_portfolio_info(event_dict: dict[str, Any], count: int) -> str:
        """Format portfolio info event with asset and cash."""
        portfolio = event_dict.get("portfolio", {}) or {}
        asset = float(portfolio.get("asset", 0))
        cash = float(portfolio.get("cash", 0))

        parts = [
            f"  {_EventFormatters.DIM}└─{_EventFormatters.RESET}",
            f"{_EventFormatters.CYAN}{'Portfolio':<10}#{count:<4}{_EventFormatters.RESET}",
            f"Asset: {_EventFormatters.GREEN}${asset:,.2f}{_EventFormatters.RESET}",
            f"Cash: ${cash:,.2f}",
            f"Positions: {len(portfolio.get('positions', {}) or {})}",
        ]
        return " | ".join(parts)

    @staticmethod
    def format_metrics(event_dict: dict[str, Any], count: int) -> str:
        """Format the final metrics summary on one line."""
        portfolio_return = float(event_dict.get("portfolio_return", 0)) * 100
        max_dd = float(event_dict.get("max_drawdown", 0)) * 100
        sharpe = float(event_dict.get("sharpe_ratio", 0))
        color = _EventFormatters.GREEN if portfolio_return >= 0 else _EventFormatters.RED

        parts = [
            f"  {_EventFormatters.DIM}└─{_EventFormatters.RESET}",
            f"{_EventFormatters.CYAN}{'Metrics':<10}#{count:<4}{_EventFormatters.RESET}",
            f"Return: {color}{portfolio_return:+.2f}%{_EventFormatters.RESET}",
            f"MaxDD: {_EventFormatters.RED}{max_dd:.2f}%{_EventFormatters.RESET}",
            f"Sharpe: {_EventFormatters.YELLOW}{sharpe:.2f}{_EventFormatters.RESET}",
        ]
        return " | ".join(parts)
