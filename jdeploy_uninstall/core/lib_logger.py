"""Structured logging configuration for jdeploy-uninstall."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import UninstallerConfig

PACKAGE_LOGGER = "jdeploy_uninstall"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())

_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "getMessage", "exc_info",
    "exc_text", "stack_info", "taskName",
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def __init__(self, include_fields: Optional[list] = None):
        """Initialize with optional field filtering."""
        super().__init__()
        self.include_fields = include_fields

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Context fields attached through the adapter or extra=
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_entry:
                log_entry[key] = value

        if self.include_fields:
            log_entry = {k: v for k, v in log_entry.items() if k in self.include_fields}

        return json.dumps(log_entry, default=str)


class UninstallLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that carries package/phase context."""

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any]):
        """Initialize with logger and extra context."""
        super().__init__(logger, extra)

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Process log message and add extra context."""
        extra = dict(self.extra)
        extra.update(kwargs.get("extra", {}))
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **context) -> "UninstallLoggerAdapter":
        """Create new adapter with additional context."""
        new_extra = dict(self.extra)
        new_extra.update(context)
        return UninstallLoggerAdapter(self.logger, new_extra)


class LoggingManager:
    """Manage logging configuration for jdeploy-uninstall."""

    def __init__(self, config: UninstallerConfig):
        """Initialize logging manager with configuration."""
        self.config = config
        self.console = Console(stderr=True)
        self._configured = False

    def setup_logging(self) -> None:
        """Set up the package logger based on settings."""
        if self._configured:
            return

        level = "DEBUG" if self.config.debug else self.config.log_level
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(logging.DEBUG)

        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        console_handler = RichHandler(
            console=self.console,
            show_time=True,
            show_path=self.config.debug,
            rich_tracebacks=True,
            tracebacks_show_locals=self.config.debug
        )
        console_handler.setLevel(level)
        package_logger.addHandler(console_handler)

        log_file = self.config.resolved_log_file
        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_handler.setFormatter(StructuredFormatter())
            package_logger.addHandler(file_handler)

        self._configured = True

    def get_logger(self, name: str, **context) -> UninstallLoggerAdapter:
        """Get a logger with uninstall-specific context."""
        if not self._configured:
            self.setup_logging()

        return UninstallLoggerAdapter(logging.getLogger(name), context)


# Global logging manager instance
_logging_manager: Optional[LoggingManager] = None


def setup_logging(config: UninstallerConfig) -> LoggingManager:
    """Set up global logging configuration."""
    global _logging_manager
    _logging_manager = LoggingManager(config)
    _logging_manager.setup_logging()
    return _logging_manager


def get_logger(name: str, **context) -> UninstallLoggerAdapter:
    """Get a logger instance.

    Until an application calls setup_logging(), records only reach whatever
    handlers the host has configured.
    """
    if _logging_manager is None:
        return UninstallLoggerAdapter(logging.getLogger(name), context)

    return _logging_manager.get_logger(name, **context)
