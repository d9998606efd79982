"""Logging setup for Surface Check."""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER = "surfacecheck"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Structured context (source, cause, key...) from *_with_data helpers
        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Text formatter with colors for console output."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as colored text."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname

        if self.use_colors:
            level_str = f"{self.COLORS.get(level, '')}{level:8}{self.RESET}"
        else:
            level_str = f"{level:8}"

        message = f"{timestamp} | {level_str} | {record.name} | {record.getMessage()}"

        data = getattr(record, "extra_data", None)
        if data:
            pairs = " ".join(f"{k}={v}" for k, v in data.items())
            message += f" | {pairs}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class SurfaceLogger(logging.Logger):
    """Logger with structured extra-data helpers."""

    def _log_with_data(
        self,
        level: int,
        msg: str,
        data: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ) -> None:
        if data:
            kwargs.setdefault("extra", {})["extra_data"] = data
        self.log(level, msg, *args, **kwargs)

    def info_with_data(self, msg: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_data(logging.INFO, msg, data, **kwargs)

    def debug_with_data(self, msg: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_data(logging.DEBUG, msg, data, **kwargs)

    def warning_with_data(self, msg: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_data(logging.WARNING, msg, data, **kwargs)

    def error_with_data(self, msg: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_data(logging.ERROR, msg, data, **kwargs)


logging.setLoggerClass(SurfaceLogger)


def setup_logger(
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_size_mb: int = 10,
    backup_count: int = 5,
    console: bool = True,
) -> SurfaceLogger:
    """
    Configure the package root logger.

    Child loggers obtained through get_logger() propagate to it, so this
    only needs to run once per process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: File output format ('json' or 'text')
        log_file: Path to log file (optional)
        max_size_mb: Maximum log file size in MB
        backup_count: Number of rotated files to keep
        console: Whether to attach a console handler

    Returns:
        The configured root logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Reconfiguring replaces earlier handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(TextFormatter(use_colors=sys.stdout.isatty()))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        if log_format == "json":
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(TextFormatter(use_colors=False))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str = "") -> SurfaceLogger:
    """
    Get a logger namespaced under the package root.

    Args:
        name: Dotted child name, e.g. 'check.email_security'

    Returns:
        Logger instance
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
