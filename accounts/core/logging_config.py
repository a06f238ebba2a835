"""
Central logging configuration.
Console output plus a daily-rotating log file, with an extra TRACE level
below DEBUG and an allow-list of levels that reach the handlers.
"""
from __future__ import annotations

import functools
import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Callable, Optional, TypeVar

from accounts.core.config import settings

F = TypeVar("F", bound=Callable[..., Any])

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

# Argument names whose values never reach a log line.
REDACTED_ARGS = frozenset({"password", "hashed_password", "plain_password", "token"})

_LEVEL_NAMES = {
    "TRACE": TRACE_LEVEL,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def trace(self: logging.Logger, message: str, *args, **kwargs) -> None:
    """Emit a TRACE-level message on the logger instance."""
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


logging.Logger.trace = trace  # type: ignore[attr-defined]


class LogLevelFilter(logging.Filter):
    """Filter log records to an allowed set of levels."""

    def __init__(self, allowed_levels: set[int]) -> None:
        super().__init__()
        self._allowed_levels = allowed_levels

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno in self._allowed_levels


def _parse_allowed_levels(raw: Optional[str]) -> set[int]:
    """Parse a comma separated list of level names into numeric levels."""
    default_levels = {TRACE_LEVEL, logging.INFO, logging.WARNING, logging.ERROR}
    if not raw:
        return default_levels
    levels = {
        _LEVEL_NAMES[name.strip().upper()]
        for name in raw.split(",")
        if name.strip().upper() in _LEVEL_NAMES
    }
    return levels or default_levels


def _resolve_level(level_name: Optional[str]) -> int:
    if not level_name:
        return logging.INFO
    return _LEVEL_NAMES.get(level_name.strip().upper(), logging.INFO)


def configure_logging(log_file_path: Optional[str] = None) -> None:
    """Configure the root logger with console + rotating file handlers."""
    log_file_path = log_file_path or settings.LOG_FILE_PATH
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(_resolve_level(settings.LOG_LEVEL))
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    level_filter = LogLevelFilter(_parse_allowed_levels(settings.LOG_LEVELS))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(level_filter)

    file_handler = TimedRotatingFileHandler(
        log_file_path,
        when="midnight",
        backupCount=settings.LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.addFilter(level_filter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)


def _describe_args(args: tuple, kwargs: dict) -> str:
    parts = [repr(arg) for arg in args]
    for key, value in kwargs.items():
        shown = "***" if key in REDACTED_ARGS else repr(value)
        parts.append(f"{key}={shown}")
    return ", ".join(parts)


def log_store_call(func: F) -> F:
    """
    Decorator for repository methods: logs duration and arguments of every
    store call, and the error when it fails.

    Positional arguments after ``self`` are logged as-is; keyword arguments
    listed in REDACTED_ARGS are masked. Repository methods take secrets as
    keyword arguments only.
    """
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        logger = logging.getLogger(func.__module__)
        args_str = _describe_args(args, kwargs)
        start_time = time.perf_counter()
        try:
            result = func(self, *args, **kwargs)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "STORE | %s | duration=%.3fms | args=(%s) | error=%s",
                func.__qualname__,
                elapsed_ms,
                args_str,
                exc,
            )
            raise
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "STORE | %s | duration=%.3fms | args=(%s)",
            func.__qualname__,
            elapsed_ms,
            args_str,
        )
        return result
    return wrapper  # type: ignore[return-value]
