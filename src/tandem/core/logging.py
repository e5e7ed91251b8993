# src/tandem/core/logging.py
"""Logging helpers for tandem.

The library itself only emits DEBUG records under the ``tandem`` logger
namespace. Applications that want to see them call :func:`init_logging`.
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
import sys
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from rich.logging import RichHandler

from tandem.config import config

F = TypeVar("F", bound=Callable[..., Any])

_LOGGING_INITIALIZED = False

_RESERVED_RECORD_KEYS = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Attach extras if present
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS or key in data:
                continue
            try:
                json.dumps(value)
                data[key] = value
            except (TypeError, ValueError):
                data[key] = str(value)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def _plain_handler(log_level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    return handler


def init_logging(
    level: str | None = None,
    format: str | None = None,
    include_trace: bool | None = None,
    *,
    force: bool = False,
) -> None:
    """
    Initialize global logging configuration.

    Unset arguments fall back to ``config.system``, which reads:
      - TANDEM_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR|CRITICAL (default INFO)
      - TANDEM_LOG_FORMAT: plain|rich|json (default plain)
      - TANDEM_LOG_INCLUDE_TRACE: bool (default False)
    """
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED and not force:
        return

    resolved_level = (level or config.system.log_level).upper()
    resolved_format = (format or config.system.log_format).lower()
    resolved_include_trace = (
        include_trace if include_trace is not None else config.system.log_include_trace
    )

    log_level = logging.getLevelNamesMapping().get(resolved_level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler: logging.Handler
    if resolved_format == "json":
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(JsonFormatter())
    elif resolved_format == "rich":
        handler = RichHandler(
            level=log_level,
            rich_tracebacks=resolved_include_trace,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
        )
        # RichHandler renders time and level itself
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        resolved_format = "plain"
        handler = _plain_handler(log_level)

    root.addHandler(handler)

    # asyncio debug chatter is rarely useful next to ours
    logging.getLogger("asyncio").setLevel(max(log_level, logging.WARNING))

    from tandem import __version__

    get_logger("tandem.start").info(
        "Initializing logging | version=%s level=%s format=%s include_trace=%s",
        __version__,
        resolved_level,
        resolved_format,
        str(resolved_include_trace),
    )

    _LOGGING_INITIALIZED = True


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger with the provided name, or the package logger if None.
    """
    return logging.getLogger(name or "tandem")


def log_calls(func: F) -> F:
    """Decorate func to log calls at the DEBUG level."""
    logger = get_logger(func.__module__)

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            logger.debug("Entering %s", func.__qualname__)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.debug(
                    "Error in %s after %.2fms: %s: %s",
                    func.__qualname__,
                    (time.perf_counter() - start_time) * 1000,
                    type(e).__name__,
                    e,
                )
                raise
            logger.debug(
                "Exiting %s successfully after %.2fms",
                func.__qualname__,
                (time.perf_counter() - start_time) * 1000,
            )
            return result

        return cast(F, async_wrapper)

    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        logger.debug("Entering %s", func.__qualname__)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(
                "Error in %s after %.2fms: %s: %s",
                func.__qualname__,
                (time.perf_counter() - start_time) * 1000,
                type(e).__name__,
                e,
            )
            raise
        logger.debug(
            "Exiting %s successfully after %.2fms",
            func.__qualname__,
            (time.perf_counter() - start_time) * 1000,
        )
        return result

    return cast(F, sync_wrapper)


__all__ = ["JsonFormatter", "init_logging", "get_logger", "log_calls"]
