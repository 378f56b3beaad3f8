"""
Logging for docprep.

Console output goes through rich on stderr, since stdout carries the
processed document. An optional file handler writes one JSON object per
record. Context fields (file path, strategy, operation) live in a ContextVar,
so concurrent pipelines and their page workers never see each other's
context.
"""

import contextvars
import functools
import inspect
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "docprep"

_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "docprep_log_context", default={}
)

# Attributes of a bare LogRecord; anything else arrived through `extra` or context
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON line, with extra and context fields nested."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        fields = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        if fields:
            entry["fields"] = fields

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ContextFilter(logging.Filter):
    """Copy the active log context onto records; explicit extra fields win."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


context_filter = ContextFilter()


class LogContext:
    """
    Bind context fields for the duration of a with block.

    Nested blocks layer their fields over the outer ones and restore them on
    exit.

    Usage:
        with LogContext(file_path=path, strategy="pdf"):
            ...
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_file_path: Optional[Union[str, Path]] = None,
    use_structured_logging: bool = True,
    dev_mode: bool = False,
) -> logging.Logger:
    """
    Attach docprep's handlers to the package logger.

    Calling it again replaces the handlers from the previous call. Library
    code never calls this; the CLI does.

    Args:
        log_level: Level name or number for the package logger
        log_file_path: Optional file receiving every record at log_level
        use_structured_logging: JSON lines in the file instead of plain text
        dev_mode: Show local variables in rich tracebacks

    Returns:
        The configured package logger
    """
    if isinstance(log_level, str):
        log_level = log_level.upper()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)
    package_logger.propagate = False
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=dev_mode,
    )
    console_handler.addFilter(context_filter)
    package_logger.addHandler(console_handler)

    if log_file_path:
        log_file_path = Path(log_file_path)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.addFilter(context_filter)
        if use_structured_logging:
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
            )
        package_logger.addHandler(file_handler)

    # Decoder chatter from the imaging stack
    for noisy in ("PIL", "pytesseract"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    package_logger.debug(
        "Logging configured",
        extra={"log_file": str(log_file_path) if log_file_path else None},
    )
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger; pass __name__ so records land under the package logger."""
    return logging.getLogger(name)


def log_performance(func):
    """
    Log how long a sync or async callable takes, and its failures.

    The callable's qualified name is bound as the `operation` context field
    while it runs. Exceptions are logged and re-raised unchanged.
    """
    logger = get_logger(func.__module__)
    name = func.__qualname__

    def _finished(start: float) -> None:
        elapsed = time.perf_counter() - start
        logger.info(f"{name} finished in {elapsed:.3f}s", extra={"duration_seconds": elapsed})

    def _failed(start: float, error: Exception) -> None:
        elapsed = time.perf_counter() - start
        logger.error(
            f"{name} failed after {elapsed:.3f}s: {error}",
            extra={"duration_seconds": elapsed, "error_type": type(error).__name__},
        )

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            with LogContext(operation=name):
                logger.debug(f"{name} started")
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _failed(start, e)
                    raise
                _finished(start)
            return result

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        with LogContext(operation=name):
            logger.debug(f"{name} started")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _failed(start, e)
                raise
            _finished(start)
        return result

    return sync_wrapper
