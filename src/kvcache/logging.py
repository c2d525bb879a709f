"""
Structured logging for the cache package.

Importing the package configures nothing: records go to the ``kvcache``
logger and propagate like any library's. Applications opt in to output with
setup_logging(), which create_cache() calls with the configured settings.

Batch operations tag the records of their per-key calls with the backend and
operation name through log_context().
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

LOGGER_NAMESPACE = "kvcache"

_backend_var: ContextVar[str | None] = ContextVar("backend", default=None)
_operation_var: ContextVar[str | None] = ContextVar("operation", default=None)


def get_backend() -> str | None:
    """Get the cache backend name from context."""
    return _backend_var.get()


def get_operation() -> str | None:
    """Get the batch operation name from context."""
    return _operation_var.get()


def _context_fields() -> dict[str, str]:
    fields = {"backend": get_backend(), "operation": get_operation()}
    return {k: v for k, v in fields.items() if v}


@contextmanager
def log_context(
    backend: str | None = None,
    operation: str | None = None,
) -> Generator[None, None, None]:
    """Tag log records emitted inside the block.

    Args:
        backend: Backend name, e.g. "file" or "memory".
        operation: Operation name, e.g. "set_multiple".
    """
    tokens = []
    if backend is not None:
        tokens.append((_backend_var, _backend_var.set(backend)))
    if operation is not None:
        tokens.append((_operation_var, _operation_var.set(operation)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with context and structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_fields(),
        }
        if hasattr(record, "extra"):
            log_obj["extra"] = record.extra
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


class ContextRichHandler(RichHandler):
    """Rich console handler prefixing the level with backend/operation."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        level_text = super().get_level_text(record)
        fields = _context_fields()
        if not fields:
            return level_text
        prefix = " ".join(f"[cyan]{value}[/cyan]" for value in fields.values())
        return Text.from_markup(f"{level_text} {prefix}")


class ContextLogger:
    """Logger wrapper turning keyword arguments into structured fields.

    ``logger.warning("Unreadable cache entry", key=key)`` stores
    ``{"key": key}`` plus any active context under ``record.extra``.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self, level: int, msg: str, *args: Any, exc_info: bool = False, **fields: Any
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {**_context_fields(), **fields}
        self._logger.log(level, msg, *args, exc_info=exc_info, extra={"extra": extra})

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.WARNING, msg, *args, **fields)

    def error(self, msg: str, *args: Any, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **fields)


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    console_output: bool = True,
) -> None:
    """Attach JSON-file and rich console handlers to the package logger.

    Replaces handlers installed by an earlier call, so calling it again
    reconfigures rather than duplicates output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: JSON-lines log file. If None, no file handler is added.
        console_output: Whether to log to stderr through rich.
    """
    level = getattr(logging, log_level.upper())
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(file_handler)

    if console_output:
        rich_handler = ContextRichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=True,
        )
        rich_handler.setLevel(level)
        package_logger.addHandler(rich_handler)

    # Configured output replaces, not duplicates, the application's handlers
    package_logger.propagate = not package_logger.handlers


def get_logger(name: str) -> ContextLogger:
    """Get a structured logger under the package namespace.

    Does not configure handlers; see setup_logging().
    """
    if not name.startswith(LOGGER_NAMESPACE):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return ContextLogger(logging.getLogger(name))
