"""
Arise Logging Subsystem

Purpose
-------
One logging entry point for the progression engine. Every module obtains its
logger through `get_logger(__name__)`, and all records under the `arise`
namespace go through a single console handler.

Responsibilities
----------------
- Configure the `arise` logger tree once (idempotent setup and shutdown)
- Stamp each record with the current operation context:
  character_id, operation, component, correlation_id
- Render JSON in production and readable (optionally colored) lines elsewhere

Design Notes
------------
- The engine is a library embedded in a host. It never touches the root
  logger and never writes files; records still propagate to the host's
  handlers.
- Operation context lives in a ContextVar, so it follows async tasks.
- Fields passed through `extra={...}` appear under "extra" in JSON output.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from arise.core.config.config import Config

PACKAGE_LOGGER = "arise"
_MISSING = "N/A"

_operation_context: ContextVar[Dict[str, Any]] = ContextVar("arise_log_context", default={})


# ============================================================================
# Settings
# ============================================================================


@dataclass(frozen=True, slots=True)
class LoggerConfig:
    """Formatting choices derived from Config at call time."""

    line_format: str = "%(asctime)s | %(levelname)-8s | %(operation)-18s | %(name)s | %(message)s"
    date_format: str = "%H:%M:%S"

    @property
    def level(self) -> int:
        return logging.getLevelName(Config.LOG_LEVEL) if Config.LOG_LEVEL else logging.INFO

    @property
    def json_output(self) -> bool:
        return Config.is_production() if Config.LOG_JSON is None else Config.LOG_JSON

    @property
    def colored(self) -> bool:
        return not self.json_output and Config.LOG_COLORS and sys.stdout.isatty()


LOGGER_CONFIG = LoggerConfig()


# ============================================================================
# Record enrichment and rendering
# ============================================================================


class ContextFilter(logging.Filter):
    """Copies the active operation context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _operation_context.get()
        record.character_id = context.get("character_id", _MISSING)
        record.correlation_id = context.get("correlation_id") or _MISSING
        record.component = context.get("component") or record.name.partition(".")[0]
        if not hasattr(record, "operation"):
            record.operation = context.get("operation", _MISSING)
        return True


class ColoredFormatter(logging.Formatter):
    """Tints the level name with ANSI codes."""

    PALETTE = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        plain = record.levelname
        tint = self.PALETTE.get(record.levelno)
        if tint:
            record.levelname = f"{tint}{plain}\033[0m"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    CONTEXT_FIELDS = ("character_id", "correlation_id", "component", "operation")
    _RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(
            (field, getattr(record, field))
            for field in self.CONTEXT_FIELDS
            if getattr(record, field, _MISSING) not in (None, _MISSING)
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in self._RESERVED and key not in self.CONTEXT_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, ensure_ascii=False, default=str)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    if LOGGER_CONFIG.json_output:
        handler.setFormatter(JSONFormatter())
    else:
        formatter_cls = ColoredFormatter if LOGGER_CONFIG.colored else logging.Formatter
        handler.setFormatter(formatter_cls(LOGGER_CONFIG.line_format, LOGGER_CONFIG.date_format))
    return handler


# ============================================================================
# Lifecycle
# ============================================================================


def setup_logging() -> None:
    """Attach the console handler to the `arise` logger once."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if getattr(package_logger, "_arise_configured", False):
        return

    package_logger.setLevel(LOGGER_CONFIG.level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.addHandler(_console_handler())
    package_logger._arise_configured = True  # type: ignore[attr-defined]

    package_logger.debug(
        "Logging configured",
        extra={"environment": Config.ENVIRONMENT, "json": LOGGER_CONFIG.json_output},
    )


def shutdown_logging() -> None:
    """Flush and detach the handlers installed by setup_logging."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not getattr(package_logger, "_arise_configured", False):
        return

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.flush()
        handler.close()
    package_logger._arise_configured = False  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# ============================================================================
# Operation context
# ============================================================================


class LogContext:
    """
    Scope an operation context to a block.

    Example:
        >>> with LogContext(character_id="hunter-1", operation="resolve_dungeon"):
        ...     engine.resolve_dungeon(10, state, now)
    """

    def __init__(
        self,
        character_id: Optional[str] = None,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        self.context: Dict[str, Any] = {
            "character_id": _MISSING if character_id is None else str(character_id),
            "operation": operation or _MISSING,
            "component": component,
            "correlation_id": correlation_id or uuid.uuid4().hex[:8],
            **extra,
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _operation_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _operation_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(
    character_id: Optional[str] = None,
    operation: Optional[str] = None,
    component: Optional[str] = None,
    correlation_id: Optional[str] = None,
    **extra: Any,
) -> None:
    """Merge fields into the current context without opening a scope."""
    named = {
        "character_id": None if character_id is None else str(character_id),
        "operation": operation,
        "component": component,
        "correlation_id": correlation_id or None,
    }
    merged = dict(_operation_context.get())
    merged.update({key: value for key, value in named.items() if value is not None})
    merged.update(extra)
    _operation_context.set(merged)


def get_log_context() -> Dict[str, Any]:
    return dict(_operation_context.get())


def clear_log_context() -> None:
    _operation_context.set({})


setup_logging()
