"""
Logging for the `arise` logger tree: setup, per-operation context, formatters.
"""

from arise.core.logging.logger import (
    LogContext,
    LoggerConfig,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    "LogContext",
    "LoggerConfig",
    "set_log_context",
    "get_log_context",
    "clear_log_context",
]
