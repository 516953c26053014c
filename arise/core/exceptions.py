"""
Infrastructure exceptions for the Arise progression engine.

Purpose
-------
Errors for engineering-level problems only: malformed static content and
invariant violations caused by corrupted upstream data.

Design Notes
------------
- Engine operations never raise for ordinary gameplay input. Unknown ids and
  unaffordable actions are silent no-ops, and partial state is defaulted.
- These exceptions surface only while loading content or, in strict mode,
  when an invariant check fails (see arise.core.invariants).
- Every exception carries `message`, structured `details`, a stable
  `error_code` and a `severity` used by log handlers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """How loudly a handler should report an error."""

    WARNING = "warning"  # degraded but handled
    ERROR = "error"  # bad data reached the engine
    CRITICAL = "critical"  # the engine cannot start


class AriseException(Exception):
    """
    Base exception for all Arise errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        error_code: Stable identifier; defaults to the class name

    Example:
        >>> raise ContentLoadError("rarity.yaml", "rarities must be a list")
    """

    SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.error_code = error_code or type(self).__name__
        super().__init__(message)

    @property
    def severity(self) -> ErrorSeverity:
        return self.SEVERITY

    def to_dict(self) -> Dict[str, Any]:
        """Flat representation for structured log records."""
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "severity": self.severity.value,
            **self.details,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.error_code}] {self.message}"
        return f"[{self.error_code}] {self.message} | {self.details}"


class ContentLoadError(AriseException):
    """
    Raised when static content cannot be loaded or is structurally invalid.

    Content is loaded once at startup, so this is fatal for the host.

    Args:
        source: File or table the problem was found in
        message: Description of the problem
    """

    SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(
            f"Invalid content in {source}: {message}",
            details={"source": source},
            error_code="CONTENT_ERROR",
        )


class InvariantViolationError(AriseException):
    """
    Upstream data broke an engine invariant.

    Raised in strict mode; in production the same error is only logged and
    the engine falls back to a safe default.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details, error_code="INVARIANT_VIOLATION")
