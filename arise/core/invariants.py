"""
Invariant checks with environment-dependent strictness.

Corrupted upstream data (a rarity missing from a lookup table, a stat count
larger than the stat universe) should fail loudly while developing and
degrade to a safe default in production. `check_invariant` centralizes that
choice so call sites only decide what the safe default is.

Usage
-----
    if not check_invariant(rarity in table, "Unknown rarity", rarity=rarity):
        rarity = lowest_rarity
"""

from __future__ import annotations

from typing import Any

from arise.core.config.config import Config
from arise.core.exceptions import InvariantViolationError
from arise.core.logging.logger import get_logger

logger = get_logger(__name__)


def check_invariant(condition: bool, message: str, **details: Any) -> bool:
    """
    Verify an engine invariant.

    Args:
        condition: The invariant; truthy means it holds
        message: Description of the violated invariant
        **details: Structured context for the error or log record

    Returns:
        True when the invariant holds, False when it failed in lenient mode

    Raises:
        InvariantViolationError: If the invariant fails and
            Config.STRICT_INVARIANTS is enabled
    """
    if condition:
        return True

    error = InvariantViolationError(message, details=details)
    if Config.STRICT_INVARIANTS:
        raise error

    logger.warning(f"Invariant violated, degrading: {message}", extra=error.to_dict())
    return False
