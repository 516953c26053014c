"""
Base Service Foundation

Purpose
-------
Provides the foundational class for the engine services (leveling, loot,
Power, dungeon, unlocks, bookkeeping, inventory, companions). Services are
pure: they take an immutable `CharacterState` and return a new one.

Design Notes
------------
This base class provides:
- The injected content registry and a safe dot-notation lookup
- The injected random source, wrapped in a shared `WeightedSampler`
- Structured logging helpers for operations and ignored requests

What this class does NOT do:
- Hold character state (every call receives and returns it)
- Perform I/O, persistence or timing

Usage
-----
    class InventoryService(BaseService):
        def salvage_item(self, state, item_id):
            if state.find_item(item_id) is None:
                return self.log_noop("salvage_item", "unknown item", state, item_id=item_id)
            ...
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from arise.core.content.registry import ContentRegistry, default_registry
from arise.core.exceptions import ContentLoadError
from arise.core.logging.logger import get_logger
from arise.modules.shared.sampling import WeightedSampler

if TYPE_CHECKING:
    from logging import Logger

S = TypeVar("S")


class BaseService:
    """
    Base class for all engine services.

    Args:
        content: Static content registry (defaults to the packaged content)
        rng: Random source (defaults to `secrets.SystemRandom()`)
        logger: Structured logger instance (defaults to the module logger)
    """

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._content = content if content is not None else default_registry()
        self._sampler = WeightedSampler(rng)
        self.log = logger or get_logger(type(self).__module__)

    @property
    def content(self) -> ContentRegistry:
        return self._content

    @property
    def sampler(self) -> WeightedSampler:
        return self._sampler

    def get_content(self, key: str, default: Optional[Any] = None, required: bool = False) -> Any:
        """
        Safely retrieve a content value.

        Args:
            key: Dot-notation content key
            default: Default value if key not found
            required: If True, raise if the key is missing

        Returns:
            Content value

        Raises:
            ContentLoadError: If required=True and key is missing
        """
        value = self._content.get(key, default)
        if required and value is None:
            raise ContentLoadError(self._content.source, f"Required content key '{key}' is missing")
        return value

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a completed service operation with structured context.

        Args:
            operation: Name of the operation performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_noop(self, operation: str, reason: str, state: S, **context: Any) -> S:
        """
        Record an ignored request and hand back the unchanged state.

        Unknown ids and unaffordable actions are not errors for the engine;
        they are logged at DEBUG and the caller gets its state back.
        """
        self.log.debug(
            f"Ignored {operation}: {reason}",
            extra={"operation": operation, "reason": reason, **context},
        )
        return state
