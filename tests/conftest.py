"""
Pytest Configuration and Fixtures for the Arise Test Suite
==========================================================

Purpose
-------
Centralized fixtures for the engine tests: the packaged content registry,
a seeded random source, a fixed clock and fresh character states.

Responsibilities
----------------
- Force the testing environment (strict invariants) before arise is imported
- Content, RNG, clock and state fixtures
- Service fixtures wired to the shared content and RNG
- Reward event helpers

Non-Responsibilities
--------------------
- Test implementation (delegated to test files)
- Game rules (delegated to the services)

Architecture Notes
------------------
- Every test is a unit test: the engine performs no I/O
- Randomness is always injected; tests that need an exact roll patch the
  sampler with pytest-mock
"""

from __future__ import annotations

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import random  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Iterable, Optional  # noqa: E402

import pytest  # noqa: E402

from arise.core.config import Config  # noqa: E402
from arise.core.content.registry import ContentRegistry, default_registry  # noqa: E402
from arise.domain.models import CharacterState, RewardEvent, RewardKind  # noqa: E402

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Reload configuration with the testing environment applied."""
    Config.load()


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def content() -> ContentRegistry:
    """Packaged content, loaded once for the whole session."""
    return default_registry()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source; every service built from it is reproducible."""
    return random.Random(42)


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 3, 12, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def state() -> CharacterState:
    """A fresh level-1 character with default stats."""
    return CharacterState()


@pytest.fixture
def strong_state() -> CharacterState:
    """A character strong enough to clear the early boss floors."""
    return CharacterState.from_dict(
        {
            "level": 20,
            "stats": {
                "strength": 100,
                "vitality": 100,
                "agility": 100,
                "intelligence": 100,
                "fortune": 100,
                "metabolism": 100,
            },
        }
    )


@pytest.fixture
def lenient_invariants(mocker):
    """Run a test with production-style invariant handling."""
    mocker.patch.object(Config, "STRICT_INVARIANTS", False)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def assert_event_emitted(events: Iterable[RewardEvent], kind: RewardKind) -> bool:
    """
    Whether a reward event of `kind` is present.

    Usage:
        outcome = engine.complete_mission(state, "gym", now)
        assert assert_event_emitted(outcome.events, RewardKind.LEVEL_UP)
    """
    return any(event.kind == kind for event in events)


def get_event_payload(events: Iterable[RewardEvent], kind: RewardKind) -> Optional[dict]:
    """
    Payload of the first event of `kind`, or None.

    Usage:
        payload = get_event_payload(outcome.events, RewardKind.LEVEL_UP)
        assert payload["level"] == 2
    """
    for event in events:
        if event.kind == kind:
            return dict(event.payload)
    return None


def event_kinds(events: Iterable[RewardEvent]) -> list:
    return [event.kind for event in events]
