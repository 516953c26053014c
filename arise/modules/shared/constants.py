"""
Arise Domain Constants

Purpose
-------
Structural gameplay constants that are not balance knobs. Tunable numbers
(weights, thresholds, multipliers) live in the YAML content and are read
through the content registry.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- No side effects at import time
"""

from __future__ import annotations

from typing import Final, Tuple

# ============================================================================
# LEVELING
# ============================================================================

MIN_LEVEL: Final[int] = 1
MAX_DEBUG_LEVEL: Final[int] = 1000  # Upper bound for the set_level override

# ============================================================================
# POWER
# ============================================================================

# Breakdown component names, in display order
POWER_COMPONENTS: Final[Tuple[str, ...]] = (
    "base_stats",
    "level",
    "equipped_title",
    "title_collection",
    "equipped_frame",
    "frame_collection",
    "companions",
    "equipment",
    "passives",
    "progression_tier",
)

# ============================================================================
# DUNGEON
# ============================================================================

MIN_FLOOR: Final[int] = 1
MIN_DIFFICULTY: Final[int] = 1

# ============================================================================
# INVENTORY
# ============================================================================

MAX_ENHANCE_LEVELS_PER_CALL: Final[int] = 10
