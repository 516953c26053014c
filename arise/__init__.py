"""
Arise: a deterministic progression engine for gamified habit tracking.

Completing real-world missions grants experience, shards and generated
equipment; all progress folds into one Power score that gates a tower of
dungeon floors and unlocks titles and frames.

Usage
-----
    from arise import CharacterState, ProgressionEngine

    engine = ProgressionEngine()
    outcome = engine.complete_mission(state, "gym", now)
"""

__version__ = "1.0.0"

from arise.domain.models import CharacterState, RewardEvent, RewardKind  # noqa: E402
from arise.engine import DungeonResult, EnhancementResult, Outcome, ProgressionEngine  # noqa: E402

__all__ = [
    "__version__",
    "CharacterState",
    "RewardEvent",
    "RewardKind",
    "ProgressionEngine",
    "Outcome",
    "DungeonResult",
    "EnhancementResult",
]
