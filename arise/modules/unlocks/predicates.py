"""
Unlock predicates.

Purpose
-------
Evaluate the tagged conditions attached to titles and frames. Each tag maps
to one plain function `(state, params) -> bool`; composites (`all_of`,
`any_of`) recurse through `evaluate`.

Design Notes
------------
- Conditions are data (`PredicateSpec`), so the unlock table stays a pure
  YAML document and new titles need no code.
- Stat conditions read raw base stats, like Power does.
- An unknown tag, or a known tag with malformed params, evaluates to False
  (an invariant violation in strict mode).

Usage
-----
    spec = PredicateSpec(tag="level_at_least", params={"level": 10})
    evaluate(spec, state)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, FrozenSet, Mapping

from arise.core.invariants import check_invariant
from arise.domain.models import STAT_KINDS, CharacterState, HunterRank, PredicateSpec

PredicateFn = Callable[[CharacterState, Mapping[str, Any]], bool]

_PREDICATES: Dict[str, PredicateFn] = {}


def predicate(tag: str) -> Callable[[PredicateFn], PredicateFn]:
    """Register a predicate function under `tag`."""

    def decorator(fn: PredicateFn) -> PredicateFn:
        _PREDICATES[tag] = fn
        return fn

    return decorator


def known_tags() -> FrozenSet[str]:
    return frozenset(_PREDICATES)


def evaluate(spec: PredicateSpec, state: CharacterState) -> bool:
    """
    Evaluate a predicate against a character.

    Returns:
        True if the condition holds; False if it does not, if the tag is
        unknown, or if its params are malformed
    """
    fn = _PREDICATES.get(spec.tag)
    if not check_invariant(fn is not None, "Unknown unlock predicate tag", tag=spec.tag):
        return False
    try:
        return bool(fn(state, spec.params))
    except (KeyError, TypeError, ValueError) as exc:
        check_invariant(
            False,
            "Malformed unlock predicate params",
            tag=spec.tag,
            params=dict(spec.params),
            error=str(exc),
        )
        return False


# ============================================================================
# COMPOSITES
# ============================================================================


@predicate("always")
def _always(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return True


@predicate("all_of")
def _all_of(state: CharacterState, params: Mapping[str, Any]) -> bool:
    children = PredicateSpec(tag="all_of", params=params).children()
    return all(evaluate(child, state) for child in children)


@predicate("any_of")
def _any_of(state: CharacterState, params: Mapping[str, Any]) -> bool:
    children = PredicateSpec(tag="any_of", params=params).children()
    return any(evaluate(child, state) for child in children)


# ============================================================================
# LEVEL AND STATS
# ============================================================================


@predicate("level_at_least")
def _level_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return state.level >= int(params["level"])


@predicate("stat_at_least")
def _stat_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return state.stats.get(str(params["stat"])) >= int(params["value"])


@predicate("stats_at_least")
def _stats_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    threshold = int(params["value"])
    return all(state.stats.get(str(stat)) >= threshold for stat in params["stats"])


@predicate("all_stats_at_least")
def _all_stats_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    threshold = int(params["value"])
    return all(state.stats.get(stat) >= threshold for stat in STAT_KINDS)


@predicate("stat_count_at_least")
def _stat_count_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    threshold = int(params["value"])
    qualifying = sum(1 for stat in STAT_KINDS if state.stats.get(stat) >= threshold)
    return qualifying >= int(params["count"])


# ============================================================================
# MISSIONS AND STREAKS
# ============================================================================


@predicate("streak_at_least")
def _streak_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return state.streak >= int(params["days"])


@predicate("mission_streak_at_least")
def _mission_streak_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    days = int(params["days"])
    stat = params.get("stat")
    return any(
        mission.streak >= days
        for mission in state.missions
        if stat is None or mission.target_stat == stat
    )


@predicate("missions_completed_at_least")
def _missions_completed_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    stat = params.get("stat")
    completed = sum(
        mission.completions
        for mission in state.missions
        if stat is None or mission.target_stat == stat
    )
    return completed >= int(params["count"])


# ============================================================================
# SEASON AND MILESTONES
# ============================================================================


@predicate("season_rank_at_least")
def _season_rank_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    rank = str(params["rank"]).upper()
    if rank not in {r.value for r in HunterRank}:
        raise ValueError(f"unknown rank {rank!r}")
    return state.season.rank.at_least(HunterRank(rank))


@predicate("milestone_completed")
def _milestone_completed(state: CharacterState, params: Mapping[str, Any]) -> bool:
    milestone = state.find_milestone(str(params["milestone"]))
    return milestone is not None and milestone.completed


@predicate("milestone_category_completed")
def _milestone_category_completed(state: CharacterState, params: Mapping[str, Any]) -> bool:
    category = str(params["category"])
    completed = sum(1 for m in state.milestones if m.completed and m.category == category)
    return completed >= int(params.get("count", 1))


@predicate("milestones_completed_at_least")
def _milestones_completed_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return sum(1 for m in state.milestones if m.completed) >= int(params["count"])


# ============================================================================
# COMPANIONS, DUNGEON, COLLECTIONS
# ============================================================================


@predicate("companions_at_least")
def _companions_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return len(state.companions) >= int(params["count"])


@predicate("companion_owned")
def _companion_owned(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return state.owns_companion_named(str(params["name"]))


@predicate("floor_cleared")
def _floor_cleared(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return int(params["floor"]) in state.cleared_floors


@predicate("highest_floor_at_least")
def _highest_floor_at_least(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return state.highest_cleared_floor >= int(params["floor"])


@predicate("title_unlocked")
def _title_unlocked(state: CharacterState, params: Mapping[str, Any]) -> bool:
    return str(params["title"]) in state.unlocked_title_ids
