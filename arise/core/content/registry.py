"""
Static content registry for the Arise progression engine.

Purpose
-------
Load the game's static tables (rarity tiers, loot name pools, dungeon bosses,
Power constants, titles and frames, passives, buffs, season ranks) from YAML
once, validate them, and expose them through dot-notation lookups and typed
accessors.

Responsibilities
----------------
- Discover every `*.yaml` / `*.yml` file under the content directory (rglob)
- Deep-merge the documents into one tree so tables can be split across files
- Validate the required sections and build immutable typed views
- Build reduced registries for tests via `from_mapping`

Non-Responsibilities
--------------------
- Game rules (services read numbers from here; they own the formulas)
- Hot reload (content is static for the lifetime of a registry)

Design Notes
------------
- A registry is a plain object injected into every engine constructor.
  `default_registry()` caches the packaged content for hosts that do not
  care about overrides.
- Malformed content fails fast with `ContentLoadError`; it is a startup
  problem, never a gameplay one.
"""

from __future__ import annotations

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Tuple, Union

import yaml

from arise.core.config.config import Config
from arise.core.exceptions import ContentLoadError
from arise.core.logging.logger import get_logger
from arise.domain.models.character import STAT_KINDS, HunterRank
from arise.domain.models.content import (
    BossDefinition,
    BuffDefinition,
    PassiveDefinition,
    PredicateSpec,
    RarityTier,
    SeasonRankDefinition,
    UnlockableDefinition,
)
from arise.domain.models.equipment import Rarity

logger = get_logger(__name__)

REQUIRED_SECTIONS: Tuple[str, ...] = (
    "rarities",
    "progression",
    "season",
    "loot",
    "dungeon",
    "power",
    "titles",
    "frames",
)


class ContentRegistry:
    """
    Immutable view over the merged content tree.

    Example:
        >>> content = ContentRegistry.load()
        >>> content.get("dungeon.power.base")
        12000
        >>> content.rarity_tier(Rarity.EPIC).stat_count
        2
    """

    def __init__(self, data: Mapping[str, Any], source: str = "<mapping>") -> None:
        self._data: Dict[str, Any] = copy.deepcopy(dict(data))
        self._source = source

        missing = [section for section in REQUIRED_SECTIONS if section not in self._data]
        if missing:
            raise ContentLoadError(source, f"missing required sections: {', '.join(missing)}")

        self._rarity_tiers = self._build_rarity_tiers()
        self._stat_kinds = self._build_stat_kinds()
        self._slot_roots = self._build_slot_roots()
        self._bosses = self._build_bosses()
        self._season_ranks = self._build_season_ranks()
        self._passives = self._build_passives()
        self._buffs = self._build_buffs()
        self._titles = self._build_unlockables("titles", UnlockableDefinition.TITLE)
        self._titles += self._build_companion_titles()
        self._frames = self._build_unlockables("frames", UnlockableDefinition.FRAME)

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: Mapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, Mapping) and isinstance(target.get(key), dict):
                ContentRegistry._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_documents(cls, content_dir: Path) -> Dict[str, Any]:
        """
        Load and deep-merge every YAML document under `content_dir`.

        Files are merged in sorted path order so overrides are deterministic.
        Non-mapping roots are skipped with a warning.

        Raises:
            ContentLoadError: If the directory is missing or a file is not
                valid YAML
        """
        if not content_dir.is_dir():
            raise ContentLoadError(str(content_dir), "content directory not found")

        yaml_files = sorted(list(content_dir.rglob("*.yaml")) + list(content_dir.rglob("*.yml")))
        merged: Dict[str, Any] = {}

        for yaml_file in yaml_files:
            relative = str(yaml_file.relative_to(content_dir))
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ContentLoadError(relative, f"invalid YAML: {exc}") from exc

            if isinstance(data, dict):
                cls._deep_merge_dict(merged, data)
                logger.debug("Loaded content file", extra={"file": relative})
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={"file": relative, "root_type": type(data).__name__},
                )

        logger.info(
            "Content loaded",
            extra={
                "content_dir": str(content_dir),
                "yaml_file_count": len(yaml_files),
                "sections": len(merged),
            },
        )
        return merged

    @classmethod
    def load(cls, directory: Optional[Union[str, Path]] = None) -> "ContentRegistry":
        """
        Load content from a directory (defaults to `Config.CONTENT_DIR`).

        Raises:
            ContentLoadError: If the content is missing or malformed
        """
        content_dir = Path(directory) if directory is not None else Config.CONTENT_DIR
        return cls(cls._load_yaml_documents(content_dir), source=str(content_dir))

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        base: Optional["ContentRegistry"] = None,
    ) -> "ContentRegistry":
        """
        Build a registry from plain data, optionally layered over `base`.

        Example:
            >>> cheap = ContentRegistry.from_mapping(
            ...     {"progression": {"xp_curve": {"base": 10}}},
            ...     base=default_registry(),
            ... )
        """
        merged: Dict[str, Any] = copy.deepcopy(base._data) if base is not None else {}
        cls._deep_merge_dict(merged, data)
        return cls(merged, source="<mapping>")

    # =========================================================================
    # RAW ACCESS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value by dot-notation path.

        Example:
            >>> content.get("power.scale")
            12
            >>> content.get("power.unknown", 0)
            0
        """
        value: Any = self._data
        for part in key.split("."):
            if not isinstance(value, Mapping) or part not in value:
                return default
            value = value[part]
        return value if value is not None else default

    def require(self, key: str) -> Any:
        """Like `get`, but a missing key is a content error."""
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            raise ContentLoadError(self._source, f"missing required key '{key}'")
        return value

    @property
    def source(self) -> str:
        return self._source

    # =========================================================================
    # TYPED ACCESSORS
    # =========================================================================

    @property
    def rarity_tiers(self) -> Tuple[RarityTier, ...]:
        """All rarity tiers, lowest first."""
        return self._rarity_tiers

    def rarity_tier(self, rarity: Rarity) -> RarityTier:
        return self._rarity_tiers[Rarity.from_string(rarity).order]

    @property
    def stat_kinds(self) -> Tuple[str, ...]:
        return self._stat_kinds

    @property
    def slots(self) -> Tuple[str, ...]:
        return tuple(self._slot_roots)

    def slot_roots(self, slot: str) -> Tuple[str, ...]:
        return self._slot_roots.get(slot, ())

    @property
    def prefixes(self) -> Tuple[str, ...]:
        return tuple(str(p) for p in self.get("loot.prefixes", ()))

    @property
    def suffixes(self) -> Tuple[str, ...]:
        return tuple(str(s) for s in self.get("loot.suffixes", ()))

    @property
    def name_templates(self) -> Tuple[Tuple[str, float], ...]:
        return tuple(
            (str(t["pattern"]), float(t.get("weight", 1)))
            for t in self.get("loot.name_templates", ())
        )

    @property
    def titles(self) -> Tuple[UnlockableDefinition, ...]:
        return self._titles

    @property
    def frames(self) -> Tuple[UnlockableDefinition, ...]:
        return self._frames

    @property
    def unlockables(self) -> Tuple[UnlockableDefinition, ...]:
        return self._titles + self._frames

    def title(self, title_id: Optional[str]) -> Optional[UnlockableDefinition]:
        return next((t for t in self._titles if t.id == title_id), None)

    def frame(self, frame_id: Optional[str]) -> Optional[UnlockableDefinition]:
        return next((f for f in self._frames if f.id == frame_id), None)

    @property
    def passives(self) -> Mapping[str, PassiveDefinition]:
        return self._passives

    @property
    def buffs(self) -> Mapping[str, BuffDefinition]:
        return self._buffs

    @property
    def bosses(self) -> Tuple[BossDefinition, ...]:
        return self._bosses

    @property
    def season_ranks(self) -> Tuple[SeasonRankDefinition, ...]:
        """Season ranks ordered by threshold, lowest first."""
        return self._season_ranks

    @property
    def dungeon_tiers(self) -> Tuple[HunterRank, ...]:
        return tuple(HunterRank.from_string(t) for t in self.get("dungeon.tiers", ()))

    @property
    def progression_tiers(self) -> Tuple[str, ...]:
        return tuple(str(t) for t in self.get("progression.tiers", ("None",)))

    # =========================================================================
    # BUILDERS
    # =========================================================================

    def _build_rarity_tiers(self) -> Tuple[RarityTier, ...]:
        raw_tiers = {str(t.get("id")): t for t in self.require("rarities")}
        tiers: List[RarityTier] = []
        for rarity in Rarity:
            raw = raw_tiers.get(rarity.value)
            if raw is None:
                raise ContentLoadError(self._source, f"rarity table missing '{rarity.value}'")
            try:
                stat_min, stat_max = (int(v) for v in raw["stat_range"])
                tier = RarityTier(
                    rarity=rarity,
                    weight=float(raw["weight"]),
                    stat_count=int(raw["stat_count"]),
                    stat_min=stat_min,
                    stat_max=stat_max,
                    power_multiplier=float(raw["power_multiplier"]),
                    title_power=int(raw["title_power"]),
                    max_enhancement=int(raw["max_enhancement"]),
                    salvage_value=int(raw["salvage_value"]),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ContentLoadError(
                    self._source, f"invalid rarity '{rarity.value}': {exc}"
                ) from exc
            if tier.weight < 0 or tier.stat_min > tier.stat_max:
                raise ContentLoadError(self._source, f"invalid rarity '{rarity.value}' bounds")
            tiers.append(tier)
        return tuple(tiers)

    def _build_stat_kinds(self) -> Tuple[str, ...]:
        kinds = tuple(str(k) for k in self.get("progression.stat_kinds", STAT_KINDS))
        unknown = [k for k in kinds if k not in STAT_KINDS]
        if unknown or not kinds:
            raise ContentLoadError(self._source, f"unknown stat kinds: {unknown}")
        return kinds

    def _build_slot_roots(self) -> Dict[str, Tuple[str, ...]]:
        slots = self.require("loot.slots")
        if not isinstance(slots, Mapping) or not slots:
            raise ContentLoadError(self._source, "loot.slots must be a non-empty mapping")
        return {str(slot): tuple(str(r) for r in roots or ()) for slot, roots in slots.items()}

    def _build_bosses(self) -> Tuple[BossDefinition, ...]:
        return tuple(
            BossDefinition(index=i, name=str(raw["name"]), companion=raw.get("companion"))
            for i, raw in enumerate(self.get("dungeon.bosses", ()))
        )

    def _build_season_ranks(self) -> Tuple[SeasonRankDefinition, ...]:
        ranks = [
            SeasonRankDefinition(
                rank=HunterRank.from_string(raw["id"]),
                threshold=int(raw["threshold"]),
                stat_bonus={str(k): int(v) for k, v in (raw.get("stat_bonus") or {}).items()},
            )
            for raw in self.require("season.ranks")
        ]
        return tuple(sorted(ranks, key=lambda r: r.threshold))

    def _build_passives(self) -> Dict[str, PassiveDefinition]:
        return {
            str(raw["id"]): PassiveDefinition(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["id"])),
                max_level=int(raw.get("max_level", 10)),
                cost_per_level=int(raw.get("cost_per_level", 1)),
                stat_bonus_per_level={
                    str(k): int(v) for k, v in (raw.get("stat_bonus_per_level") or {}).items()
                },
            )
            for raw in self.get("passives", ())
        }

    def _build_buffs(self) -> Dict[str, BuffDefinition]:
        return {
            str(raw["id"]): BuffDefinition(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["id"])),
                duration_minutes=int(raw["duration_minutes"]),
                stat_modifiers={
                    str(k): int(v) for k, v in (raw.get("stat_modifiers") or {}).items()
                },
                xp_multiplier=float(raw.get("xp_multiplier", 1.0)),
            )
            for raw in self.get("buffs", ())
        }

    def _build_unlockables(self, section: str, kind: str) -> Tuple[UnlockableDefinition, ...]:
        definitions: List[UnlockableDefinition] = []
        seen = set()
        for raw in self.require(section):
            unlock_id = str(raw.get("id") or "")
            if not unlock_id or unlock_id in seen:
                raise ContentLoadError(self._source, f"{section}: missing or duplicate id '{unlock_id}'")
            seen.add(unlock_id)
            definitions.append(
                UnlockableDefinition(
                    id=unlock_id,
                    kind=kind,
                    rarity=str(raw.get("rarity", "")),
                    name=str(raw.get("name", unlock_id)),
                    predicate=PredicateSpec.from_raw(raw.get("predicate")),
                )
            )
        return tuple(definitions)

    def _build_companion_titles(self) -> Tuple[UnlockableDefinition, ...]:
        """One mastery title per extractable boss companion."""
        spec = self.get("companion_titles")
        if not spec:
            return ()
        existing = {t.id for t in self._titles}
        titles: List[UnlockableDefinition] = []
        for boss in self._bosses:
            if not boss.extractable:
                continue
            title_id = spec["id_pattern"].format(key=boss.companion.lower())
            if title_id in existing:
                continue
            titles.append(
                UnlockableDefinition(
                    id=title_id,
                    kind=UnlockableDefinition.TITLE,
                    rarity=str(spec.get("rarity", Rarity.MYTHIC.value)),
                    name=spec["name_pattern"].format(companion=boss.companion),
                    predicate=PredicateSpec(tag="companion_owned", params={"name": boss.companion}),
                )
            )
        return tuple(titles)


@lru_cache(maxsize=1)
def default_registry() -> ContentRegistry:
    """Packaged content, loaded once per process."""
    return ContentRegistry.load()
