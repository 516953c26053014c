"""
Unit tests for the content registry, configuration and invariant checks.
"""

from pathlib import Path

import pytest

from arise.core.config import Config, Environment
from arise.core.content.registry import ContentRegistry
from arise.core.exceptions import ContentLoadError, InvariantViolationError
from arise.core.invariants import check_invariant
from arise.domain.models import HunterRank, Rarity, UnlockableDefinition


@pytest.mark.unit
class TestPackagedContent:
    """The packaged YAML tables load into typed views."""

    def test_dot_notation_lookup(self, content):
        # Arrange & Act & Assert
        assert content.get("dungeon.power.base") == 12000
        assert content.get("dungeon.power.missing", 7) == 7

    def test_rarity_tiers_follow_enum_order(self, content):
        # Arrange & Act
        tiers = content.rarity_tiers

        # Assert
        assert [t.rarity for t in tiers] == list(Rarity)
        assert content.rarity_tier(Rarity.EPIC).stat_count == 2
        assert content.rarity_tier(Rarity.GODLIKE).stat_count == 6

    def test_stat_counts_never_exceed_stat_universe(self, content):
        # Arrange & Act & Assert
        assert all(t.stat_count <= len(content.stat_kinds) for t in content.rarity_tiers)

    def test_season_ranks_sorted_by_threshold(self, content):
        # Arrange & Act
        ranks = content.season_ranks

        # Assert
        assert [r.rank for r in ranks] == list(HunterRank)
        assert [r.threshold for r in ranks] == [0, 100, 500, 1500, 3000, 5000, 10000, 20000]

    def test_companion_titles_generated_from_bosses(self, content):
        # Arrange
        extractable = [b for b in content.bosses if b.extractable]

        # Act
        generated = [t for t in content.titles if t.id.startswith("companion_master_")]

        # Assert
        assert len(extractable) == 12
        assert len(generated) == 12
        igris = content.title("companion_master_igris")
        assert igris.predicate.tag == "companion_owned"
        assert igris.predicate.params == {"name": "Igris"}
        assert igris.kind == UnlockableDefinition.TITLE

    def test_default_frame_is_defined(self, content):
        # Arrange & Act & Assert
        assert content.frame("default") is not None

    def test_passives_and_buffs_are_indexed(self, content):
        # Arrange & Act & Assert
        assert content.passives["iron_muscle"].stat_bonus_per_level == {"strength": 2}
        assert content.buffs["coffee_focus"].xp_multiplier == pytest.approx(1.1)
        assert content.buffs["gym_boost"].xp_multiplier == 1.0


@pytest.mark.unit
class TestRegistryConstruction:
    """Loading, overriding and rejecting content."""

    def test_from_mapping_overrides_base(self, content):
        # Arrange & Act
        cheap = ContentRegistry.from_mapping({"progression": {"xp_curve": {"base": 10}}}, base=content)

        # Assert
        assert cheap.get("progression.xp_curve.base") == 10
        assert cheap.get("progression.xp_curve.exponent") == 1.5
        assert content.get("progression.xp_curve.base") == 100

    def test_missing_sections_raise(self):
        # Arrange & Act & Assert
        with pytest.raises(ContentLoadError) as exc_info:
            ContentRegistry.from_mapping({"rarities": []})

        assert "missing required sections" in str(exc_info.value)

    def test_missing_directory_raises(self, tmp_path):
        # Arrange
        missing = tmp_path / "nope"

        # Act & Assert
        with pytest.raises(ContentLoadError):
            ContentRegistry.load(missing)

    def test_invalid_yaml_raises(self, tmp_path: Path):
        # Arrange
        (tmp_path / "broken.yaml").write_text("rarities: [unclosed\n", encoding="utf-8")

        # Act & Assert
        with pytest.raises(ContentLoadError):
            ContentRegistry.load(tmp_path)

    def test_duplicate_unlock_ids_raise(self, content):
        # Arrange
        duplicate = {"id": "dup", "name": "Dup", "rarity": "common", "predicate": {"tag": "always"}}

        # Act & Assert
        with pytest.raises(ContentLoadError):
            ContentRegistry.from_mapping({"titles": [duplicate, duplicate]}, base=content)


@pytest.mark.unit
class TestConfigAndInvariants:
    """Environment-driven configuration and invariant strictness."""

    def test_testing_environment_is_strict(self):
        # Arrange & Act & Assert
        assert Config.is_testing()
        assert Config.STRICT_INVARIANTS is True

    def test_unknown_environment_falls_back_to_development(self):
        # Arrange & Act & Assert
        assert Environment.from_string("staging-ish") is Environment.DEVELOPMENT

    def test_strict_invariant_raises(self):
        # Arrange & Act & Assert
        with pytest.raises(InvariantViolationError) as exc_info:
            check_invariant(False, "Broken table", table="rarities")

        assert exc_info.value.details == {"table": "rarities"}

    def test_lenient_invariant_logs_and_returns_false(self, lenient_invariants, caplog):
        # Arrange & Act
        held = check_invariant(False, "Broken table", table="rarities")

        # Assert
        assert held is False
        assert "Broken table" in caplog.text

    def test_holding_invariant_returns_true(self):
        # Arrange & Act & Assert
        assert check_invariant(True, "never raised") is True
