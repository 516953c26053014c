"""
Unit tests for the shared formulas and the weighted sampler.
"""

import random

import pytest

from arise.modules.shared import WeightedSampler, formulas


@pytest.mark.unit
class TestFormulas:
    """Pure progression formulas."""

    def test_xp_threshold_level_one(self):
        # Arrange & Act & Assert
        assert formulas.xp_threshold(1) == 100

    def test_xp_threshold_is_monotonic(self):
        # Arrange
        thresholds = [formulas.xp_threshold(level) for level in range(1, 200)]

        # Act & Assert
        assert thresholds == sorted(thresholds)
        assert formulas.xp_threshold(2) == 282
        assert formulas.xp_threshold(4) == 800

    def test_required_power_floor_one_is_base(self):
        # Arrange & Act & Assert
        assert formulas.required_power(1, 12000, 4500, 35) == 12000
        assert formulas.required_power(10, 12000, 4500, 35) == 55335

    def test_ramped_rate_is_zero_before_start(self):
        # Arrange & Act & Assert
        assert formulas.ramped_rate(49, base=0.02, growth=0.001, start=50) == 0.0
        assert formulas.ramped_rate(50, base=0.02, growth=0.001, start=50) == pytest.approx(0.02)

    def test_ramped_rate_clamps(self):
        # Arrange & Act & Assert
        assert formulas.ramped_rate(500, base=0.1, growth=0.002, maximum=0.35) == 0.35
        assert formulas.ramped_rate(500, base=0.25, growth=-0.002, minimum=0.05) == 0.05

    def test_level_stat_bonus_caps(self):
        # Arrange & Act & Assert
        assert formulas.level_stat_bonus(4) == 0
        assert formulas.level_stat_bonus(25) == 5
        assert formulas.level_stat_bonus(400) == 10

    def test_streak_multiplier(self):
        # Arrange & Act & Assert
        assert formulas.streak_multiplier(1) == pytest.approx(1.05)
        assert formulas.streak_multiplier(0) == 1

    def test_season_xp_share_has_minimum(self):
        # Arrange & Act & Assert
        assert formulas.season_xp_share(20) == 10
        assert formulas.season_xp_share(157) == 39

    def test_enhancement_cost_sums_levels(self):
        # Arrange & Act & Assert
        assert formulas.enhancement_cost(0, 1) == 100
        assert formulas.enhancement_cost(0, 2) == 300
        assert formulas.enhancement_cost(3, 2) == 900

    def test_enhanced_stat_value_gains_at_least_one_per_level(self):
        # Arrange & Act & Assert
        assert formulas.enhanced_stat_value(2, 1) == 3
        assert formulas.enhanced_stat_value(50, 1) == 55
        assert formulas.enhanced_stat_value(0, 3) == 3

    def test_capped_chance(self):
        # Arrange & Act & Assert
        assert formulas.capped_chance(1.0, 0.0, 0.95) == 0.95
        assert formulas.capped_chance(0.3, 0.3, 0.95) == pytest.approx(0.6)

    def test_triangular(self):
        # Arrange & Act & Assert
        assert [formulas.triangular(n) for n in range(5)] == [0, 1, 3, 6, 10]


@pytest.mark.unit
class TestWeightedSampler:
    """Cumulative-weight sampling."""

    def test_zero_weight_entries_are_never_picked(self):
        # Arrange
        sampler = WeightedSampler(random.Random(1))

        # Act
        picks = {sampler.choose([("a", 0), ("b", 1), ("c", -5)]) for _ in range(200)}

        # Assert
        assert picks == {"b"}

    def test_all_zero_table_returns_first_key(self):
        # Arrange
        sampler = WeightedSampler(random.Random(1))

        # Act & Assert
        assert sampler.choose({"first": 0, "second": 0}) == "first"

    def test_empty_table_raises(self):
        # Arrange
        sampler = WeightedSampler(random.Random(1))

        # Act & Assert
        with pytest.raises(ValueError):
            sampler.choose([])

    def test_roll_uses_strict_cumulative_bound(self, mocker):
        # Arrange
        rng = random.Random(1)
        mocker.patch.object(rng, "random", return_value=0.5)
        sampler = WeightedSampler(rng)

        # Act
        picked = sampler.choose([("low", 1), ("high", 1)])

        # Assert
        assert picked == "high"

    def test_seeded_sampler_is_reproducible(self):
        # Arrange
        first = WeightedSampler(random.Random(99))
        second = WeightedSampler(random.Random(99))
        table = {"common": 50, "rare": 15, "epic": 4}

        # Act & Assert
        assert [first.choose(table) for _ in range(20)] == [second.choose(table) for _ in range(20)]

    def test_chance_extremes(self):
        # Arrange
        sampler = WeightedSampler(random.Random(3))

        # Act & Assert
        assert sampler.chance(1.0) is True
        assert sampler.chance(0) is False

    def test_default_source_is_system_random(self):
        # Arrange & Act
        sampler = WeightedSampler()

        # Assert
        assert isinstance(sampler.rng, random.SystemRandom)
