"""
Unit tests for CompanionService.
"""

import pytest

from arise.domain.models import BossDefinition, CharacterState, Companion, HunterRank, RewardKind
from arise.modules.companions import CompanionService
from tests.conftest import get_event_payload


@pytest.fixture
def companions(content, rng):
    return CompanionService(content, rng)


@pytest.fixture
def igris_boss():
    return BossDefinition(index=3, name="Igris the Bloodred", companion="Igris")


@pytest.mark.unit
class TestExtraction:
    """Turning defeated bosses into companions."""

    def test_extract_adds_companion(self, companions, igris_boss, state, now):
        # Arrange & Act
        result = companions.extract(state, igris_boss, floor=40, rank=HunterRank.B, now=now)

        # Assert
        assert result.companion.id == "igris"
        assert result.companion.rank is HunterRank.B
        assert result.companion.bonus_stat == "strength"
        assert result.companion.bonus_value == 100
        assert result.companion.source_floor == 40
        assert result.state.companions == (result.companion,)
        payload = get_event_payload(result.events, RewardKind.COMPANION_EXTRACTED)
        assert payload["name"] == "Igris"
        assert payload["boss"] == "Igris the Bloodred"

    def test_extraction_is_idempotent_by_name(self, companions, igris_boss, state, now):
        # Arrange
        first = companions.extract(state, igris_boss, floor=40, rank=HunterRank.B, now=now)

        # Act
        second = companions.extract(first.state, igris_boss, floor=40, rank=HunterRank.B, now=now)

        # Assert
        assert second.companion is None
        assert second.events == ()
        assert second.state is first.state
        assert len(second.state.companions) == 1

    def test_boss_without_companion_yields_nothing(self, companions, state, now):
        # Arrange
        boss = BossDefinition(index=13, name="Void Walker")

        # Act
        result = companions.extract(state, boss, floor=140, rank=HunterRank.SS, now=now)

        # Assert
        assert result.companion is None
        assert result.state is state


@pytest.mark.unit
class TestEquip:
    """Equipping companions."""

    def test_equip_owned_companion(self, companions):
        # Arrange
        state = CharacterState(companions=(Companion(id="igris", name="Igris"),))

        # Act & Assert
        assert companions.equip_companion(state, "igris").equipped_companion_id == "igris"

    def test_unknown_companion_is_a_no_op(self, companions, state):
        # Arrange & Act & Assert
        assert companions.equip_companion(state, "beru") is state

    def test_none_unequips(self, companions):
        # Arrange
        state = CharacterState(
            companions=(Companion(id="igris", name="Igris"),),
            equipped_companion_id="igris",
        )

        # Act & Assert
        assert companions.equip_companion(state, None).equipped_companion_id is None


@pytest.mark.unit
class TestEvolution:
    """Evolution experience from dungeon victories."""

    def test_unequipped_companions_gain_nothing(self, companions):
        # Arrange
        state = CharacterState(companions=(Companion(id="igris", name="Igris"),))

        # Act & Assert
        assert companions.grant_evolution_xp(state, 10000) is state

    def test_share_accumulates_below_threshold(self, companions):
        # Arrange
        state = CharacterState(
            companions=(Companion(id="igris", name="Igris", bonus_value=10),),
            equipped_companion_id="igris",
        )

        # Act
        updated = companions.grant_evolution_xp(state, 1000)
        igris = updated.find_companion("igris")

        # Assert
        assert igris.evolution_xp == 200
        assert igris.evolution_level == 0
        assert igris.bonus_value == 10

    def test_one_grant_can_cross_both_thresholds(self, companions):
        # Arrange
        state = CharacterState(
            companions=(Companion(id="igris", name="Igris", bonus_value=10),),
            equipped_companion_id="igris",
        )

        # Act
        updated = companions.grant_evolution_xp(state, 10000)
        igris = updated.find_companion("igris")

        # Assert
        assert igris.evolution_xp == 2000
        assert igris.evolution_level == 2
        assert igris.bonus_value == 20

    def test_evolution_stops_at_last_threshold(self, companions):
        # Arrange
        state = CharacterState(
            companions=(
                Companion(
                    id="igris",
                    name="Igris",
                    bonus_value=20,
                    evolution_level=2,
                    evolution_xp=2000,
                ),
            ),
            equipped_companion_id="igris",
        )

        # Act
        igris = companions.grant_evolution_xp(state, 50000).find_companion("igris")

        # Assert
        assert igris.evolution_xp == 12000
        assert igris.evolution_level == 2
        assert igris.bonus_value == 20
