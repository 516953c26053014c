"""
Unit Tests for Character Domain Models
======================================

Test Coverage
-------------
- Rarity and rank ordering, tolerant parsing
- Value object validation (BaseStats, Equipment, Mission)
- CharacterState normalization and tolerant deserialization
- Serialization round trip of a populated state

Testing Strategy
----------------
- Unit tests (fast, no I/O)
- AAA pattern (Arrange, Act, Assert)
"""

from datetime import date, datetime, timezone

import pytest

from arise.domain.models import (
    DEFAULT_FRAME_ID,
    BaseStats,
    CharacterState,
    DomainValidationError,
    Equipment,
    HunterRank,
    Mission,
    Rarity,
    RewardEvent,
    RewardKind,
    StatRoll,
)


# ============================================================================
# ORDERED ENUMS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestRarity:
    """Test the rarity total order."""

    def test_rarities_are_ordered_lowest_first(self):
        # Arrange
        ordered = list(Rarity)

        # Act
        orders = [r.order for r in ordered]

        # Assert
        assert ordered[0] is Rarity.COMMON
        assert ordered[-1] is Rarity.GODLIKE
        assert orders == sorted(orders)

    def test_at_least_compares_by_tier(self):
        # Arrange & Act & Assert
        assert Rarity.EPIC.at_least(Rarity.RARE)
        assert Rarity.EPIC.at_least(Rarity.EPIC)
        assert not Rarity.RARE.at_least(Rarity.EPIC)

    def test_unknown_rarity_degrades_to_lowest(self):
        # Arrange & Act
        parsed = Rarity.from_string("ultra-shiny")

        # Assert
        assert parsed is Rarity.COMMON

    def test_from_string_is_case_insensitive(self):
        # Arrange & Act & Assert
        assert Rarity.from_string(" Legendary ") is Rarity.LEGENDARY


@pytest.mark.unit
@pytest.mark.domain
class TestHunterRank:
    """Test the Hunter rank order."""

    def test_ranks_ordered_e_to_sss(self):
        # Arrange & Act
        names = [r.value for r in HunterRank]

        # Assert
        assert names == ["E", "D", "C", "B", "A", "S", "SS", "SSS"]

    def test_unknown_rank_degrades_to_e(self):
        # Arrange & Act & Assert
        assert HunterRank.from_string("Z") is HunterRank.E
        assert HunterRank.from_string("ss") is HunterRank.SS

    def test_at_least(self):
        # Arrange & Act & Assert
        assert HunterRank.S.at_least(HunterRank.A)
        assert not HunterRank.B.at_least(HunterRank.A)


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestBaseStats:
    """Test the six-stat block."""

    def test_defaults_to_ten_each(self):
        # Arrange & Act
        stats = BaseStats()

        # Assert
        assert stats.total == 60

    def test_negative_stat_is_rejected(self):
        # Arrange & Act & Assert
        with pytest.raises(DomainValidationError):
            BaseStats(strength=-1)

    def test_with_bonuses_ignores_unknown_stats(self):
        # Arrange
        stats = BaseStats()

        # Act
        boosted = stats.with_bonuses({"strength": 5, "charisma": 99})

        # Assert
        assert boosted.strength == 15
        assert boosted.total == 65
        assert stats.strength == 10

    def test_with_all_increased(self):
        # Arrange & Act
        stats = BaseStats().with_all_increased(1)

        # Assert
        assert all(value == 11 for value in stats.as_dict().values())


@pytest.mark.unit
@pytest.mark.domain
class TestEquipment:
    """Test Equipment validation."""

    def test_duplicate_stat_kinds_are_rejected(self):
        # Arrange & Act & Assert
        with pytest.raises(DomainValidationError) as exc_info:
            Equipment(
                id="eq_1",
                name="Iron Blade",
                slot="weapon",
                stats=(StatRoll("strength", 2), StatRoll("strength", 3)),
            )

        assert exc_info.value.field == "stats"

    def test_stat_total_sums_rolls(self):
        # Arrange
        item = Equipment(
            id="eq_1",
            name="Iron Blade",
            slot="weapon",
            rarity=Rarity.RARE,
            stats=(StatRoll("strength", 2), StatRoll("agility", 1)),
        )

        # Act & Assert
        assert item.stat_total == 3
        assert item.stat_bonuses() == {"strength": 2, "agility": 1}

    def test_zero_value_roll_is_kept(self):
        # Arrange & Act
        item = Equipment(id="eq_1", name="Rusty Helm", slot="helmet", stats=(StatRoll("vitality", 0),))

        # Assert
        assert len(item.stats) == 1

    def test_from_dict_without_id_returns_none(self):
        # Arrange & Act & Assert
        assert Equipment.from_dict({"slot": "weapon"}) is None

    def test_from_dict_drops_duplicate_rolls(self):
        # Arrange
        data = {
            "id": "eq_9",
            "slot": "ring",
            "rarity": "mystery",
            "stats": [
                {"stat": "fortune", "value": 3},
                {"stat": "fortune", "value": 7},
                "garbage",
            ],
        }

        # Act
        item = Equipment.from_dict(data)

        # Assert
        assert item.rarity is Rarity.COMMON
        assert item.stats == (StatRoll("fortune", 3),)


@pytest.mark.unit
@pytest.mark.domain
class TestMission:
    """Test mission schedules."""

    def test_empty_schedule_runs_every_day(self):
        # Arrange
        mission = Mission(id="walk", title="Walk", xp_reward=50)

        # Act & Assert
        assert mission.is_scheduled_on(date(2025, 3, 12))
        assert mission.is_scheduled_on(date(2025, 3, 15))

    def test_schedule_uses_monday_zero(self):
        # Arrange
        mission = Mission(id="gym", title="Gym", xp_reward=100, days_of_week=(0, 2, 4))

        # Act & Assert
        assert mission.is_scheduled_on(date(2025, 3, 10))  # Monday
        assert not mission.is_scheduled_on(date(2025, 3, 11))  # Tuesday

    def test_invalid_weekday_is_rejected(self):
        # Arrange & Act & Assert
        with pytest.raises(DomainValidationError):
            Mission(id="gym", title="Gym", xp_reward=100, days_of_week=(7,))


# ============================================================================
# CHARACTER STATE
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestCharacterState:
    """Test CharacterState construction and serialization."""

    def test_default_frame_always_unlocked(self):
        # Arrange & Act
        state = CharacterState(unlocked_frame_ids={"lightning"})

        # Assert
        assert DEFAULT_FRAME_ID in state.unlocked_frame_ids
        assert state.equipped_frame_id == DEFAULT_FRAME_ID

    def test_collections_are_normalized(self):
        # Arrange & Act
        state = CharacterState(cleared_floors=[1, 2, 2], passive_levels={"iron_muscle": 1})

        # Assert
        assert state.cleared_floors == frozenset({1, 2})
        with pytest.raises(TypeError):
            state.passive_levels["iron_muscle"] = 5

    def test_level_must_be_positive(self):
        # Arrange & Act & Assert
        with pytest.raises(DomainValidationError):
            CharacterState(level=0)

    def test_highest_cleared_floor(self):
        # Arrange & Act & Assert
        assert CharacterState().highest_cleared_floor == 0
        assert CharacterState(cleared_floors={3, 10, 7}).highest_cleared_floor == 10

    def test_from_dict_defaults_missing_fields(self):
        # Arrange & Act
        state = CharacterState.from_dict({"level": 3})

        # Assert
        assert state.level == 3
        assert state.xp == 0
        assert state.stats == BaseStats()
        assert state.equipped_frame_id == DEFAULT_FRAME_ID

    def test_from_dict_tolerates_garbage(self):
        # Arrange
        data = {
            "level": "not a number",
            "xp": -40,
            "season": {"season_xp": 120, "rank": "???"},
            "companions": [{"name": "Igris"}, "nope", {}],
            "cleared_floors": [5, "x", -1],
        }

        # Act
        state = CharacterState.from_dict(data)

        # Assert
        assert state.level == 1
        assert state.xp == 0
        assert state.season.rank is HunterRank.E
        assert state.cleared_floors == frozenset({5})

    def test_from_dict_none_gives_fresh_state(self):
        # Arrange & Act & Assert
        assert CharacterState.from_dict(None) == CharacterState()

    def test_round_trip_preserves_populated_state(self):
        # Arrange
        state = CharacterState(
            level=7,
            xp=120,
            streak=4,
            last_active_on=date(2025, 3, 11),
            equipped_title_id="first_blood",
            unlocked_title_ids={"first_blood"},
            equipment=(
                Equipment(
                    id="eq_1",
                    name="Iron Blade",
                    slot="weapon",
                    rarity=Rarity.EPIC,
                    enhancement_level=2,
                    stats=(StatRoll("strength", 4),),
                    equipped=True,
                    created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
                ),
            ),
            missions=(Mission(id="gym", title="Gym", xp_reward=150, target_stat="strength"),),
            cleared_floors={1, 2},
        )

        # Act
        restored = CharacterState.from_dict(state.to_dict())

        # Assert
        assert restored == state


@pytest.mark.unit
@pytest.mark.domain
class TestRewardEvent:
    """Test reward event serialization."""

    def test_to_dict_uses_plain_values(self):
        # Arrange
        event = RewardEvent(
            kind=RewardKind.LEVEL_UP,
            payload={"level": 2},
            occurred_at=datetime(2025, 3, 12, tzinfo=timezone.utc),
        )

        # Act
        data = event.to_dict()

        # Assert
        assert data == {
            "kind": "level_up",
            "payload": {"level": 2},
            "occurred_at": "2025-03-12T00:00:00+00:00",
        }
