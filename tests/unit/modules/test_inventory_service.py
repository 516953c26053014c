"""
Unit tests for InventoryService.

Tests slot equipping, enhancement cost and pity, salvage, bulk salvage and
shard purchases.
"""

import pytest

from arise.domain.models import CharacterState, Currencies, Equipment, Rarity, RewardKind, StatRoll
from arise.modules.inventory import InventoryService
from tests.conftest import get_event_payload


@pytest.fixture
def inventory(content, rng):
    return InventoryService(content, rng)


def _item(item_id, slot="weapon", rarity=Rarity.EPIC, equipped=False, level=0, **stats):
    stats = stats or {"strength": 3, "agility": 2}
    return Equipment(
        id=item_id,
        name=item_id,
        slot=slot,
        rarity=rarity,
        enhancement_level=level,
        stats=tuple(StatRoll(stat, value) for stat, value in stats.items()),
        equipped=equipped,
    )


def _state(*items, shards=0):
    return CharacterState(equipment=items, currencies=Currencies(shards=shards))


@pytest.mark.unit
class TestEquipping:
    """One item per slot."""

    def test_equip_swaps_item_in_same_slot(self, inventory):
        # Arrange
        state = _state(
            _item("old_sword", equipped=True),
            _item("new_sword"),
            _item("boots", slot="boots", equipped=True),
        )

        # Act
        updated = inventory.equip_item(state, "new_sword")

        # Assert
        assert [e.id for e in updated.equipped_items()] == ["new_sword", "boots"]

    def test_unknown_item_is_a_no_op(self, inventory):
        # Arrange
        state = _state(_item("sword"))

        # Act & Assert
        assert inventory.equip_item(state, "axe") is state

    def test_unequip(self, inventory):
        # Arrange
        state = _state(_item("sword", equipped=True))

        # Act
        updated = inventory.unequip_item(state, "sword")

        # Assert
        assert updated.equipped_items() == ()
        assert inventory.unequip_item(updated, "sword") is updated


@pytest.mark.unit
class TestEnhancement:
    """Enhancing items with shards."""

    @pytest.mark.parametrize("level,chance", [(0, 1.0), (4, 1.0), (5, 0.8), (10, 0.5), (15, 0.3)])
    def test_base_chance_bands(self, inventory, level, chance):
        # Arrange & Act & Assert
        assert inventory.base_chance(level) == chance

    def test_successful_enhancement(self, inventory, mocker):
        # Arrange
        mocker.patch.object(inventory.sampler, "chance", return_value=True)
        state = _state(_item("sword"), shards=1000)

        # Act
        result = inventory.enhance_item(state, "sword", levels=2)
        sword = result.state.find_item("sword")

        # Assert
        assert result.attempts == 2
        assert result.successes == 2
        assert result.cost == 300
        assert result.state.currencies.shards == 700
        assert sword.enhancement_level == 2
        assert sword.consecutive_failures == 0
        assert {roll.stat: roll.value for roll in sword.stats} == {"strength": 5, "agility": 4}

    def test_failed_attempts_still_cost_shards(self, inventory, mocker):
        # Arrange
        mocker.patch.object(inventory.sampler, "chance", return_value=False)
        state = _state(_item("sword"), shards=1000)

        # Act
        result = inventory.enhance_item(state, "sword", levels=2)
        sword = result.state.find_item("sword")

        # Assert
        assert result.failures == 2
        assert result.state.currencies.shards == 700
        assert sword.enhancement_level == 0
        assert sword.consecutive_failures == 2
        assert sword.stats == state.find_item("sword").stats

    def test_failures_raise_chance_until_a_success(self, inventory, mocker):
        # Arrange
        chance = mocker.patch.object(inventory.sampler, "chance", side_effect=[False, False, True])
        state = _state(_item("ring", slot="ring", rarity=Rarity.MYTHIC, level=10), shards=5000)

        # Act
        result = inventory.enhance_item(state, "ring", levels=3)

        # Assert
        probabilities = [call.args[0] for call in chance.call_args_list]
        assert probabilities == pytest.approx([0.5, 0.65, 0.8])
        assert result.cost == 3600
        assert result.state.find_item("ring").enhancement_level == 11
        assert result.state.find_item("ring").consecutive_failures == 0

    def test_chance_is_capped_even_at_level_zero(self, inventory, mocker):
        # Arrange
        chance = mocker.patch.object(inventory.sampler, "chance", return_value=True)
        state = _state(_item("sword"), shards=1000)

        # Act
        inventory.enhance_item(state, "sword")

        # Assert
        assert chance.call_args.args[0] == pytest.approx(0.95)

    def test_attempts_are_clamped_to_rarity_max(self, inventory, mocker):
        # Arrange
        mocker.patch.object(inventory.sampler, "chance", return_value=True)
        state = _state(_item("cap", slot="helmet", rarity=Rarity.COMMON, level=2), shards=1000)

        # Act
        result = inventory.enhance_item(state, "cap", levels=5)

        # Assert
        assert result.attempts == 1
        assert result.state.find_item("cap").enhancement_level == 3

    def test_max_level_item_is_a_no_op(self, inventory):
        # Arrange
        state = _state(_item("cap", slot="helmet", rarity=Rarity.COMMON, level=3), shards=1000)

        # Act
        result = inventory.enhance_item(state, "cap")

        # Assert
        assert result.attempts == 0
        assert result.state is state

    def test_not_enough_shards_is_a_no_op(self, inventory):
        # Arrange
        state = _state(_item("sword"), shards=99)

        # Act
        result = inventory.enhance_item(state, "sword")

        # Assert
        assert result.attempts == 0
        assert result.state is state


@pytest.mark.unit
class TestSalvage:
    """Turning items back into shards."""

    def test_salvage_value_includes_enhancement(self, inventory):
        # Arrange & Act & Assert
        assert inventory.salvage_value(_item("axe", rarity=Rarity.RARE, level=2)) == 70

    def test_salvage_removes_item_and_pays_shards(self, inventory):
        # Arrange
        state = _state(_item("axe", rarity=Rarity.RARE), shards=10)

        # Act
        updated = inventory.salvage_item(state, "axe")

        # Assert
        assert updated.equipment == ()
        assert updated.currencies.shards == 40

    def test_equipped_item_is_never_salvaged(self, inventory):
        # Arrange
        state = _state(_item("axe", equipped=True))

        # Act & Assert
        assert inventory.salvage_item(state, "axe") is state

    def test_bulk_salvage_keeps_equipped_and_high_rarity(self, inventory):
        # Arrange
        state = _state(
            _item("c1", rarity=Rarity.COMMON),
            _item("u1", slot="boots", rarity=Rarity.UNCOMMON),
            _item("c2", slot="ring", rarity=Rarity.COMMON, equipped=True),
            _item("r1", slot="helmet", rarity=Rarity.RARE),
        )

        # Act
        updated = inventory.bulk_salvage(state, "rare")

        # Assert
        assert sorted(e.id for e in updated.equipment) == ["c2", "r1"]
        assert updated.currencies.shards == 5 + 15

    def test_bulk_salvage_with_nothing_eligible_is_a_no_op(self, inventory):
        # Arrange
        state = _state(_item("e1"))

        # Act & Assert
        assert inventory.bulk_salvage(state, Rarity.COMMON) is state


@pytest.mark.unit
class TestPurchase:
    """Buying generated equipment."""

    def test_purchase_generates_item(self, inventory, now):
        # Arrange
        state = _state(shards=500)

        # Act
        outcome = inventory.purchase_equipment(state, 300, now, rarity="epic")
        item = outcome.state.equipment[0]

        # Assert
        assert item.rarity is Rarity.EPIC
        assert item.equipped is False
        assert outcome.state.currencies.shards == 200
        payload = get_event_payload(outcome.events, RewardKind.ITEM_DROP)
        assert payload["item_id"] == item.id
        assert payload["source"] == "purchase"

    def test_unaffordable_purchase_is_a_no_op(self, inventory, now):
        # Arrange
        state = _state(shards=100)

        # Act
        outcome = inventory.purchase_equipment(state, 300, now)

        # Assert
        assert outcome.state is state
        assert outcome.events == ()
