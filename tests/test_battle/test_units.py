"""Tests for unit types and inventories."""

import pytest

from skirmish.battle.units import NUM_UNIT_TYPES, Inventory, UnitType


class TestUnitType:
    def test_three_types(self):
        assert NUM_UNIT_TYPES == 3
        assert [int(u) for u in UnitType] == [0, 1, 2]

    def test_display_names(self):
        assert UnitType.TIEFIGHTER.display_name == "TIEFIGHTER"
        assert UnitType(2).display_name == "DESTROYER"

    def test_cyclic_dominance(self):
        for unit in UnitType:
            assert unit.beats == (unit + 1) % 3
            assert unit.counter == (unit + 2) % 3
            assert unit.counter.beats == unit


class TestInventory:
    def test_total_and_counts(self):
        inv = Inventory((3, 4, 5))
        assert inv.total() == 12
        assert inv.counts == (3, 4, 5)
        assert inv[1] == 4

    def test_available_and_exhausted(self):
        inv = Inventory((1, 0, 2))
        assert inv.available() == [0, 2]
        assert inv.exhausted() == 1

    def test_decrement(self):
        inv = Inventory((1, 1, 0))
        inv.decrement(1)
        assert inv == (1, 0, 0)
        assert inv.exhausted() == 2

    def test_decrement_exhausted(self):
        inv = Inventory((1, 0, 0))
        with pytest.raises(ValueError):
            inv.decrement(2)

    def test_copy_is_independent(self):
        inv = Inventory((2, 2, 2))
        clone = inv.copy()
        clone.decrement(0)
        assert inv == (2, 2, 2)
        assert clone == (1, 2, 2)

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            Inventory((1, 2))

    def test_negative_count(self):
        with pytest.raises(ValueError):
            Inventory((1, -1, 0))
