"""Unit types and inventories.

The three unit types are cyclically dominant: unit i defeats unit (i + 1) % 3
and loses to unit (i + 2) % 3. An Inventory is one side's remaining strength
per unit type.
"""

from __future__ import annotations

from enum import IntEnum

from skirmish.config import UNIT_NAMES


class UnitType(IntEnum):
    TIEFIGHTER = 0
    BOMBER = 1
    DESTROYER = 2

    @property
    def display_name(self) -> str:
        return UNIT_NAMES[self]

    @property
    def beats(self) -> UnitType:
        return UnitType((self + 1) % len(UnitType))

    @property
    def counter(self) -> UnitType:
        """The unit that defeats this one."""
        return UnitType((self + 2) % len(UnitType))


NUM_UNIT_TYPES = len(UnitType)


class Inventory:
    """Remaining count per unit type, indexed by UnitType ordinal.

    Usage:
        inv = Inventory((10, 10, 10))
        inv.decrement(UnitType.BOMBER)
        inv.total()  # 29
    """

    def __init__(self, counts: tuple[int, ...] | list[int]) -> None:
        if len(counts) != NUM_UNIT_TYPES:
            raise ValueError(
                f"Expected {NUM_UNIT_TYPES} unit counts, got {len(counts)}")
        if any(c < 0 for c in counts):
            raise ValueError(f"Unit counts must be non-negative: {counts}")
        self._counts: list[int] = list(counts)

    def __getitem__(self, unit: int) -> int:
        return self._counts[unit]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Inventory):
            return self._counts == other._counts
        if isinstance(other, (tuple, list)):
            return self._counts == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Inventory({tuple(self._counts)})"

    @property
    def counts(self) -> tuple[int, ...]:
        return tuple(self._counts)

    def total(self) -> int:
        return sum(self._counts)

    def available(self) -> list[int]:
        """Unit indices with at least one unit left."""
        return [u for u, c in enumerate(self._counts) if c > 0]

    def exhausted(self) -> int:
        """Number of unit types with nothing left."""
        return sum(1 for c in self._counts if c == 0)

    def decrement(self, unit: int) -> None:
        if self._counts[unit] <= 0:
            raise ValueError(f"No {UNIT_NAMES[unit]} left to lose")
        self._counts[unit] -= 1

    def copy(self) -> Inventory:
        return Inventory(self._counts)
