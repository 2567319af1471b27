"""Battle rule: round outcome and its effect on inventories.

resolve() is a pure function of the two committed unit indices. Both peers
evaluate it from their own point of view, so one side's WIN is always the
other side's LOSS.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from skirmish.battle.units import NUM_UNIT_TYPES, Inventory
from skirmish.config import (
    MAX_CONSECUTIVE_DRAWS,
    NUMBER_OF_FIGHTS,
    RESULT_LABELS,
    STARTING_UNITS,
    UNIT_NAMES,
)


class Outcome(IntEnum):
    """Result of one round for the evaluating side."""
    DRAW = 0
    WIN = 1    # my unit defeated theirs
    LOSS = 2

    @property
    def label(self) -> str:
        return RESULT_LABELS[self]


class RuleSet(Enum):
    """Which depletion policy a match is played under."""
    FIXED_COUNT = "fixed-count"  # outcomes tallied only, N rounds
    DEPLETING = "depleting"      # the loser of a round loses one unit


@dataclass(frozen=True, slots=True)
class MatchConfig:
    """Per-match rule choices. Both peers must agree on these out of band,
    except the starting units, which the listener can announce.

    Attributes:
        rules: Depletion policy, which also selects the termination predicate.
        rounds: Round count in FIXED_COUNT mode.
        max_draws: Consecutive draws that end a DEPLETING match (stalemate).
        starting_units: Starting count per unit type for both sides.
        negotiate_units: Whether the listener announces starting units and
            the connector adopts them.
        tie_is_failure: Score equal remaining totals as FAILURE (else DRAW).
        strict_labels: Treat a display name that does not match its unit
            index as a malformed commit instead of just logging it.
    """
    rules: RuleSet = RuleSet.FIXED_COUNT
    rounds: int = NUMBER_OF_FIGHTS
    max_draws: int = MAX_CONSECUTIVE_DRAWS
    starting_units: tuple[int, int, int] = STARTING_UNITS
    negotiate_units: bool = False
    tie_is_failure: bool = True
    strict_labels: bool = False

    def __post_init__(self) -> None:
        if len(self.starting_units) != NUM_UNIT_TYPES:
            raise ValueError(
                f"Expected {NUM_UNIT_TYPES} starting unit counts, got {len(self.starting_units)}")
        if any(c < 0 for c in self.starting_units):
            raise ValueError(f"Starting units must be non-negative: {self.starting_units}")
        if self.rounds < 0:
            raise ValueError(f"Round count must be non-negative: {self.rounds}")
        if self.max_draws < 1:
            raise ValueError(f"Draw limit must be at least 1: {self.max_draws}")

    @classmethod
    def fixed_count(cls, rounds: int = NUMBER_OF_FIGHTS, **kwargs) -> MatchConfig:
        return cls(rules=RuleSet.FIXED_COUNT, rounds=rounds, **kwargs)

    @classmethod
    def depleting(cls, starting_units: tuple[int, int, int] = STARTING_UNITS,
                  **kwargs) -> MatchConfig:
        kwargs.setdefault("negotiate_units", True)
        return cls(rules=RuleSet.DEPLETING, starting_units=starting_units, **kwargs)


class InventoryGuardViolation(AssertionError):
    """A unit was committed that its owner has no more of.

    This is a contract breach by a program (ours or the peer's), not a
    condition a player can recover from.
    """


def resolve(mine: int, theirs: int) -> Outcome:
    """Outcome of committing ``mine`` against ``theirs``."""
    return Outcome((NUM_UNIT_TYPES + theirs - mine) % NUM_UNIT_TYPES)


def check_commit(inventory: Inventory, unit: int, side: str) -> None:
    """Raise InventoryGuardViolation if ``unit`` is exhausted in ``inventory``."""
    if inventory[unit] <= 0:
        raise InventoryGuardViolation(
            f"{side} committed {UNIT_NAMES[unit]} with none left {inventory.counts}")


def apply_outcome(
    outcome: Outcome,
    mine: int,
    theirs: int,
    my_units: Inventory,
    peer_units: Inventory,
) -> None:
    """Apply the depleting rule: the losing side's committed unit drops by one."""
    if outcome == Outcome.WIN:
        peer_units.decrement(theirs)
    elif outcome == Outcome.LOSS:
        my_units.decrement(mine)
