"""Console text for rounds, final tallies, armies and the roster.

The wording matches what other implementations of this game print, so logs
from both ends of a match can be compared line by line.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from skirmish.battle.rules import Outcome
from skirmish.battle.units import Inventory
from skirmish.config import UNIT_NAMES

if TYPE_CHECKING:
    from skirmish.battle.match import MatchResult
    from skirmish.battle.session import RoundRecord


def format_round(record: RoundRecord, peer_name: str) -> str:
    """e.g. '  Round 3 against bob: BOMBER vs TIEFIGHTER: Failure :-('"""
    return (f"  Round {record.round} against {peer_name}: "
            f"{UNIT_NAMES[record.mine.unit]} vs {record.theirs.label}: "
            f"{record.outcome.label}")


def format_army(inventory: Inventory) -> str:
    """e.g. '3 TIEFIGHTER, 2 BOMBER, Remaining: 5 ships'"""
    parts = [f"{count} {UNIT_NAMES[unit]}, "
             for unit, count in enumerate(inventory.counts) if count > 0]
    return "".join(parts) + f"Remaining: {inventory.total()} ships"


def format_summary(result: MatchResult) -> list[str]:
    """Final lines for one match: tallies and end status, or the abort reason."""
    if result.abnormal:
        return [f"Battle against {result.peer_name} aborted after "
                f"{result.rounds} rounds: {result.error}"]
    lines = [
        f"Battle against {result.peer_name}: "
        f"{result.tallies[outcome]}/{result.rounds} {outcome.label}"
        for outcome in Outcome
    ]
    end = f"End battle status against {result.peer_name}: {result.status.name}"
    if result.my_units is not None and result.peer_units is not None:
        end += f", ({format_army(result.my_units)} vs {format_army(result.peer_units)})"
    lines.append(end)
    return lines


def format_roster(snapshot: dict[str, int]) -> list[str]:
    """One 'host : matches' line per opponent, sorted by host."""
    return [f"{who} : {count}" for who, count in sorted(snapshot.items())]
