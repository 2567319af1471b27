"""Move strategies: which unit to commit next round.

Every strategy implements one capability, decide(), and is chosen by name at
session construction through make_strategy(). Strategies only see the session
they are plugged into; they never share state across matches, so build a
fresh one per match.

The peek-and-counter strategy is the only one that touches the channel: it
looks for a commit the peer already sent (the peer wrote before reading
ours) and, if one is waiting, answers with the unit that beats it.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from skirmish.battle.rules import RuleSet
from skirmish.battle.units import NUM_UNIT_TYPES, UnitType
from skirmish.config import (
    CHEAT_PROBABILITY,
    PEEK_INITIAL_TIMEOUT_MS,
    PEEK_MAX_TIMEOUT_MS,
    PEEK_TIMEOUT_STEP_MS,
    TAUNT_LABEL,
)

if TYPE_CHECKING:
    from skirmish.battle.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Decision:
    """What to commit this round.

    Attributes:
        unit: Unit index to send.
        label: Display name to send instead of the unit's own name, if any.
        peer_unit: The peer's unit index, when it was already read off the
            channel before deciding. The session must not read it again.
    """
    unit: int
    label: str | None = None
    peer_unit: int | None = None


class MoveStrategy(ABC):
    """Decides one commit per round for a Session."""

    name: str = ""

    @abstractmethod
    def decide(self, session: Session) -> Decision:
        ...


class FixedPick(MoveStrategy):
    """Always commits the same unit."""

    name = "fixed"

    def __init__(self, unit: int = UnitType.TIEFIGHTER) -> None:
        if not 0 <= unit < NUM_UNIT_TYPES:
            raise ValueError(f"Unknown unit index: {unit}")
        self._unit = int(unit)

    def decide(self, session: Session) -> Decision:
        return Decision(self._unit)


class RandomPick(MoveStrategy):
    """Uniform pick among units we still have (or all units when nothing depletes)."""

    name = "random"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def pick(self, session: Session) -> int:
        if session.rules == RuleSet.DEPLETING:
            return self._rng.choice(session.my_units.available())
        return self._rng.randrange(NUM_UNIT_TYPES)

    def decide(self, session: Session) -> Decision:
        return Decision(self.pick(session))


class RoundRobinPick(MoveStrategy):
    """Cycles 0, 1, 2, 0, ... by completed round count. Ignores depletion."""

    name = "round-robin"

    def decide(self, session: Session) -> Decision:
        return Decision(session.round % NUM_UNIT_TYPES)


class PeekAndCounter(MoveStrategy):
    """Reads the peer's commit early when it is already waiting.

    Each round, with probability ``cheat_probability``, waits up to the
    current timeout for a peer commit to show up before sending ours:

    - found: read it and commit the unit that beats it.
    - not found: raise the timeout by one step (up to the ceiling) and
      commit a random unit.

    A timeout stuck at the ceiling means the peer never sends first, i.e. it
    holds its commit until ours arrives. That is logged once and, with
    ``taunt`` on, our display name is replaced by a taunt. Neither affects
    scoring.
    """

    name = "peek"

    def __init__(
        self,
        rng: random.Random | None = None,
        cheat_probability: float = CHEAT_PROBABILITY,
        initial_timeout_ms: int = PEEK_INITIAL_TIMEOUT_MS,
        step_ms: int = PEEK_TIMEOUT_STEP_MS,
        max_timeout_ms: int = PEEK_MAX_TIMEOUT_MS,
        taunt: bool = False,
    ) -> None:
        if not 0.0 <= cheat_probability <= 1.0:
            raise ValueError(f"cheat_probability must be in [0, 1]: {cheat_probability}")
        self._rng = rng or random.Random()
        self._fallback = RandomPick(self._rng)
        self._cheat_probability = cheat_probability
        self._timeout_ms = initial_timeout_ms
        self._step_ms = step_ms
        self._max_timeout_ms = max_timeout_ms
        self._taunt = taunt
        self._warned = False
        self.peeks = 0   # rounds where we waited for an early commit
        self.hits = 0    # rounds where one was waiting

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def suspicious(self) -> bool:
        """Whether the timeout has climbed all the way to the ceiling."""
        return self._timeout_ms >= self._max_timeout_ms

    def decide(self, session: Session) -> Decision:
        if self._rng.random() < self._cheat_probability:
            return self.peek(session)
        unit = self._fallback.pick(session)
        return Decision(unit, label=self._label(unit))

    def peek(self, session: Session) -> Decision:
        """Wait for an early peer commit, counter it if it shows up."""
        self.peeks += 1
        if session.channel.wait_for_token(self._timeout_ms / 1000):
            peer_unit = session.read_peer_unit()
            unit = int(UnitType(peer_unit).counter)
            if session.rules == RuleSet.DEPLETING and session.my_units[unit] <= 0:
                unit = self._fallback.pick(session)
            self.hits += 1
            logger.debug("Round %d: %s sent first (%s), answering %s",
                         session.round + 1, session.peer_name,
                         UnitType(peer_unit).name, UnitType(unit).name)
            return Decision(unit, label=self._label(unit), peer_unit=peer_unit)

        self._escalate(session)
        unit = self._fallback.pick(session)
        return Decision(unit, label=self._label(unit))

    def _escalate(self, session: Session) -> None:
        self._timeout_ms = min(self._timeout_ms + self._step_ms, self._max_timeout_ms)
        if self.suspicious and not self._warned:
            self._warned = True
            logger.warning(
                "%s never committed ahead of us within %d ms; "
                "it may be waiting to read our commit first",
                session.peer_name, self._timeout_ms)

    def _label(self, unit: int) -> str | None:
        if self._taunt and self.suspicious:
            return TAUNT_LABEL
        return None


STRATEGIES = ("fixed", "random", "round-robin", "peek")


def make_strategy(
    kind: str,
    unit: int = UnitType.TIEFIGHTER,
    rng: random.Random | None = None,
    cheat_probability: float = CHEAT_PROBABILITY,
    taunt: bool = False,
) -> MoveStrategy:
    """Build a strategy by name (one of STRATEGIES)."""
    if kind == "fixed":
        return FixedPick(unit)
    if kind == "random":
        return RandomPick(rng)
    if kind == "round-robin":
        return RoundRobinPick()
    if kind == "peek":
        return PeekAndCounter(rng, cheat_probability=cheat_probability, taunt=taunt)
    raise ValueError(f"Unknown strategy: {kind!r} (expected one of {STRATEGIES})")
