"""Session: one match over one connection.

Owns the channel, both inventories (ours, and our belief about the peer's),
the peer's self-reported name and the per-match counters. Constructing a
Session performs the handshake; play_round() then exchanges one commit each
way and applies the battle rule.

ORDERING RULE: every step writes and flushes before it blocks on a read.
Both peers follow the same order, so neither can end up waiting on output
the other has not sent yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from skirmish.battle.rules import (
    MatchConfig,
    Outcome,
    RuleSet,
    apply_outcome,
    check_commit,
    resolve,
)
from skirmish.battle.strategy import MoveStrategy
from skirmish.battle.units import NUM_UNIT_TYPES, Inventory
from skirmish.config import UNIT_NAMES
from skirmish.networking.channel import Channel
from skirmish.networking.protocol import (
    MalformedCommit,
    RoundCommit,
    UnexpectedEndOfStream,
)
from skirmish.networking.serialization import parse_count, parse_unit_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoundRecord:
    """Everything observed in one completed round."""
    round: int
    mine: RoundCommit
    theirs: RoundCommit
    outcome: Outcome
    peeked: bool = False   # the peer's commit was read before ours was sent


class Session:
    """Protocol state for one connection.

    Attributes:
        channel: The token stream to the peer.
        name: Our display name.
        peer_name: The peer's display name (untrusted, log-only).
        authoritative: Whether we announce the starting units.
        my_units: Our remaining units.
        peer_units: The peer's remaining units as we have observed them.
        round: Number of completed rounds.
        draw_streak: Consecutive draws up to and including the last round.
        history: Completed rounds, oldest first.
    """

    def __init__(
        self,
        channel: Channel,
        name: str,
        strategy: MoveStrategy,
        config: MatchConfig,
        authoritative: bool,
    ) -> None:
        self.channel = channel
        self.name = name
        self.config = config
        self.authoritative = authoritative
        self._strategy = strategy

        self.round = 0
        self.draw_streak = 0
        self.history: list[RoundRecord] = []

        self.peer_name = self._exchange_names()

        self.my_units = Inventory(config.starting_units)
        self.peer_units = Inventory(config.starting_units)
        if config.negotiate_units:
            self._negotiate_units()

    @property
    def rules(self) -> RuleSet:
        return self.config.rules

    @property
    def strategy(self) -> MoveStrategy:
        return self._strategy

    # --- Handshake ---

    def _exchange_names(self) -> str:
        self.channel.write_token(self.name)
        peer_name = self.channel.read_token()
        if peer_name is None:
            raise UnexpectedEndOfStream("Peer closed the stream before sending its name")
        return peer_name

    def _negotiate_units(self) -> None:
        """The authoritative side announces starting units; the other adopts them."""
        if self.authoritative:
            self.channel.write_tokens(*(str(c) for c in self.my_units.counts))
            return
        counts = [parse_count(self._read_required("unit count"))
                  for _ in range(NUM_UNIT_TYPES)]
        self.my_units = Inventory(counts)
        self.peer_units = Inventory(counts)
        logger.debug("Adopted starting units %s from %s", counts, self.peer_name)

    # --- Rounds ---

    def read_peer_unit(self) -> int:
        """Read and validate the peer's unit index for the current round."""
        return parse_unit_index(self._read_required("unit index"))

    def play_round(self) -> RoundRecord:
        """Exchange one commit each way and apply the outcome.

        A round is atomic: any error leaves the session unusable and
        propagates to the caller.
        """
        decision = self._strategy.decide(self)
        mine = RoundCommit(int(decision.unit), decision.label or UNIT_NAMES[decision.unit])
        depleting = self.rules == RuleSet.DEPLETING
        if depleting:
            check_commit(self.my_units, mine.unit, "We")

        self.channel.write_tokens(*mine.tokens())

        peeked = decision.peer_unit is not None
        peer_unit = decision.peer_unit if peeked else self.read_peer_unit()
        theirs = RoundCommit(peer_unit, self._read_required("unit name"))
        if not theirs.is_consistent:
            if self.config.strict_labels:
                raise MalformedCommit(
                    f"Label {theirs.label!r} does not match unit index {theirs.unit}")
            logger.warning("%s sent unit %d labelled %r",
                           self.peer_name, theirs.unit, theirs.label)
        if depleting:
            check_commit(self.peer_units, theirs.unit, self.peer_name)

        outcome = resolve(mine.unit, theirs.unit)
        if depleting:
            apply_outcome(outcome, mine.unit, theirs.unit, self.my_units, self.peer_units)
        if outcome == Outcome.DRAW:
            self.draw_streak += 1
        else:
            self.draw_streak = 0

        self.round += 1
        record = RoundRecord(self.round, mine, theirs, outcome, peeked)
        self.history.append(record)
        return record

    def _read_required(self, what: str) -> str:
        token = self.channel.read_token()
        if token is None:
            raise UnexpectedEndOfStream(
                f"Peer closed the stream while we waited for its {what} "
                f"(round {self.round + 1})")
        return token
