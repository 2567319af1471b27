"""Match controller: the round loop and the final verdict.

Manages the match lifecycle: NOT_STARTED -> IN_PROGRESS -> FINISHED.
Runs Session.play_round() until the termination predicate of the configured
rule set holds, then scores the match. Protocol failures end the match as
ABNORMAL so that "the protocol broke" is never confused with "we lost".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto

from skirmish.battle.rules import InventoryGuardViolation, MatchConfig, Outcome, RuleSet
from skirmish.battle.session import RoundRecord, Session
from skirmish.battle.strategy import MoveStrategy
from skirmish.battle.units import Inventory
from skirmish.networking.channel import Channel
from skirmish.networking.protocol import ProtocolError
from skirmish.report import format_round

logger = logging.getLogger(__name__)


class MatchPhase(Enum):
    NOT_STARTED = auto()
    IN_PROGRESS = auto()
    FINISHED = auto()


class EndStatus(Enum):
    SUCCESS = auto()
    FAILURE = auto()
    DRAW = auto()       # only when ties are not scored as failures
    ABNORMAL = auto()   # the protocol broke; no score


# Errors that end a match abnormally. OSError covers resets and broken pipes.
_ABORTING_ERRORS = (ProtocolError, InventoryGuardViolation, OSError)


@dataclass(slots=True)
class MatchResult:
    """Terminal summary of one match.

    Attributes:
        peer_name: Opponent's self-reported name ("?" if the handshake failed).
        status: How the match ended.
        tallies: Round count per Outcome.
        rounds: Rounds completed.
        my_units: Our final inventory (None if the handshake failed).
        peer_units: The peer's final inventory as observed.
        error: Why the match ended abnormally, if it did.
    """
    peer_name: str
    status: EndStatus
    tallies: dict[Outcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in Outcome})
    rounds: int = 0
    my_units: Inventory | None = None
    peer_units: Inventory | None = None
    error: str | None = None

    @property
    def wins(self) -> int:
        return self.tallies[Outcome.WIN]

    @property
    def losses(self) -> int:
        return self.tallies[Outcome.LOSS]

    @property
    def draws(self) -> int:
        return self.tallies[Outcome.DRAW]

    @property
    def net_success(self) -> bool:
        """More rounds won than lost. Always False for an aborted match."""
        return self.status != EndStatus.ABNORMAL and self.wins > self.losses

    @property
    def abnormal(self) -> bool:
        return self.status == EndStatus.ABNORMAL


class MatchController:
    """Drives one Session to the end of its match."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._config = session.config
        self._tallies: dict[Outcome, int] = {outcome: 0 for outcome in Outcome}
        self.phase = MatchPhase.NOT_STARTED

    @property
    def session(self) -> Session:
        return self._session

    def run(self) -> MatchResult:
        """Play rounds until the match ends. Never raises for protocol errors."""
        self.phase = MatchPhase.IN_PROGRESS
        try:
            while not self.is_finished():
                record = self._session.play_round()
                self._tallies[record.outcome] += 1
                self._log_round(record)
        except _ABORTING_ERRORS as e:
            self.phase = MatchPhase.FINISHED
            logger.error("Match against %s aborted in round %d: %s",
                         self._session.peer_name, self._session.round + 1, e)
            return self._result(EndStatus.ABNORMAL, error=_describe(e))
        self.phase = MatchPhase.FINISHED
        return self._result(self.verdict())

    def is_finished(self) -> bool:
        """Termination predicate for the configured rule set."""
        s = self._session
        if self._config.rules == RuleSet.FIXED_COUNT:
            return s.round >= self._config.rounds
        if s.my_units.exhausted() >= 2 or s.peer_units.exhausted() >= 2:
            return True
        return s.draw_streak >= self._config.max_draws

    def verdict(self) -> EndStatus:
        """Score a match that ended normally."""
        if self._config.rules == RuleSet.FIXED_COUNT:
            wins, losses = self._tallies[Outcome.WIN], self._tallies[Outcome.LOSS]
            return EndStatus.SUCCESS if wins > losses else EndStatus.FAILURE
        mine = self._session.my_units.total()
        theirs = self._session.peer_units.total()
        if mine > theirs:
            return EndStatus.SUCCESS
        if mine == theirs and not self._config.tie_is_failure:
            return EndStatus.DRAW
        return EndStatus.FAILURE

    def _log_round(self, record: RoundRecord) -> None:
        logger.info("%s", format_round(record, self._session.peer_name))

    def _result(self, status: EndStatus, error: str | None = None) -> MatchResult:
        s = self._session
        return MatchResult(
            peer_name=s.peer_name,
            status=status,
            tallies=dict(self._tallies),
            rounds=s.round,
            my_units=s.my_units.copy(),
            peer_units=s.peer_units.copy(),
            error=error,
        )


def _describe(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


def play_match(
    channel: Channel,
    name: str,
    strategy: MoveStrategy,
    config: MatchConfig,
    authoritative: bool,
) -> MatchResult:
    """Handshake, play and score one match, then close the channel.

    Handshake failures are reported like any other protocol failure.
    """
    try:
        try:
            session = Session(channel, name, strategy, config, authoritative)
        except _ABORTING_ERRORS as e:
            logger.error("Handshake with %s failed: %s", channel.get_peer_address(), e)
            return MatchResult(peer_name="?", status=EndStatus.ABNORMAL, error=_describe(e))
        return MatchController(session).run()
    finally:
        channel.close()
