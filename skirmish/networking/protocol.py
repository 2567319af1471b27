"""Wire protocol definitions.

The protocol is line-oriented: every token travels as one newline-terminated
line of UTF-8 text. A match on the wire looks like:

    A -> B: <nameA>            B -> A: <nameB>          (both write first)
    listener -> connector: <count0> <count1> <count2>  (negotiated mode only)
    per round, both ways:  <unitIndex> <unitDisplayName>

The unit index is authoritative; the display name is advisory and only logged.
"""

from __future__ import annotations

from dataclasses import dataclass

from skirmish.config import UNIT_NAMES


class ProtocolError(Exception):
    """The peer sent something this side cannot make sense of."""


class MalformedCommit(ProtocolError, ValueError):
    """A token that should be a unit index (or a count) failed to parse."""


class UnexpectedEndOfStream(ProtocolError, EOFError):
    """The peer closed the stream before sending an expected token."""


@dataclass(frozen=True, slots=True)
class RoundCommit:
    """One side's revealed unit for one round.

    Attributes:
        unit: Unit index in [0, 3). Decides the outcome.
        label: Display name sent alongside. Opaque, never used for control.
    """
    unit: int
    label: str

    @property
    def is_consistent(self) -> bool:
        """Whether the label matches the unit's display name."""
        return self.label == UNIT_NAMES[self.unit]

    def tokens(self) -> tuple[str, str]:
        return (str(int(self.unit)), self.label)
