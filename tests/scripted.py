"""Scripted peers for tests that do not need a real socket.

Usage:
    channel = scripted_channel("bob", commits=[0, 2, 1])
    session = Session(channel, "me", FixedPick(1), MatchConfig.fixed_count(3), False)
"""

from __future__ import annotations

from skirmish.config import UNIT_NAMES
from skirmish.networking.channel import MockChannel


def commit_tokens(unit: int, label: str | None = None) -> list[str]:
    """The two lines a well-behaved peer sends for one round."""
    return [str(unit), UNIT_NAMES[unit] if label is None else label]


def scripted_channel(
    name: str = "peer",
    commits: tuple[int, ...] | list[int] = (),
    counts: tuple[int, int, int] | None = None,
) -> MockChannel:
    """A MockChannel pre-loaded with everything a peer would send, in order."""
    tokens = [name]
    if counts is not None:
        tokens.extend(str(c) for c in counts)
    for unit in commits:
        tokens.extend(commit_tokens(unit))
    return MockChannel(tokens)
