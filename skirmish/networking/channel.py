"""Token channel interface and mock implementation.

Channel is the seam between a Session and the stream it plays over. The
Session codes against this interface; SocketChannel implements it over a TCP
socket.

A MockChannel is provided so sessions, strategies and matches can be tested
with a scripted peer and no real networking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque


class Channel(ABC):
    """Abstract bidirectional token stream.

    Writes are always flushed before returning, so a side that writes and
    then blocks on a read can never deadlock on its own buffered output.
    """

    @abstractmethod
    def write_tokens(self, *tokens: str) -> None:
        """Send each token as one line, then flush once."""
        ...

    def write_token(self, text: str) -> None:
        """Send a single token and flush."""
        self.write_tokens(text)

    @abstractmethod
    def read_token(self) -> str | None:
        """Block until a complete line arrives.

        Returns:
            The line without its delimiter, or None at end of stream.
        """
        ...

    @abstractmethod
    def wait_for_token(self, timeout: float) -> bool:
        """Bounded-wait peek: is a complete line available to read?

        Returns True as soon as one is buffered, False once ``timeout``
        seconds elapse without one. Never consumes the line.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the stream. Pending reads on the peer see end of stream."""
        ...

    @abstractmethod
    def get_peer_address(self) -> tuple[str, int] | None:
        """Return the (host, port) of the peer, or None."""
        ...


class MockChannel(Channel):
    """Scripted channel for local testing without real networking.

    The "peer" is whatever the test injects: injected tokens are returned by
    read_token() in order, and everything this side writes is recorded in
    ``sent``. Once the injected tokens run out, reads report end of stream
    instead of blocking forever.
    """

    def __init__(self, peer_tokens: list[str] | None = None) -> None:
        self.sent: list[str] = []
        self.flushes = 0
        self.closed = False
        self._incoming: deque[str] = deque(peer_tokens or [])
        self._waits: list[float] = []

    def write_tokens(self, *tokens: str) -> None:
        if self.closed:
            raise BrokenPipeError("Channel is closed")
        self.sent.extend(tokens)
        self.flushes += 1

    def read_token(self) -> str | None:
        if not self._incoming:
            return None
        return self._incoming.popleft()

    def wait_for_token(self, timeout: float) -> bool:
        # No real clock: report immediately, but remember what was asked
        self._waits.append(timeout)
        return bool(self._incoming)

    def close(self) -> None:
        self.closed = True

    def get_peer_address(self) -> tuple[str, int] | None:
        return ("127.0.0.1", 0)

    def inject_tokens(self, *tokens: str) -> None:
        """Test helper: queue tokens as if the peer had sent them."""
        self._incoming.extend(tokens)

    @property
    def waits(self) -> list[float]:
        """Timeouts passed to wait_for_token(), in call order."""
        return list(self._waits)

    @property
    def pending(self) -> int:
        """Injected tokens not read yet."""
        return len(self._incoming)
