"""TCP-based Channel implementation.

Buffers received bytes itself instead of wrapping the socket in a file
object, so that "is a full line already here?" can be answered from the
buffer and a timed select() on the descriptor. A file object's hidden read
buffer would make select() lie about data that was already pulled in.
"""

from __future__ import annotations

import logging
import select
import socket
import time

from skirmish.config import MAX_TOKEN_BYTES, RECV_CHUNK_SIZE
from skirmish.networking.channel import Channel
from skirmish.networking.protocol import ProtocolError
from skirmish.networking.serialization import DELIMITER, decode_line, encode_tokens

logger = logging.getLogger(__name__)


class SocketChannel(Channel):
    """Real stream channel over a connected TCP socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock: socket.socket | None = sock
        self._buffer = bytearray()
        self._eof = False
        self._peer_addr: tuple[str, int] | None = None
        # socketpair() ends are AF_UNIX and have no address
        if sock.family in (socket.AF_INET, socket.AF_INET6):
            self._peer_addr = sock.getpeername()[:2]
            # Commits are tiny and must leave immediately
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

    @property
    def sock(self) -> socket.socket | None:
        return self._sock

    def write_tokens(self, *tokens: str) -> None:
        if self._sock is None:
            raise BrokenPipeError("Channel is closed")
        # sendall() returns once the kernel has every byte: that is the flush
        self._sock.sendall(encode_tokens(tokens))

    def read_token(self) -> str | None:
        while True:
            line = self._pop_line()
            if line is not None:
                return line
            if self._eof:
                if self._buffer:
                    logger.debug("Discarding %d bytes of unterminated line at EOF",
                                  len(self._buffer))
                    self._buffer.clear()
                return None
            self._fill(None)

    def wait_for_token(self, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while DELIMITER not in self._buffer and not self._eof:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self._fill(remaining)
        return DELIMITER in self._buffer

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Peer already gone; closing is all that is left to do
            pass
        self._sock.close()
        self._sock = None

    def get_peer_address(self) -> tuple[str, int] | None:
        return self._peer_addr

    def _pop_line(self) -> str | None:
        idx = self._buffer.find(DELIMITER)
        if idx < 0:
            if len(self._buffer) > MAX_TOKEN_BYTES:
                raise ProtocolError(
                    f"Line exceeds {MAX_TOKEN_BYTES} bytes without a delimiter")
            return None
        raw = bytes(self._buffer[:idx + 1])
        del self._buffer[:idx + 1]
        return decode_line(raw)

    def _fill(self, timeout: float | None) -> None:
        """Receive one chunk into the buffer.

        With a timeout, waits at most that long for the socket to become
        readable and returns without data if it does not.
        """
        if self._sock is None:
            self._eof = True
            return
        if timeout is not None:
            readable, _, _ = select.select([self._sock], [], [], timeout)
            if not readable:
                return
        try:
            data = self._sock.recv(RECV_CHUNK_SIZE)
        except ConnectionResetError:
            logger.debug("Connection reset by %s", self._peer_addr)
            data = b""
        if not data:
            self._eof = True
            return
        self._buffer.extend(data)
