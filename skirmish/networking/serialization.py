"""Frame codec: text tokens to newline-terminated lines and back.

Wire format for a token:
    <utf-8 text>\\n

A trailing carriage return is tolerated on input so peers that write CRLF
still interoperate. Integers travel as plain decimal text.
"""

from __future__ import annotations

from skirmish.config import UNIT_NAMES
from skirmish.networking.protocol import MalformedCommit

DELIMITER = b"\n"
ENCODING = "utf-8"


def encode_token(text: str) -> bytes:
    """Encode one token as a newline-terminated line.

    Raises ValueError if the text contains a line break, since that would
    split it into two frames on the peer's side.
    """
    if "\n" in text or "\r" in text:
        raise ValueError(f"Token contains a line break: {text!r}")
    return text.encode(ENCODING) + DELIMITER


def encode_tokens(tokens: tuple[str, ...] | list[str]) -> bytes:
    """Encode several tokens into one buffer, ready for a single flush."""
    return b"".join(encode_token(t) for t in tokens)


def decode_line(raw: bytes) -> str:
    """Decode one line (with or without its delimiter) into a token."""
    if raw.endswith(DELIMITER):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    # Names are opaque, so a peer's odd bytes are replaced rather than fatal
    return raw.decode(ENCODING, errors="replace")


def _parse_int(token: str, what: str) -> int:
    text = token.strip()
    # int() also accepts "+1", "1_000" and unicode digits; the wire does not
    if not text.isascii() or not text.isdigit():
        raise MalformedCommit(f"Invalid {what}: {token!r}")
    return int(text)


def parse_unit_index(token: str) -> int:
    """Parse a unit index token.

    Raises MalformedCommit unless the token is a decimal integer in
    [0, number of unit types).
    """
    unit = _parse_int(token, "unit index")
    if unit >= len(UNIT_NAMES):
        raise MalformedCommit(f"Unit index out of range: {unit}")
    return unit


def parse_count(token: str) -> int:
    """Parse a non-negative unit count announced during negotiation."""
    return _parse_int(token, "unit count")
