"""Integration tests for SocketChannel over connected local sockets."""

import threading
import time

import pytest

from skirmish.config import MAX_TOKEN_BYTES
from skirmish.networking.protocol import ProtocolError


class TestReadWrite:
    def test_tokens_arrive_in_order(self, channel_pair):
        left, right = channel_pair
        left.write_tokens("alice", "1", "BOMBER")
        assert right.read_token() == "alice"
        assert right.read_token() == "1"
        assert right.read_token() == "BOMBER"

    def test_both_directions(self, channel_pair):
        left, right = channel_pair
        left.write_token("ping")
        right.write_token("pong")
        assert right.read_token() == "ping"
        assert left.read_token() == "pong"

    def test_line_split_across_sends(self, channel_pair):
        left, right = channel_pair
        left.sock.sendall(b"hel")
        time.sleep(0.01)
        left.sock.sendall(b"lo\nworld\n")
        assert right.read_token() == "hello"
        assert right.read_token() == "world"

    def test_end_of_stream(self, channel_pair):
        left, right = channel_pair
        left.write_token("last")
        left.close()
        assert right.read_token() == "last"
        assert right.read_token() is None
        assert right.read_token() is None

    def test_unterminated_line_at_eof_is_dropped(self, channel_pair):
        left, right = channel_pair
        left.sock.sendall(b"partial")
        left.close()
        assert right.read_token() is None

    def test_oversized_line(self, channel_pair):
        left, right = channel_pair
        left.sock.sendall(b"x" * (MAX_TOKEN_BYTES + 10))
        left.close()
        with pytest.raises(ProtocolError):
            right.read_token()

    def test_write_after_close(self, channel_pair):
        left, _ = channel_pair
        left.close()
        with pytest.raises(BrokenPipeError):
            left.write_token("too late")

    def test_close_is_idempotent(self, channel_pair):
        left, _ = channel_pair
        left.close()
        left.close()

    def test_close_unblocks_pending_read(self, channel_pair):
        """Closing the peer end must wake a blocked reader with end of stream."""
        left, right = channel_pair
        results = []
        reader = threading.Thread(target=lambda: results.append(right.read_token()))
        reader.start()
        time.sleep(0.05)
        left.close()
        reader.join(timeout=2)
        assert not reader.is_alive()
        assert results == [None]


class TestWaitForToken:
    def test_times_out_without_data(self, channel_pair):
        _, right = channel_pair
        start = time.monotonic()
        assert right.wait_for_token(0.05) is False
        assert time.monotonic() - start >= 0.045

    def test_true_when_line_buffered(self, channel_pair):
        left, right = channel_pair
        left.write_token("2")
        assert right.wait_for_token(1.0) is True

    def test_does_not_consume(self, channel_pair):
        left, right = channel_pair
        left.write_tokens("2", "DESTROYER")
        assert right.wait_for_token(1.0)
        assert right.wait_for_token(1.0)
        assert right.read_token() == "2"
        assert right.read_token() == "DESTROYER"

    def test_partial_line_is_not_a_token(self, channel_pair):
        left, right = channel_pair
        left.sock.sendall(b"2")
        assert right.wait_for_token(0.05) is False
        left.sock.sendall(b"\n")
        assert right.wait_for_token(1.0) is True
        assert right.read_token() == "2"

    def test_wakes_as_soon_as_data_arrives(self, channel_pair):
        left, right = channel_pair
        timer = threading.Timer(0.05, left.write_token, args=("1",))
        timer.start()
        start = time.monotonic()
        assert right.wait_for_token(2.0) is True
        assert time.monotonic() - start < 1.0
        timer.join()

    def test_false_at_end_of_stream(self, channel_pair):
        left, right = channel_pair
        left.close()
        start = time.monotonic()
        assert right.wait_for_token(1.0) is False
        assert time.monotonic() - start < 0.5

    def test_peer_address_unknown_for_socketpair(self, channel_pair):
        left, _ = channel_pair
        assert left.get_peer_address() is None
