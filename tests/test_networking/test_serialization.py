"""Tests for the line frame codec."""

import pytest

from skirmish.battle.units import UnitType
from skirmish.networking.protocol import MalformedCommit, RoundCommit
from skirmish.networking.serialization import (
    decode_line,
    encode_token,
    encode_tokens,
    parse_count,
    parse_unit_index,
)


class TestTokenFraming:
    def test_encode_appends_single_newline(self):
        assert encode_token("BOMBER") == b"BOMBER\n"

    def test_encode_several_tokens(self):
        assert encode_tokens(["1", "BOMBER"]) == b"1\nBOMBER\n"

    def test_encode_rejects_embedded_newline(self):
        with pytest.raises(ValueError):
            encode_token("two\nlines")
        with pytest.raises(ValueError):
            encode_token("carriage\rreturn")

    def test_encode_utf8(self):
        assert encode_token("Zoë") == "Zoë\n".encode("utf-8")

    def test_decode_strips_delimiter(self):
        assert decode_line(b"DESTROYER\n") == "DESTROYER"

    def test_decode_tolerates_crlf(self):
        assert decode_line(b"bob\r\n") == "bob"

    def test_decode_without_delimiter(self):
        assert decode_line(b"bob") == "bob"

    def test_decode_replaces_bad_bytes(self):
        assert decode_line(b"b\xffb\n") == "b�b"


class TestParseUnitIndex:
    @pytest.mark.parametrize("token,expected", [("0", 0), ("1", 1), ("2", 2), (" 2", 2)])
    def test_valid(self, token, expected):
        assert parse_unit_index(token) == expected

    @pytest.mark.parametrize("token", ["3", "-1", "", "abc", "1.0", "+1", "1_0", "١"])
    def test_invalid(self, token):
        with pytest.raises(MalformedCommit):
            parse_unit_index(token)

    def test_malformed_commit_is_value_error(self):
        with pytest.raises(ValueError):
            parse_unit_index("x")


class TestParseCount:
    def test_valid(self):
        assert parse_count("100") == 100
        assert parse_count("0") == 0

    def test_negative_rejected(self):
        with pytest.raises(MalformedCommit):
            parse_count("-5")


class TestRoundCommit:
    def test_consistent_label(self):
        assert RoundCommit(1, "BOMBER").is_consistent

    def test_inconsistent_label(self):
        assert not RoundCommit(1, "TIEFIGHTER").is_consistent
        assert not RoundCommit(0, "Are you cheating?").is_consistent

    def test_tokens(self):
        assert RoundCommit(2, "DESTROYER").tokens() == ("2", "DESTROYER")

    def test_tokens_send_plain_index_for_unit_type(self):
        assert RoundCommit(UnitType.BOMBER, "BOMBER").tokens() == ("1", "BOMBER")
        assert RoundCommit(UnitType.DESTROYER, "x").tokens()[0] == "2"
