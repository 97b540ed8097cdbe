"""Tests for the unpadded RFC 4648 base32 codec."""

from __future__ import annotations

import base64

import pytest

from certforge.core import base32
from certforge.core.errors import CodecError, InvalidBase32Character, NonCanonicalBase32


class TestEncode:
    @pytest.mark.parametrize(
        "data",
        [b"", b"f", b"fo", b"foo", b"foob", b"fooba", b"foobar", bytes(range(36))],
    )
    def test_matches_stdlib_without_padding(self, data: bytes):
        expected = base64.b32encode(data).decode("ascii").rstrip("=")
        assert base32.encode(data) == expected

    def test_output_is_upper_case_alphabet_only(self):
        encoded = base32.encode(bytes(range(256)))
        assert set(encoded) <= set(base32.ALPHABET)

    def test_length_for_36_bytes(self):
        assert len(base32.encode(bytes(36))) == 58


class TestDecode:
    def test_inverts_encode(self):
        data = bytes(range(200, 236))
        assert base32.decode(base32.encode(data)) == data

    def test_case_insensitive(self):
        data = b"certforge"
        assert base32.decode(base32.encode(data).lower()) == data

    def test_strips_trailing_padding(self):
        assert base32.decode("MZXW6===") == b"foo"

    @pytest.mark.parametrize("bad", ["MZXW1", "MZ XW", "MZXW6!", "0"])
    def test_rejects_characters_outside_alphabet(self, bad: str):
        with pytest.raises(InvalidBase32Character):
            base32.decode(bad)

    def test_invalid_character_is_codec_error(self):
        with pytest.raises(CodecError) as exc_info:
            base32.decode("AB8")
        assert exc_info.value.char == "8"

    @pytest.mark.parametrize("text", ["MZXW7", "MZXW6B"])
    def test_rejects_non_zero_trailing_bits(self, text: str):
        with pytest.raises(NonCanonicalBase32):
            base32.decode(text)

    def test_rejects_dangling_symbol(self):
        with pytest.raises(NonCanonicalBase32):
            base32.decode("MZXW6A")
