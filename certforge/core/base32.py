"""RFC 4648 base32 without padding.

Shared by both directions of the ARC-19 codec.  Output is always upper
case and unpadded; callers lowercase it where the multibase form needs it.
Decoding is case-insensitive, strips trailing ``=`` and rejects anything
outside the 32-symbol alphabet or with non-zero trailing bits.
"""

from __future__ import annotations

from certforge.core.errors import InvalidBase32Character, NonCanonicalBase32

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_LOOKUP: dict[str, int] = {ch: i for i, ch in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """Pack *data* into 5-bit groups; the final group is zero-filled."""
    out: list[str] = []
    buffer = 0
    bits = 0
    for byte in data:
        buffer = ((buffer << 8) | byte) & 0xFFFF
        bits += 8
        while bits >= 5:
            out.append(ALPHABET[(buffer >> (bits - 5)) & 0x1F])
            bits -= 5
    if bits > 0:
        out.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])
    return "".join(out)


def decode(text: str) -> bytes:
    """Unpack base32 *text* into bytes.

    Only canonical text is accepted: the leftover bits after the last
    whole byte must be the zero-fill that ``encode`` writes, and no
    leftover may span a whole symbol.
    """
    out = bytearray()
    buffer = 0
    bits = 0
    for char in text.upper().rstrip("="):
        value = _LOOKUP.get(char)
        if value is None:
            raise InvalidBase32Character(char)
        buffer = ((buffer << 5) | value) & 0xFFFF
        bits += 5
        if bits >= 8:
            out.append((buffer >> (bits - 8)) & 0xFF)
            bits -= 8
    if bits >= 5:
        raise NonCanonicalBase32(f"Dangling base32 symbol ({bits} unused bits)")
    if buffer & ((1 << bits) - 1):
        raise NonCanonicalBase32("Non-zero padding bits in final base32 symbol")
    return bytes(out)
