"""ARC-19 codec: content identifiers <-> chain addresses.

A ledger address and a SHA2-256 multihash digest are both 32 bytes.  ARC-19
exploits that: the digest of a CIDv1/raw/sha2-256 identifier is stored
verbatim in an object's reserve slot, and resolvers rebuild the CID from
the slot at read time.

Address layout (58 chars)::

    base32( digest[32] + sha512_256(digest)[-4:] )

CID layout (59 chars)::

    "b" + lower( base32( 0x01 0x55 0x12 0x20 + digest[32] ) )

The codec never hashes the payload itself; the digest *is* the address
payload.  The checksum belongs to the address format.
"""

from __future__ import annotations

import hashlib
import logging

from certforge.core import base32
from certforge.core.errors import (
    CodecError,
    InvalidAddressChecksum,
    InvalidAddressLength,
    InvalidDigestLength,
    MalformedCid,
    UnsupportedCidFormat,
)
from certforge.models.codec import (
    ARC19_TEMPLATE_URL,  # noqa: F401
    ContentIdentifier,
    ReferenceAnalysis,
    ReferenceKind,
    RoundTripReport,
)

logger = logging.getLogger(__name__)

DIGEST_LENGTH = 32
CHECKSUM_LENGTH = 4
ADDRESS_LENGTH = 58

CID_VERSION = 0x01
RAW_CODEC = 0x55
SHA2_256 = 0x12
CID_HEADER = bytes([CID_VERSION, RAW_CODEC, SHA2_256, DIGEST_LENGTH])
CID_BYTE_LENGTH = len(CID_HEADER) + DIGEST_LENGTH
MULTIBASE_BASE32 = "b"

DEFAULT_SUBDOMAIN_GATEWAY = "ipfs.dweb.link"


# ---------------------------------------------------------------------------
# Address format
# ---------------------------------------------------------------------------


def _checksum(digest: bytes) -> bytes:
    return hashlib.new("sha512_256", digest).digest()[-CHECKSUM_LENGTH:]


def encode_address(digest: bytes) -> str:
    """Encode a 32-byte digest as a 58-character chain address."""
    if len(digest) != DIGEST_LENGTH:
        raise InvalidDigestLength(
            f"Digest must be {DIGEST_LENGTH} bytes, got {len(digest)}"
        )
    return base32.encode(bytes(digest) + _checksum(digest))


def decode_address(address: str) -> bytes:
    """Decode a 58-character chain address back to its 32-byte payload."""
    if len(address) != ADDRESS_LENGTH:
        raise InvalidAddressLength(
            f"Address must be {ADDRESS_LENGTH} characters, got {len(address)}"
        )
    raw = base32.decode(address)
    digest, checksum = raw[:DIGEST_LENGTH], raw[DIGEST_LENGTH:]
    if len(checksum) != CHECKSUM_LENGTH or checksum != _checksum(digest):
        raise InvalidAddressChecksum(f"Checksum mismatch for address {address}")
    return digest


def is_valid_address(address: str) -> bool:
    """Return ``True`` if *address* decodes cleanly."""
    try:
        decode_address(address)
    except CodecError:
        return False
    return True


# ---------------------------------------------------------------------------
# CID format
# ---------------------------------------------------------------------------


def parse_cid(cid: str) -> ContentIdentifier:
    """Parse a textual CID into its fields.

    Raises ``MalformedCid`` if the text cannot be decoded or is not in
    canonical form (lower-case body, zero pad bits), and
    ``UnsupportedCidFormat`` if it decodes to anything other than
    CIDv1 / raw / sha2-256 with a 32-byte digest.
    """
    if not isinstance(cid, str) or not cid.startswith(MULTIBASE_BASE32):
        raise MalformedCid(f"CID must start with multibase prefix 'b': {cid!r}")
    body = cid[1:]
    if body != body.lower():
        raise MalformedCid(f"CID body must be lower-case base32: {cid!r}")
    try:
        raw = base32.decode(body)
    except CodecError as exc:
        raise MalformedCid(f"CID is not valid base32: {exc}") from exc

    if len(raw) < 4:
        raise MalformedCid(f"CID too short: {len(raw)} bytes")
    if raw[0] != CID_VERSION:
        raise UnsupportedCidFormat(f"Only CIDv1 is supported, got version {raw[0]}")
    if raw[1] != RAW_CODEC:
        raise UnsupportedCidFormat(f"Only the raw codec (0x55) is supported, got 0x{raw[1]:02x}")
    if raw[2] != SHA2_256 or raw[3] != DIGEST_LENGTH:
        raise UnsupportedCidFormat(
            f"Only sha2-256 multihash is supported, got 0x{raw[2]:02x}/{raw[3]}"
        )
    if len(raw) != CID_BYTE_LENGTH:
        raise MalformedCid(
            f"CID must be {CID_BYTE_LENGTH} bytes, got {len(raw)}"
        )
    return ContentIdentifier(digest=raw[len(CID_HEADER):])


def digest_to_cid(digest: bytes) -> str:
    """Wrap a 32-byte sha2-256 digest as a textual CIDv1/raw."""
    if len(digest) != DIGEST_LENGTH:
        raise InvalidDigestLength(
            f"Digest must be {DIGEST_LENGTH} bytes, got {len(digest)}"
        )
    return MULTIBASE_BASE32 + base32.encode(CID_HEADER + bytes(digest)).lower()


def cid_for_bytes(data: bytes) -> str:
    """Return the CIDv1/raw/sha2-256 of *data*."""
    return digest_to_cid(hashlib.sha256(data).digest())


def cid_to_address(cid: str) -> str:
    """Convert a CID into the reserve address that carries its digest."""
    return encode_address(parse_cid(cid).digest)


def address_to_cid(address: str) -> str:
    """Rebuild the CID whose digest is stored in *address*."""
    return digest_to_cid(decode_address(address))


def gateway_url(cid: str, gateway: str | None = None) -> str:
    """Return an HTTP locator for *cid*.

    Without a gateway host the public subdomain gateway is used.
    """
    if gateway:
        return f"https://{gateway}/ipfs/{cid}"
    return f"https://{cid}.{DEFAULT_SUBDOMAIN_GATEWAY}/"


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def analyze_reference(value: str | None) -> ReferenceAnalysis:
    """Classify a reserve slot value and explain what it holds."""
    if not value:
        return ReferenceAnalysis(
            kind=ReferenceKind.EMPTY,
            content="",
            details=["No reserve address set"],
        )

    details = [f"Length: {len(value)} characters"]
    if len(value) == ADDRESS_LENGTH:
        try:
            cid = address_to_cid(value)
        except CodecError as exc:
            return ReferenceAnalysis(
                kind=ReferenceKind.LEDGER_ADDRESS,
                content=value,
                details=[*details, "Address-shaped but not decodable", f"Error: {exc}"],
            )
        return ReferenceAnalysis(
            kind=ReferenceKind.ARC19_CID,
            content=cid,
            details=[
                *details,
                "Valid ledger address (ARC-19)",
                f"CID v1: {cid}",
                f"Gateway URL: {gateway_url(cid)}",
                "Codec: raw",
                "Hash: sha2-256",
            ],
        )

    return ReferenceAnalysis(
        kind=ReferenceKind.RAW,
        content=value,
        details=[*details, "Raw value (not ARC-19)"],
    )


def check_round_trip(address: str) -> RoundTripReport:
    """Convert address -> CID -> address and report whether it survives."""
    try:
        cid = address_to_cid(address)
        rebuilt = cid_to_address(cid)
    except CodecError as exc:
        logger.debug("Round trip failed for %s: %s", address, exc)
        return RoundTripReport(
            success=False,
            original_address=address,
            error=str(exc),
        )
    return RoundTripReport(
        success=True,
        original_address=address,
        generated_cid=cid,
        reconstructed_address=rebuilt,
        matches=rebuilt == address,
    )
