"""Canonical serialization and hashing helpers.

Metadata documents and transaction descriptors are serialized through
``canonical_json_bytes`` so that identical inputs always produce identical
bytes, and therefore identical content identifiers.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes (sorted keys, compact separators).

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_digest(data: bytes) -> bytes:
    """Return the raw 32-byte SHA-256 digest of *data*."""
    return hashlib.sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def transaction_id(payload: dict[str, Any]) -> str:
    """Derive a stable transaction id from a transaction descriptor.

    Upper-case hex of the canonical SHA-256, truncated to 52 characters to
    match the length of ledger transaction ids.
    """
    return sha256_hex(canonical_json_bytes(payload)).upper()[:52]
