"""Codec value models: parsed CIDs and reference diagnostics."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

ARC19_TEMPLATE_URL = "template-ipfs://{ipfscid:1:raw:reserve:sha2-256}#arc3"


class ContentIdentifier(BaseModel):
    """A parsed CIDv1 / raw / sha2-256 content identifier.

    Only one combination is supported; the header fields exist so a parsed
    value can be inspected, not to allow variants.
    """

    model_config = ConfigDict(frozen=True)

    version: int = 1
    codec: str = "raw"
    hash_algorithm: str = "sha2-256"
    digest: bytes

    @field_validator("digest")
    @classmethod
    def _digest_is_32_bytes(cls, value: bytes) -> bytes:
        if len(value) != 32:
            raise ValueError(f"digest must be 32 bytes, got {len(value)}")
        return value


class ReferenceKind(str, Enum):
    """Classification of a reserve slot value."""

    EMPTY = "empty"
    ARC19_CID = "arc19_cid"
    LEDGER_ADDRESS = "ledger_address"
    RAW = "raw"


class ReferenceAnalysis(BaseModel):
    """Result of inspecting a reserve slot value."""

    model_config = ConfigDict(frozen=True)

    kind: ReferenceKind
    content: str
    details: list[str] = []


class RoundTripReport(BaseModel):
    """Outcome of address -> CID -> address for a single reserve value."""

    model_config = ConfigDict(frozen=True)

    success: bool
    original_address: str
    generated_cid: str = ""
    reconstructed_address: str = ""
    matches: bool = False
    error: str | None = None
