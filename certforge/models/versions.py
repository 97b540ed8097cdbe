"""Version history models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

# Indexers have spelled the timestamp field several ways over time.
_TIMESTAMP_FIELDS = ("round-time", "roundTime", "confirmed-round", "confirmedRound")


class TxMeta(BaseModel):
    """Ledger metadata for the transaction that set a reserve address."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    timestamp: int | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TxMeta:
        """Build from a raw indexer transaction record."""
        timestamp = None
        for field in _TIMESTAMP_FIELDS:
            if record.get(field):
                timestamp = int(record[field])
                break
        return cls(transaction_id=str(record.get("id", "")), timestamp=timestamp)


class VersionRecord(BaseModel):
    """One entry in an object's version chain.

    ``cid`` and ``gateway_url`` are set when the reserve address decoded;
    otherwise ``decode_error`` explains why not.
    """

    model_config = ConfigDict(frozen=True)

    ordinal: int
    source_transaction_id: str
    timestamp: int | None = None
    address: str
    cid: str | None = None
    gateway_url: str | None = None
    decode_error: str | None = None
    change_description: list[str] = []

    @property
    def decodable(self) -> bool:
        return self.cid is not None
