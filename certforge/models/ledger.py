"""Ledger-side payloads exchanged with the ledger client and wallet signer.

Transaction descriptors are unsigned and bound to a sender.  The signer
turns them into opaque signed bytes; the ledger client only ever sees those
bytes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class SuggestedParams(BaseModel):
    """Network parameters a transaction must be built against."""

    model_config = ConfigDict(frozen=True)

    fee: int = 1000
    first_valid: int
    last_valid: int
    genesis_id: str = "localnet-v1"
    genesis_hash: str = ""


class ObjectCreateTxn(BaseModel):
    """Unsigned object (asset) creation transaction."""

    model_config = ConfigDict(frozen=True)

    type: Literal["object-create"] = "object-create"
    sender: str
    params: SuggestedParams
    total: int = 1
    decimals: int = 0
    default_frozen: bool = True
    asset_name: str
    unit_name: str | None = None
    url: str
    manager: str | None = None
    reserve: str | None = None
    freeze: str | None = None
    clawback: str | None = None


class ObjectConfigTxn(BaseModel):
    """Unsigned configuration update for an existing object.

    Every mutable address field is sent explicitly; a ``None`` here clears
    the field on-ledger, so callers must copy current values they intend
    to keep.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["object-config"] = "object-config"
    sender: str
    params: SuggestedParams
    object_id: int
    manager: str | None = None
    reserve: str | None = None
    freeze: str | None = None
    clawback: str | None = None


Transaction = ObjectCreateTxn | ObjectConfigTxn


class SignRequest(BaseModel):
    """A transaction plus the addresses expected to sign it."""

    model_config = ConfigDict(frozen=True)

    txn: ObjectCreateTxn | ObjectConfigTxn
    signers: list[str]


class SubmitResponse(BaseModel):
    """Ledger acknowledgement of a submitted transaction."""

    model_config = ConfigDict(frozen=True)

    tx_id: str


class ObjectParams(BaseModel):
    """Current on-ledger parameters of an object."""

    model_config = ConfigDict(frozen=True)

    creator: str
    total: int = 1
    decimals: int = 0
    default_frozen: bool = True
    name: str = ""
    unit_name: str | None = None
    url: str = ""
    manager: str | None = None
    reserve: str | None = None
    freeze: str | None = None
    clawback: str | None = None


class ObjectState(BaseModel):
    """Snapshot of an object as returned by ``get_object_by_id``."""

    model_config = ConfigDict(frozen=True)

    index: int
    params: ObjectParams
