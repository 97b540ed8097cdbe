"""Flow step models: states, transitions, and the fixed step plans."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StepState(str, Enum):
    """Observable state of a single flow step."""

    PENDING = "pending"
    ACTIVE = "active"
    SUCCESS = "success"
    ERROR = "error"


# Valid state transitions, enforced structurally by StepMachine.
# SUCCESS -> PENDING and ERROR -> PENDING are the retry wipe.
VALID_TRANSITIONS: dict[StepState, set[StepState]] = {
    StepState.PENDING: {StepState.ACTIVE},
    StepState.ACTIVE: {StepState.ACTIVE, StepState.SUCCESS, StepState.ERROR},
    StepState.SUCCESS: {StepState.PENDING},
    StepState.ERROR: {StepState.PENDING},
}


class FlowType(str, Enum):
    """The two supported flows."""

    CERTIFICATION = "certification"
    VERSIONING = "versioning"


class StepDefinition(BaseModel):
    """Static description of a step within a flow plan."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    title: str
    description: str


class FlowStep(BaseModel):
    """Live state of one step in a running flow.

    ``details`` is advisory telemetry for the progress surface; it is never
    read back as program state.
    """

    id: str
    title: str
    description: str
    state: StepState = StepState.PENDING
    error: str | None = None
    result: Any = None
    details: str | None = None


class StepTransition(BaseModel):
    """Records a single state transition for audit trail."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    from_state: StepState
    to_state: StepState
    details: str | None = None
    error: str | None = None
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


WALLET_CHECK = "wallet-check"
UPLOAD = "upload"
ADDRESS_CONVERSION = "address-conversion"
OBJECT_CREATE = "object-create"
OBJECT_CONFIGURE = "object-configure"

_WALLET_CHECK = StepDefinition(
    step_id=WALLET_CHECK,
    title="Wallet check",
    description="Verify a signer is connected",
)
_UPLOAD = StepDefinition(
    step_id=UPLOAD,
    title="Content upload",
    description="Upload files and metadata to the content store",
)
_ADDRESS_CONVERSION = StepDefinition(
    step_id=ADDRESS_CONVERSION,
    title="Address conversion",
    description="Convert the metadata CID into a reserve address",
)
_OBJECT_CREATE = StepDefinition(
    step_id=OBJECT_CREATE,
    title="Object creation",
    description="Sign and submit the object creation transaction",
)
_OBJECT_CONFIGURE = StepDefinition(
    step_id=OBJECT_CONFIGURE,
    title="Object configuration",
    description="Sign and submit the reserve address update",
)

FLOW_PLANS: dict[FlowType, list[StepDefinition]] = {
    FlowType.CERTIFICATION: [
        _WALLET_CHECK,
        _UPLOAD,
        _ADDRESS_CONVERSION,
        _OBJECT_CREATE,
        _OBJECT_CONFIGURE,
    ],
    FlowType.VERSIONING: [
        _WALLET_CHECK,
        _UPLOAD,
        _ADDRESS_CONVERSION,
        _OBJECT_CONFIGURE,
    ],
}
