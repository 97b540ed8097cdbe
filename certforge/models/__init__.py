"""certforge data models (Pydantic v2)."""

from certforge.models.codec import (
    ContentIdentifier,
    ReferenceAnalysis,
    ReferenceKind,
    RoundTripReport,
)
from certforge.models.flow import (
    CertificationData,
    CertificationParams,
    FileLocator,
    FlowContext,
    FlowOptions,
    FlowResult,
    UploadFile,
    UploadResult,
    VersioningParams,
)
from certforge.models.ledger import (
    ObjectConfigTxn,
    ObjectCreateTxn,
    ObjectParams,
    ObjectState,
    SignRequest,
    SubmitResponse,
    SuggestedParams,
)
from certforge.models.steps import (
    FLOW_PLANS,
    VALID_TRANSITIONS,
    FlowStep,
    FlowType,
    StepDefinition,
    StepState,
    StepTransition,
)
from certforge.models.versions import TxMeta, VersionRecord

__all__ = [
    # codec
    "ContentIdentifier",
    "ReferenceAnalysis",
    "ReferenceKind",
    "RoundTripReport",
    # steps
    "StepState",
    "FlowType",
    "FlowStep",
    "StepDefinition",
    "StepTransition",
    "VALID_TRANSITIONS",
    "FLOW_PLANS",
    # flow
    "UploadFile",
    "FileLocator",
    "UploadResult",
    "CertificationData",
    "CertificationParams",
    "VersioningParams",
    "FlowContext",
    "FlowResult",
    "FlowOptions",
    # ledger
    "SuggestedParams",
    "ObjectCreateTxn",
    "ObjectConfigTxn",
    "SignRequest",
    "SubmitResponse",
    "ObjectParams",
    "ObjectState",
    # versions
    "TxMeta",
    "VersionRecord",
]
