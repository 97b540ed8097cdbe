"""Flow inputs, intermediate context, and the final result record."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from certforge.models.codec import ARC19_TEMPLATE_URL


class UploadFile(BaseModel):
    """A file to be uploaded alongside the metadata document."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class FileLocator(BaseModel):
    """Where one uploaded file ended up."""

    model_config = ConfigDict(frozen=True)

    name: str
    cid: str
    content_type: str = "application/octet-stream"
    size: int = 0
    ipfs_url: str = ""
    gateway_url: str = ""


class UploadResult(BaseModel):
    """Content store response for a file set plus metadata document.

    ``content_locator`` is the CID of the metadata document, the value
    anchored on the ledger.
    """

    model_config = ConfigDict(frozen=True)

    content_locator: str
    metadata_url: str = ""
    file_locators: list[FileLocator] = []


class CertificationData(BaseModel):
    """Descriptive fields carried into the metadata document."""

    model_config = ConfigDict(frozen=True)

    asset_type: str = "document"
    unique_id: str = ""
    title: str = ""
    author: str = ""
    creation_date: str = ""
    organization: dict[str, str] = {}
    technical_specs: dict[str, str] = {}


class CertificationParams(BaseModel):
    """Inputs for a certification (object creation) flow."""

    model_config = ConfigDict(frozen=True)

    asset_name: str
    unit_name: str | None = None
    files: list[UploadFile] = []
    certification_data: CertificationData | None = None
    form_data: dict[str, Any] = {}


class VersioningParams(BaseModel):
    """Inputs for a versioning (reserve update) flow on an existing object.

    When ``custom_json`` is given it replaces the generated metadata
    document as the base of the upload.  ``existing_reserve_address``, if
    known, links the new document to the version it supersedes.
    """

    model_config = ConfigDict(frozen=True)

    object_id: int
    existing_reserve_address: str | None = None
    files: list[UploadFile] = []
    certification_data: CertificationData | None = None
    form_data: dict[str, Any] = {}
    custom_json: dict[str, Any] | None = None


FlowParams = CertificationParams | VersioningParams


class FlowContext(BaseModel):
    """Data accumulated as steps succeed.

    Append-only: a step only ever fills fields that are still empty, and a
    failed step leaves every field as it was.
    """

    upload_result: UploadResult | None = None
    derived_address: str | None = None
    created_object_id: int | None = None
    create_transaction_id: str | None = None
    configure_transaction_id: str | None = None
    confirmed_round: int | None = None


class FlowResult(BaseModel):
    """Identifiers gathered across a completed flow."""

    model_config = ConfigDict(frozen=True)

    flow_type: str
    object_id: int
    create_transaction_id: str | None = None
    configure_transaction_id: str
    confirmed_round: int = 0
    signer_address: str
    metadata_cid: str
    metadata_url: str
    gateway_url: str
    reserve_address: str
    files: list[FileLocator] = []


class FlowOptions(BaseModel):
    """Tunables for one orchestrator instance."""

    model_config = ConfigDict(frozen=True)

    template_url: str = ARC19_TEMPLATE_URL
    ipfs_gateway: str | None = None
    explorer_url: str = ""
    confirmation_max_rounds: int = Field(default=10, ge=1)
    confirmation_timeout_seconds: float | None = 120.0
