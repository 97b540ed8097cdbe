"""Metadata documents uploaded next to certified files.

The document follows the ARC-3 JSON shape: ``name``, ``description``,
``image``, ``attributes`` and free-form ``properties``.  File CIDs are only
known after upload, so the content store calls ``attach_file_references``
once the files are stored and before the document itself is stored.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any

from certforge.models.flow import (
    CertificationParams,
    FileLocator,
    UploadFile,
    VersioningParams,
)


def _attributes(params: CertificationParams | VersioningParams) -> list[dict[str, Any]]:
    data = params.certification_data
    form = params.form_data
    organization = data.organization.get("name", "Unknown") if data else "Unknown"
    return [
        {"trait_type": "Asset Type", "value": (data.asset_type if data else "") or "Unknown"},
        {"trait_type": "Author", "value": (data.author if data else "") or "Unknown"},
        {"trait_type": "Creation Date", "value": (data.creation_date if data else "") or "Unknown"},
        {"trait_type": "Organization", "value": organization},
        {"trait_type": "Asset Name", "value": form.get("asset_name") or getattr(params, "asset_name", "") or "Unknown"},
        {"trait_type": "Unit Name", "value": form.get("unit_name") or getattr(params, "unit_name", None) or "Unknown"},
    ]


def build_metadata_document(
    params: CertificationParams | VersioningParams,
    *,
    previous_cid: str | None = None,
) -> dict[str, Any]:
    """Build the metadata document for a flow's upload step.

    For versioning flows ``custom_json`` (if any) is used as the base
    document, and ``previous_cid`` is recorded under
    ``properties.prev_version`` so the chain can also be walked off-ledger.
    """
    if isinstance(params, VersioningParams) and params.custom_json is not None:
        document = copy.deepcopy(params.custom_json)
    else:
        data = params.certification_data
        title = (data.title if data else "") or getattr(params, "asset_name", "") or "Certified Asset"
        document = {
            "name": title,
            "description": str(params.form_data.get("description", "")),
            "image": "",
            "attributes": _attributes(params),
            "properties": {"form_data": dict(params.form_data)},
        }
        if data is not None:
            document["certification_data"] = data.model_dump(mode="json")

    if previous_cid:
        document.setdefault("properties", {})["prev_version"] = f"ipfs://{previous_cid}"
    return document


def attach_file_references(
    document: dict[str, Any],
    files: Sequence[UploadFile],
    locators: Sequence[FileLocator],
) -> dict[str, Any]:
    """Return a copy of *document* that references the uploaded files."""
    result = copy.deepcopy(document)
    if locators and not result.get("image"):
        result["image"] = f"ipfs://{locators[0].cid}"

    properties = result.setdefault("properties", {})
    properties["files_metadata"] = [
        {"name": loc.name, "ipfs_url": loc.ipfs_url, "gateway_url": loc.gateway_url}
        for loc in locators
    ]
    properties["ipfs_info"] = {"total_files": len(files)}

    certification = result.get("certification_data")
    if isinstance(certification, dict):
        certification["files"] = [
            {"name": loc.name, "hash": loc.cid, "type": loc.content_type, "size": loc.size}
            for loc in locators
        ]
    return result
