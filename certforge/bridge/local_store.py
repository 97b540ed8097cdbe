"""Local content-addressed store for development and tests.

Storage layout: {base_path}/{cid[-4:-2]}/{cid[-2:]}/{cid}.dat
Blocks are immutable once stored; storing the same bytes twice is a no-op.

Every block is addressed by its CIDv1/raw/sha2-256 identifier, the same
form the ARC-19 codec expects, so locators from this store convert
directly into reserve addresses.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from certforge.core.arc19 import cid_for_bytes, gateway_url, parse_cid
from certforge.core.errors import UploadError
from certforge.core.hasher import canonical_json_bytes, sha256_digest
from certforge.core.metadata import attach_file_references
from certforge.models.flow import FileLocator, UploadFile, UploadResult

logger = logging.getLogger(__name__)


class BlockIntegrityError(RuntimeError):
    """Raised when a stored block no longer hashes to its CID."""


class LocalContentStore:
    """Disk-backed content store keyed by CID.

    Parameters
    ----------
    base_path:
        Root directory for block storage.
    gateway:
        Optional path gateway host used for locator URLs.  Subdomain
        gateway URLs are produced when omitted.
    fail_uploads:
        Number of upcoming ``upload_files`` calls to fail.  Used to
        exercise retry handling.
    """

    def __init__(
        self,
        base_path: Path,
        *,
        gateway: str | None = None,
        fail_uploads: int = 0,
    ) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self.gateway = gateway
        self.fail_uploads = fail_uploads
        self.upload_calls = 0

    def _block_path(self, cid: str) -> Path:
        return self._base / cid[-4:-2] / cid[-2:] / f"{cid}.dat"

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def put(self, data: bytes) -> str:
        """Store *data* and return its CID."""
        cid = cid_for_bytes(data)
        path = self._block_path(cid)
        if path.exists():
            if not self.verify(cid):
                raise BlockIntegrityError(f"Existing block {cid} failed integrity check")
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return cid

    def get(self, cid: str) -> bytes:
        path = self._block_path(cid)
        if not path.exists():
            raise FileNotFoundError(f"Block not found: {cid}")
        return path.read_bytes()

    def exists(self, cid: str) -> bool:
        return self._block_path(cid).exists()

    def verify(self, cid: str) -> bool:
        """Re-hash the stored block and compare it against *cid*."""
        path = self._block_path(cid)
        if not path.exists():
            return False
        return sha256_digest(path.read_bytes()) == parse_cid(cid).digest

    # ------------------------------------------------------------------
    # ContentStore protocol
    # ------------------------------------------------------------------

    async def upload_files(
        self, files: Sequence[UploadFile], metadata_document: dict[str, Any]
    ) -> UploadResult:
        self.upload_calls += 1
        if self.fail_uploads > 0:
            self.fail_uploads -= 1
            raise UploadError("Content store unavailable (simulated)")

        locators: list[FileLocator] = []
        for f in files:
            cid = self.put(f.content)
            locators.append(
                FileLocator(
                    name=f.name,
                    cid=cid,
                    content_type=f.content_type,
                    size=f.size,
                    ipfs_url=f"ipfs://{cid}",
                    gateway_url=gateway_url(cid, self.gateway),
                )
            )
            logger.debug("Stored %s as %s (%d bytes)", f.name, cid, f.size)

        document = attach_file_references(metadata_document, files, locators)
        metadata_cid = self.put(canonical_json_bytes(document))
        logger.info("Stored metadata document %s (%d file(s))", metadata_cid, len(locators))
        return UploadResult(
            content_locator=metadata_cid,
            metadata_url=f"ipfs://{metadata_cid}",
            file_locators=locators,
        )
