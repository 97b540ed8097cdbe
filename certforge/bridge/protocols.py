"""Collaborator protocols consumed by the orchestrator and resolver.

Any object with the right async methods satisfies these protocols.  The
local backends in this package (``LocalContentStore``, ``MemoryLedger``,
``LocalSigner``) are development defaults; production wiring supplies
real storage, ledger and wallet adapters.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from certforge.models.flow import UploadFile, UploadResult
from certforge.models.ledger import ObjectState, SignRequest, SubmitResponse, SuggestedParams


@runtime_checkable
class ContentStore(Protocol):
    """Content-addressed storage for files and metadata documents."""

    async def upload_files(
        self, files: Sequence[UploadFile], metadata_document: dict[str, Any]
    ) -> UploadResult:
        """Upload *files*, then the metadata document referencing them.

        Returns the metadata document's CID as ``content_locator``.
        Re-uploading identical input must be safe.
        """
        ...


@runtime_checkable
class LedgerClient(Protocol):
    """Node-side ledger operations."""

    async def get_suggested_params(self) -> SuggestedParams:
        ...

    async def submit_raw(self, signed: bytes) -> SubmitResponse:
        ...

    async def poll_confirmation(self, tx_id: str) -> dict[str, Any]:
        """Return the pending-transaction record for *tx_id*.

        A record with a positive ``confirmed-round`` means confirmed.
        """
        ...

    async def status(self) -> dict[str, Any]:
        """Return node status including ``last-round``."""
        ...

    async def wait_for_round(self, round_number: int) -> dict[str, Any]:
        """Block until the ledger has reached *round_number*."""
        ...

    async def get_object_by_id(self, object_id: int) -> ObjectState:
        ...


@runtime_checkable
class LedgerIndexer(Protocol):
    """Historical queries over confirmed transactions."""

    async def object_config_history(self, object_id: int) -> list[dict[str, Any]]:
        """Return the object's configuration transactions, oldest first."""
        ...


@runtime_checkable
class WalletSigner(Protocol):
    """A wallet that signs transaction groups for a single account.

    ``address`` is ``None`` while no account is connected.  ``sign`` raises
    ``SignatureRejectedError`` when the user declines and
    ``WalletConnectionError`` when the connection drops.
    """

    @property
    def address(self) -> str | None:
        ...

    async def sign(self, groups: Sequence[Sequence[SignRequest]]) -> list[bytes]:
        ...
