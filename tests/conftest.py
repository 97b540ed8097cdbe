"""Shared test fixtures for certforge."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from certforge.bridge.local_signer import LocalSigner
from certforge.bridge.local_store import LocalContentStore
from certforge.bridge.memory_ledger import MemoryLedger
from certforge.core.flow import CertificationOrchestrator
from certforge.models.flow import (
    CertificationData,
    CertificationParams,
    FlowOptions,
    UploadFile,
    UploadResult,
)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test blocks."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> LocalContentStore:
    """Provide a fresh LocalContentStore in a temp directory."""
    return LocalContentStore(tmp_dir / "blocks")


@pytest.fixture
def ledger() -> MemoryLedger:
    """Provide a fresh in-memory ledger starting at round 1000."""
    return MemoryLedger()


@pytest.fixture
def signer() -> LocalSigner:
    """Provide a signer with a deterministic account attached."""
    return LocalSigner.from_seed("test-account")


@pytest.fixture
def options() -> FlowOptions:
    """Flow options with a short polling budget and no wall-clock deadline."""
    return FlowOptions(confirmation_max_rounds=5, confirmation_timeout_seconds=None)


@pytest.fixture
def events() -> list[tuple[str, str | None, str | None]]:
    """Collects ``(session_id, step_id, state)`` for every listener call."""
    return []


@pytest.fixture
def make_orchestrator(
    store: LocalContentStore,
    ledger: MemoryLedger,
    signer: LocalSigner,
    options: FlowOptions,
    events: list[tuple[str, str | None, str | None]],
) -> Callable[..., CertificationOrchestrator]:
    """Factory fixture: orchestrator over the local backends, overridable."""

    def _listener(session, step) -> None:
        events.append(
            (session.session_id, step.id if step else None, step.state.value if step else None)
        )

    def _factory(**overrides: Any) -> CertificationOrchestrator:
        return CertificationOrchestrator(
            overrides.pop("store", store),
            overrides.pop("ledger", ledger),
            overrides.pop("signer", signer),
            options=overrides.pop("options", options),
            listener=overrides.pop("listener", _listener),
        )

    return _factory


@pytest.fixture
def orchestrator(make_orchestrator) -> CertificationOrchestrator:
    return make_orchestrator()


@pytest.fixture
def certification_params() -> CertificationParams:
    return CertificationParams(
        asset_name="Test certificate",
        unit_name="CERT",
        files=[UploadFile(name="doc.txt", content=b"hello certforge", content_type="text/plain")],
        certification_data=CertificationData(
            title="Test certificate",
            author="Tester",
            organization={"name": "Test Org"},
        ),
        form_data={"description": "A test certificate"},
    )


# ---------------------------------------------------------------------------
# Counting collaborators
# ---------------------------------------------------------------------------


class CountingStore:
    """Wraps a content store, counting calls and failing the first N."""

    def __init__(self, inner: LocalContentStore, *, failures: int = 0, message: str = "IPFS node unreachable") -> None:
        self.inner = inner
        self.failures = failures
        self.message = message
        self.calls = 0

    async def upload_files(
        self, files: Sequence[UploadFile], metadata_document: dict[str, Any]
    ) -> UploadResult:
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError(self.message)
        return await self.inner.upload_files(files, metadata_document)


@pytest.fixture
def counting_store(store: LocalContentStore) -> CountingStore:
    return CountingStore(store)
