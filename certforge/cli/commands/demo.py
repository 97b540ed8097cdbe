"""``certforge demo``: run a certification and versioning flow locally.

Uses the on-disk content store, the in-memory ledger and a local signer,
so no network access is needed.  Failures can be injected to watch the
retry path: a failed step is retried in place, earlier steps are reused.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from certforge.bridge.local_signer import LocalSigner
from certforge.bridge.local_store import LocalContentStore
from certforge.bridge.memory_ledger import MemoryLedger
from certforge.config import config
from certforge.core.flow import CertificationOrchestrator, FlowSession
from certforge.core.versions import resolve_object_history
from certforge.models.flow import (
    CertificationData,
    CertificationParams,
    UploadFile,
    VersioningParams,
)
from certforge.monitor.renderer import FlowRenderer

console = Console()


def _sample_files(revision: int) -> list[UploadFile]:
    body = f"Certified document, revision {revision}\n".encode("utf-8")
    return [UploadFile(name=f"document-r{revision}.txt", content=body, content_type="text/plain")]


async def _drive(
    orchestrator: CertificationOrchestrator,
    session: FlowSession,
    renderer: FlowRenderer,
    max_retries: int,
) -> bool:
    """Retry the failed step until the flow completes or retries run out."""
    attempts = 0
    while session.failed_step is not None and attempts < max_retries:
        attempts += 1
        step_id = session.failed_step
        console.print(f"[yellow]Retrying {step_id} (attempt {attempts})...[/yellow]")
        await orchestrator.retry_step(step_id)
        renderer.print_session(session)
    return session.is_complete


async def _run_demo(
    store_path: Path,
    versions: int,
    fail_upload: int,
    fail_submit: int,
    reject_signature: int,
    max_retries: int,
) -> int:
    store = LocalContentStore(store_path, gateway=config.ipfs_gateway, fail_uploads=fail_upload)
    ledger = MemoryLedger()
    ledger.fail_submits = fail_submit
    signer = LocalSigner.from_seed("certforge-demo")
    signer.reject_next = reject_signature

    renderer = FlowRenderer(console=console)
    orchestrator = CertificationOrchestrator(store, ledger, signer, options=config.flow_options())

    data = CertificationData(
        asset_type="document",
        unique_id="DEMO-001",
        title="Demo certificate",
        author="certforge",
        creation_date="2024-01-01",
        organization={"name": "certforge demo"},
    )
    params = CertificationParams(
        asset_name="Demo certificate",
        unit_name="CERT",
        files=_sample_files(1),
        certification_data=data,
        form_data={"description": "Certificate issued by the certforge demo"},
    )

    console.print(f"[bold]Signer:[/bold] {signer.address}")
    session = await orchestrator.run_flow("certification", params)
    renderer.print_session(session)
    if not await _drive(orchestrator, session, renderer, max_retries):
        console.print(f"[bold red]Certification failed at {session.failed_step}[/bold red]")
        return 1
    assert session.result is not None
    renderer.print_result(session.result)

    object_id = session.result.object_id
    reserve = session.result.reserve_address
    for revision in range(2, versions + 2):
        console.print(f"\n[cyan]>>> Publishing revision {revision}[/cyan]")
        update = VersioningParams(
            object_id=object_id,
            existing_reserve_address=reserve,
            files=_sample_files(revision),
            certification_data=data,
            form_data={"description": f"Revision {revision}"},
        )
        session = await orchestrator.run_flow("versioning", update)
        renderer.print_session(session)
        if not await _drive(orchestrator, session, renderer, max_retries):
            console.print(f"[bold red]Versioning failed at {session.failed_step}[/bold red]")
            return 1
        assert session.result is not None
        reserve = session.result.reserve_address

    records = await resolve_object_history(ledger, object_id, gateway=config.ipfs_gateway)
    console.print()
    renderer.print_history(object_id, records)
    return 0


def demo_cmd(
    versions: int = typer.Option(
        2, "--versions", "-n", min=0, help="Number of versioning flows after certification."
    ),
    store_dir: str = typer.Option(
        None, "--store", help="Block store directory (defaults to CERTFORGE_STORE_PATH)."
    ),
    fail_upload: int = typer.Option(
        0, "--fail-upload", help="Fail the first N uploads to exercise retry."
    ),
    fail_submit: int = typer.Option(
        0, "--fail-submit", help="Fail the first N ledger submissions."
    ),
    reject_signature: int = typer.Option(
        0, "--reject-signature", help="Reject the first N signature requests."
    ),
    max_retries: int = typer.Option(
        3, "--max-retries", help="Retries per flow before giving up."
    ),
) -> None:
    """Run a complete certification plus versioning demo on local backends."""
    console.print(
        Panel(
            "[bold]certforge demo[/bold]\n\n"
            "Certifies a sample document, publishes new versions and\n"
            "resolves the object's version history.",
            border_style="cyan",
            padding=(1, 2),
        )
    )
    path = Path(store_dir) if store_dir else config.store_path
    code = asyncio.run(
        _run_demo(path, versions, fail_upload, fail_submit, reject_signature, max_retries)
    )
    if code:
        raise typer.Exit(code=code)
