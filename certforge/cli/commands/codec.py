"""``certforge cid-to-address`` / ``address-to-cid`` / ``analyze``.

Pure codec commands; no network access.  Format errors exit with code 1
and print the error message.
"""

from __future__ import annotations

import typer
from rich.console import Console

from certforge.config import config
from certforge.core.arc19 import (
    address_to_cid,
    analyze_reference,
    check_round_trip,
    cid_to_address,
    gateway_url,
)
from certforge.core.errors import CodecError
from certforge.monitor.renderer import FlowRenderer

console = Console()


def cid_to_address_cmd(
    cid: str = typer.Argument(..., help="CIDv1 (raw, sha2-256) in base32 form."),
) -> None:
    """Print the reserve address that stores *cid*'s digest."""
    try:
        address = cid_to_address(cid)
    except CodecError as exc:
        console.print(f"[bold red]Invalid CID:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(address)


def address_to_cid_cmd(
    address: str = typer.Argument(..., help="58-character reserve address."),
    show_url: bool = typer.Option(
        False, "--url", "-u", help="Also print a gateway URL for the CID."
    ),
) -> None:
    """Print the CID whose digest is stored in *address*."""
    try:
        cid = address_to_cid(address)
    except CodecError as exc:
        console.print(f"[bold red]Invalid address:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(cid)
    if show_url:
        console.print(gateway_url(cid, config.ipfs_gateway))


def analyze_cmd(
    value: str = typer.Argument("", help="Reserve slot value to inspect."),
    round_trip: bool = typer.Option(
        False, "--round-trip", "-r", help="Also check address -> CID -> address."
    ),
) -> None:
    """Classify a reserve value and explain what it holds."""
    renderer = FlowRenderer(console=console)
    renderer.print_analysis(analyze_reference(value))
    if round_trip and value:
        renderer.print_round_trip(check_round_trip(value))
