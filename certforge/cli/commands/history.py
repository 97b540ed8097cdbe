"""``certforge history ADDRESS...``: resolve reserve addresses into versions.

Addresses are given oldest first, as they appear on the ledger.  The table
is printed newest first.
"""

from __future__ import annotations

import typer
from rich.console import Console

from certforge.config import config
from certforge.core.versions import resolve
from certforge.monitor.renderer import FlowRenderer

console = Console()


def history_cmd(
    addresses: list[str] = typer.Argument(
        ..., help="Reserve addresses in ledger order (oldest first)."
    ),
    object_id: int = typer.Option(0, "--object", "-o", help="Object id for the table title."),
) -> None:
    """Resolve a chain of reserve addresses into version records."""
    records = resolve(addresses, gateway=config.ipfs_gateway)
    FlowRenderer(console=console).print_history(object_id, records)

    broken = [r.ordinal for r in records if not r.decodable]
    if broken:
        console.print(
            f"[yellow]{len(broken)} version(s) not decodable:[/yellow] {broken}"
        )
