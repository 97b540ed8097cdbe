"""Rich terminal rendering for flow progress and version history.

Color scheme
------------
- green  : SUCCESS
- red    : ERROR
- yellow : ACTIVE
- dim    : PENDING
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from certforge.models.steps import StepState

if TYPE_CHECKING:
    from certforge.core.flow import FlowSession
    from certforge.models.codec import ReferenceAnalysis, RoundTripReport
    from certforge.models.flow import FlowResult
    from certforge.models.steps import FlowStep
    from certforge.models.versions import VersionRecord


# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

_STATE_STYLES: dict[StepState, str] = {
    StepState.SUCCESS: "bold green",
    StepState.ERROR: "bold red",
    StepState.ACTIVE: "bold yellow",
    StepState.PENDING: "dim",
}

_STATE_LABELS: dict[StepState, str] = {
    StepState.SUCCESS: "[green]SUCCESS[/green]",
    StepState.ERROR: "[bold red]ERROR[/bold red]",
    StepState.ACTIVE: "[yellow]ACTIVE[/yellow]",
    StepState.PENDING: "[dim]PENDING[/dim]",
}


def _format_timestamp(timestamp: int | None) -> str:
    if timestamp is None:
        return "[dim]-[/dim]"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class FlowRenderer:
    """Renders flow sessions, results and version chains to a console.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Flow progress
    # ------------------------------------------------------------------

    def render_session(self, session: FlowSession) -> Panel:
        table = self._build_step_table(session.steps)
        done = sum(1 for s in session.steps if s.state == StepState.SUCCESS)
        summary_parts = [
            f"[bold]Session:[/bold] {session.session_id}",
            f"[bold]Flow:[/bold] {session.flow_type.value}",
            f"[bold]Progress:[/bold] {done}/{len(session.step_ids)}",
        ]
        if session.failed_step:
            summary_parts.append(
                f"[bold red]Failed:[/bold red] {session.failed_step} (retry available)"
            )
        summary = "  |  ".join(summary_parts)

        return Panel(
            Group(table, Text(""), Text.from_markup(summary)),
            title="[bold]Certification Flow[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def _build_step_table(self, steps: list[FlowStep]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Step", min_width=22)
        table.add_column("State", min_width=10, justify="center")
        table.add_column("Details", min_width=30)

        for i, step in enumerate(steps, start=1):
            style = _STATE_STYLES.get(step.state, "")
            if step.error:
                details = f"[red]{step.error}[/red]"
            elif step.details:
                details = step.details
            else:
                details = f"[dim]{step.description}[/dim]"
            table.add_row(
                str(i),
                f"[{style}]{step.title}[/{style}]",
                _STATE_LABELS.get(step.state, step.state.value),
                details,
            )
        return table

    def print_session(self, session: FlowSession) -> None:
        self.console.print(self.render_session(session))

    def print_result(self, result: FlowResult) -> None:
        lines = [
            "[bold green]Flow complete[/bold green]",
            "",
            f"[bold]Object:[/bold]       {result.object_id}",
            f"[bold]Reserve:[/bold]      {result.reserve_address}",
            f"[bold]Metadata:[/bold]     {result.metadata_cid}",
            f"[bold]Gateway:[/bold]      {result.gateway_url}",
            f"[bold]Configure tx:[/bold] {result.configure_transaction_id}",
            f"[bold]Round:[/bold]        {result.confirmed_round}",
        ]
        if result.create_transaction_id:
            lines.insert(3, f"[bold]Create tx:[/bold]    {result.create_transaction_id}")
        for f in result.files:
            lines.append(f"[bold]File:[/bold]         {f.name} -> {f.cid}")
        self.console.print(
            Panel("\n".join(lines), title="[bold]Result[/bold]", border_style="green", padding=(1, 2))
        )

    # ------------------------------------------------------------------
    # Version history
    # ------------------------------------------------------------------

    def render_history(self, object_id: int, records: list[VersionRecord]) -> Table:
        """Render a version chain newest-first."""
        table = Table(
            title=f"Version history for object {object_id}",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("v", style="dim", width=4, justify="right")
        table.add_column("Time (UTC)", width=20)
        table.add_column("Transaction", min_width=14)
        table.add_column("CID / error", min_width=30)
        table.add_column("Changes")

        for record in reversed(records):
            if record.decodable:
                reference = f"[green]{record.cid}[/green]"
            else:
                reference = f"[red]{record.decode_error}[/red]"
            table.add_row(
                str(record.ordinal),
                _format_timestamp(record.timestamp),
                record.source_transaction_id[:14],
                reference,
                "; ".join(record.change_description),
            )
        return table

    def print_history(self, object_id: int, records: list[VersionRecord]) -> None:
        if not records:
            self.console.print(f"[dim]No reserve history for object {object_id}.[/dim]")
            return
        self.console.print(self.render_history(object_id, records))

    # ------------------------------------------------------------------
    # Codec diagnostics
    # ------------------------------------------------------------------

    def print_analysis(self, analysis: ReferenceAnalysis) -> None:
        table = Table(show_header=False, box=None)
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Kind", analysis.kind.value)
        table.add_row("Content", analysis.content or "[dim](empty)[/dim]")
        for line in analysis.details:
            table.add_row("", line)
        self.console.print(table)

    def print_round_trip(self, report: RoundTripReport) -> None:
        if report.success and report.matches:
            self.console.print(f"[green]Round trip OK:[/green] {report.generated_cid}")
        elif report.success:
            self.console.print(
                f"[bold red]Round trip mismatch:[/bold red] "
                f"{report.original_address} -> {report.reconstructed_address}"
            )
        else:
            self.console.print(f"[bold red]Round trip failed:[/bold red] {report.error}")
