"""Main Typer application; imports and registers all CLI commands.

Entry point: ``certforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer

from certforge.cli.commands.codec import address_to_cid_cmd, analyze_cmd, cid_to_address_cmd
from certforge.cli.commands.demo import demo_cmd
from certforge.cli.commands.history import history_cmd
from certforge.config import config

app = typer.Typer(
    name="certforge",
    help="certforge: ARC-19 content references and certification flows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to CERTFORGE_LOG_LEVEL).",
    ),
) -> None:
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
app.command(name="cid-to-address", help="Convert a CIDv1 to its reserve address.")(cid_to_address_cmd)
app.command(name="address-to-cid", help="Rebuild the CID stored in a reserve address.")(address_to_cid_cmd)
app.command(name="analyze", help="Classify a reserve value and explain it.")(analyze_cmd)
app.command(name="history", help="Resolve a chain of reserve addresses into versions.")(history_cmd)
app.command(name="demo", help="Run certification and versioning flows on local backends.")(demo_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
