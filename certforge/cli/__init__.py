"""certforge CLI, Typer-based.

Provides the ``certforge`` command with subcommands for converting between
CIDs and reserve addresses, inspecting reserve values, resolving version
chains and running a local demo of the certification flow.

All output uses Rich for formatted terminal display.
"""
