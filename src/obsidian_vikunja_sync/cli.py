"""Command-line interface for the sync service."""

from __future__ import annotations

import typer

from .cli_commands import core_commands

app = typer.Typer(
    name="obsidian-vikunja-sync",
    help="Two-way sync between Obsidian task notes and Vikunja.",
    no_args_is_help=True,
)

core_commands.register(app)


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
