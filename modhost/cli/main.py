"""modhost CLI — Entry point.

Usage:
    modhost version
    modhost modules list [--dir PATH]
    modhost modules activate [--dir PATH] [--host-version V] [--no-auto] [--json]
"""

from __future__ import annotations

import typer
from rich.console import Console

from modhost.cli.commands import modules

app = typer.Typer(
    name="modhost",
    help="modhost — Discover, version-check and activate extension modules.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()

app.add_typer(modules.app, name="modules")


@app.callback()
def main_callback() -> None:
    pass


@app.command("version")
def version() -> None:
    """Print the host version modules are checked against."""
    from modhost.config import get_settings

    console.print(get_settings().effective_host_version())


if __name__ == "__main__":
    app()
