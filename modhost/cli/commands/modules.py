"""CLI — Module discovery and activation commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from modhost.config import get_settings
from modhost.logging import configure_logging
from modhost.modules.base import HostContext, type_id
from modhost.modules.bootstrap import load_directory
from modhost.modules.engine import ActivationEngine
from modhost.modules.registry import get_registry

app = typer.Typer(help="Discover and activate extension modules.")
console = Console()


def _discover(directory: Optional[Path]) -> None:
    settings = get_settings()
    configure_logging(level=settings.logging.level, format=settings.logging.format,
                      log_file=settings.logging.log_file)
    load_directory(directory, create=False)


@app.command("list")
def list_modules(
    directory: Optional[Path] = typer.Option(
        None, "--dir", help="Module directory (defaults to modules.directory)."
    ),
) -> None:
    """List every registered module type."""
    _discover(directory)

    table = Table(title="Registered Modules")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Min host")
    table.add_column("Requires")

    for module_class in get_registry().all_registered():
        table.add_row(
            type_id(module_class),
            getattr(module_class, "NAME", "") or module_class.__name__,
            getattr(module_class, "VERSION", "-"),
            getattr(module_class, "MINIMUM_HOST_VERSION", "-"),
            getattr(module_class, "REQUIRES", None) or "-",
        )
    console.print(table)


@app.command("activate")
def activate_modules(
    directory: Optional[Path] = typer.Option(
        None, "--dir", help="Module directory (defaults to modules.directory)."
    ),
    host_version: Optional[str] = typer.Option(
        None, "--host-version", help="Override the host version used by the version gate."
    ),
    auto: bool = typer.Option(True, "--auto/--no-auto", help="Enable admitted modules."),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON."),
) -> None:
    """Run one activation session and report the outcome."""
    _discover(directory)

    settings = get_settings()
    version = host_version or settings.effective_host_version()
    engine = ActivationEngine(
        HostContext(version=version, settings=settings),
        auto_activate=auto,
        host_version=version,
    )

    if json_output:
        console.print(Syntax(json.dumps(engine.status_report(), indent=2), "json"))
        return

    console.print(f"[bold]Host[/bold] v{version}  session {engine.session_id}")
    if engine.activated:
        order = " -> ".join(m.get_name() for m in engine.activated)
        console.print(f"[green]Activated:[/green] {order}")
    else:
        console.print("[yellow]No module activated.[/yellow]")

    if engine.diagnostics:
        table = Table(title="Skipped")
        table.add_column("Module", style="cyan")
        table.add_column("Reason", style="red")
        table.add_column("Message")
        for diagnostic in engine.diagnostics:
            table.add_row(diagnostic.module_name, diagnostic.reason.value, diagnostic.message)
        console.print(table)
