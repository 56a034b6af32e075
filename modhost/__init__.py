"""modhost — Module host with dependency-ordered activation.

modhost discovers independently packaged extension modules, instantiates
them, checks that the running host is recent enough for each one and enables
them in an order that satisfies their declared dependencies.

Architecture layers (bottom to top):
    1. Contract  — BaseModule lifecycle + metadata accessors
    2. Discovery — archive scanner, entry-point scanner, directory bootstrap
    3. Registry  — process-wide, append-only set of module types
    4. Engine    — per-session instantiation, version gate, activation loop
    5. CLI       — Typer commands for listing and activating modules
"""

__version__ = "2.2.0"
__author__ = "modhost Contributors"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
