"""Module layer — Startup discovery.

Feeds the process-wide registry once at startup: every regular file in the
module directory is handed to the archive scanner, then (optionally) the
installed distributions exporting the ``modhost.modules`` entry-point group.
Calling these functions again is harmless because the registry never scans
the same archive twice.
"""

from __future__ import annotations

from pathlib import Path

from modhost.config import Settings, get_settings
from modhost.logging import get_logger
from modhost.modules.base import BaseModule
from modhost.modules.scanner import ArchiveScanner, ErrorCallback

log = get_logger(__name__)


def load_directory(
    directory: str | Path | None = None,
    scanner: ArchiveScanner | None = None,
    create: bool | None = None,
    on_error: ErrorCallback | None = None,
) -> set[type[BaseModule]]:
    """Scan every regular file in *directory* and return the types found."""
    settings = get_settings()
    directory = Path(directory) if directory is not None else settings.modules.directory
    create = settings.modules.create_directory if create is None else create
    scanner = scanner if scanner is not None else ArchiveScanner()

    if not directory.exists():
        if create:
            directory.mkdir(parents=True, exist_ok=True)
            log.info("module_directory_created", directory=str(directory))
        return set()
    if not directory.is_dir():
        log.warning("module_directory_invalid", directory=str(directory))
        return set()

    files = sorted(p for p in directory.iterdir() if p.is_file())
    if files:
        log.info("loading_external_modules", directory=str(directory), count=len(files))

    found: set[type[BaseModule]] = set()
    for path in files:
        found |= scanner.scan(path, on_error=on_error)
    return found


def bootstrap(
    settings: Settings | None = None,
    scanner: ArchiveScanner | None = None,
    on_error: ErrorCallback | None = None,
) -> set[type[BaseModule]]:
    """Run the configured startup discovery and return every type found."""
    settings = settings if settings is not None else get_settings()
    scanner = scanner if scanner is not None else ArchiveScanner()

    found = load_directory(
        settings.modules.directory,
        scanner=scanner,
        create=settings.modules.create_directory,
        on_error=on_error,
    )
    if settings.modules.discover_entry_points:
        found |= scanner.scan_entry_points(settings.modules.entry_point_group, on_error)
    return found
