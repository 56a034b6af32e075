"""modhost — Exception hierarchy.

All exceptions raised by the host inherit from ModHostError so that callers
can catch the full family with a single except clause when needed.

Hierarchy:
    ModHostError
    ├── ModuleError
    │   ├── ModuleLoadError
    │   └── ModuleStateError
    ├── ScanError
    │   └── ArchiveScanError
    └── DependencyCycleError
"""

from __future__ import annotations

from typing import Any


class ModHostError(Exception):
    """Base exception for all modhost errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Module layer
# ---------------------------------------------------------------------------


class ModuleError(ModHostError):
    """Base for all module errors."""


class ModuleLoadError(ModuleError):
    """A module type could not be instantiated or its metadata could not be read."""

    def __init__(self, type_id: str, reason: str) -> None:
        super().__init__(
            f"Module '{type_id}' failed to load: {reason}",
            context={"type_id": type_id, "reason": reason},
        )
        self.type_id = type_id
        self.reason = reason


class ModuleStateError(ModuleError):
    """An activation state transition would move a module backwards."""

    def __init__(self, type_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Module '{type_id}' cannot move from {current} to {target}",
            context={"type_id": type_id, "current": current, "target": target},
        )
        self.type_id = type_id
        self.current = current
        self.target = target


# ---------------------------------------------------------------------------
# Discovery layer
# ---------------------------------------------------------------------------


class ScanError(ModHostError):
    """Base for all discovery errors."""


class ArchiveScanError(ScanError):
    """An archive, or one entry inside it, could not be read or imported."""

    def __init__(self, archive: str, reason: str, entry: str | None = None) -> None:
        where = f"{archive}!{entry}" if entry else archive
        super().__init__(
            f"Cannot scan '{where}': {reason}",
            context={"archive": archive, "entry": entry, "reason": reason},
        )
        self.archive = archive
        self.entry = entry
        self.reason = reason


# ---------------------------------------------------------------------------
# Activation layer
# ---------------------------------------------------------------------------


class DependencyCycleError(ModHostError):
    """Module dependencies form a loop and can never be satisfied."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(
            f"Dependency cycle detected: {' -> '.join(cycle)}",
            context={"cycle": cycle},
        )
        self.cycle = cycle
