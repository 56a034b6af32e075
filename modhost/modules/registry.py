"""Module layer — Module registry.

The registry is the process-wide record of every module type discovered so
far.  It handles:
  - Append-only registration, deduplicated by class identity
  - Registration order, which the activation engine uses as tie-break order
  - The set of archive identities already scanned, so an archive reachable
    through several paths or discovered twice is only imported once

All mutation happens under one re-entrant lock.  The archive scanner holds
that lock across claim, import and registration, which makes
scan-then-register atomic per archive.

Sessions never mutate the registry; they only read ``all_registered()``.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from modhost.logging import get_logger
from modhost.modules.base import BaseModule, type_id

log = get_logger(__name__)


class ModuleRegistry:
    """Ordered, append-only set of module types.

    Usage::

        registry = ModuleRegistry()
        registry.register(LoggerModule)
        registry.register(MetricsModule)
        registry.all_registered()   # (LoggerModule, MetricsModule)
    """

    def __init__(self) -> None:
        # dict preserves insertion order; values are unused.
        self._classes: dict[type[BaseModule], None] = {}
        self._archives: set[str] = set()
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["ModuleRegistry"]:
        """Hold the registry lock for a compound operation."""
        with self._lock:
            yield self

    def register(self, module_class: type[BaseModule]) -> bool:
        """Register a module class.  Returns False if it was already known."""
        if not (isinstance(module_class, type) and issubclass(module_class, BaseModule)):
            raise TypeError(f"{module_class!r} is not a BaseModule subclass.")

        with self._lock:
            if module_class in self._classes:
                log.debug("module_already_registered", type_id=type_id(module_class))
                return False
            self._classes[module_class] = None

        log.debug(
            "module_registered",
            type_id=type_id(module_class),
            version=getattr(module_class, "VERSION", None),
        )
        return True

    def all_registered(self) -> tuple[type[BaseModule], ...]:
        """Return every registered type in registration order."""
        with self._lock:
            return tuple(self._classes)

    def claim_archive(self, identity: str) -> bool:
        """Atomically mark *identity* as scanned.

        Returns True for the first caller and False for every later one.
        """
        with self._lock:
            if identity in self._archives:
                return False
            self._archives.add(identity)
            return True

    def has_archive(self, identity: str) -> bool:
        with self._lock:
            return identity in self._archives

    def __len__(self) -> int:
        with self._lock:
            return len(self._classes)

    def __contains__(self, module_class: object) -> bool:
        with self._lock:
            return module_class in self._classes


# Process-wide singleton, shared by every session.
_registry: ModuleRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ModuleRegistry:
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ModuleRegistry()
    return _registry


def override_registry(registry: ModuleRegistry | None) -> None:
    """Replace the process-wide registry. Used in tests."""
    global _registry
    with _registry_lock:
        _registry = registry
