"""Module layer — BaseModule contract, registry, scanner and activation engine."""

from modhost.modules.base import BaseModule, HostContext, requires, type_id
from modhost.modules.bootstrap import bootstrap, load_directory
from modhost.modules.descriptor import (
    Diagnostic,
    ModuleDescriptor,
    ModuleRecord,
    ModuleState,
    SkipReason,
)
from modhost.modules.engine import ActivationEngine
from modhost.modules.registry import ModuleRegistry, get_registry, override_registry
from modhost.modules.scanner import ArchiveScanner

__all__ = [
    "BaseModule",
    "HostContext",
    "requires",
    "type_id",
    "ModuleDescriptor",
    "ModuleRecord",
    "ModuleState",
    "SkipReason",
    "Diagnostic",
    "ModuleRegistry",
    "get_registry",
    "override_registry",
    "ArchiveScanner",
    "ActivationEngine",
    "load_directory",
    "bootstrap",
]
