"""Module layer — Descriptors, activation state and diagnostics.

A ModuleRecord is the per-session bookkeeping for one registered module
type.  Records only move forward through their lifecycle::

    DISCOVERED ──► INSTANTIATED ──► ACTIVATED
         │               │
         └───────────────┴──────► SKIPPED

Every SKIPPED record carries a :class:`Diagnostic` explaining why.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from modhost.exceptions import ModuleStateError
from modhost.modules.base import type_id

if TYPE_CHECKING:
    from modhost.modules.base import BaseModule


class ModuleState(str, Enum):
    DISCOVERED = "Discovered"
    INSTANTIATED = "Instantiated"
    ACTIVATED = "Activated"
    SKIPPED = "Skipped"


_TRANSITIONS: dict[ModuleState, frozenset[ModuleState]] = {
    ModuleState.DISCOVERED: frozenset({ModuleState.INSTANTIATED, ModuleState.SKIPPED}),
    ModuleState.INSTANTIATED: frozenset({ModuleState.ACTIVATED, ModuleState.SKIPPED}),
    ModuleState.ACTIVATED: frozenset(),
    ModuleState.SKIPPED: frozenset(),
}


class SkipReason(str, Enum):
    """Reason codes emitted on the diagnostics channel."""

    SCAN_FAILURE = "ScanFailure"
    INSTANTIATION_FAILURE = "InstantiationFailure"
    VERSION_GATE = "VersionGate"
    MISSING_DEPENDENCY = "MissingDependency"
    DEPENDENCY_CYCLE = "DependencyCycle"
    ACTIVATION_FAILURE = "ActivationFailure"


@dataclass
class Diagnostic:
    """A structured skip/failure message."""

    reason: SkipReason
    module_name: str
    type_id: str | None
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason.value,
            "module_name": self.module_name,
            "type_id": self.type_id,
            "message": self.message,
            "details": self.details,
        }


@dataclass(frozen=True)
class ModuleDescriptor:
    """Metadata exposed by a module instance."""

    type_id: str
    name: str
    author: str
    version: str
    minimum_host_version: str
    dependency: str | None = None

    @classmethod
    def from_instance(cls, module: "BaseModule") -> "ModuleDescriptor":
        """Read *module*'s metadata.

        Raises:
            TypeError: a metadata accessor returned something other than text.
        """
        fields = {
            "name": module.get_name(),
            "author": module.get_author(),
            "version": module.get_version(),
            "minimum_host_version": module.get_minimum_host_version(),
        }
        dependency = module.get_dependency()
        for key, value in fields.items():
            if not isinstance(value, str):
                raise TypeError(f"{key} must be a string, got {type(value).__name__}")
        if dependency is not None and not isinstance(dependency, str):
            raise TypeError(f"dependency must be a string, got {type(dependency).__name__}")
        return cls(type_id=type_id(type(module)), dependency=dependency, **fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_id": self.type_id,
            "name": self.name,
            "author": self.author,
            "version": self.version,
            "minimum_host_version": self.minimum_host_version,
            "dependency": self.dependency,
        }


@dataclass(eq=False)
class ModuleRecord:
    """Runtime state of one module type within a session."""

    module_class: type
    instance: "BaseModule | None" = None
    descriptor: ModuleDescriptor | None = None
    state: ModuleState = ModuleState.DISCOVERED
    diagnostic: Diagnostic | None = None

    @property
    def type_id(self) -> str:
        return type_id(self.module_class)

    @property
    def name(self) -> str:
        if self.descriptor is not None:
            return self.descriptor.name
        return self.module_class.__name__

    @property
    def dependency(self) -> str | None:
        return self.descriptor.dependency if self.descriptor else None

    def advance(self, target: ModuleState) -> None:
        """Move to *target*, refusing any transition that goes backwards."""
        if target not in _TRANSITIONS[self.state]:
            raise ModuleStateError(self.type_id, self.state.value, target.value)
        self.state = target

    def skip(self, diagnostic: Diagnostic) -> None:
        self.advance(ModuleState.SKIPPED)
        self.diagnostic = diagnostic

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_id": self.type_id,
            "name": self.name,
            "state": self.state.value,
            "descriptor": self.descriptor.to_dict() if self.descriptor else None,
            "diagnostic": self.diagnostic.to_dict() if self.diagnostic else None,
        }
