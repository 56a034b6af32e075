"""Module layer — Activation engine.

One ActivationEngine exists per host session.  On construction it:

  1. Instantiates every registered module type, in registration order.
     A type that cannot be constructed is skipped (``InstantiationFailure``).
  2. Applies the host version gate to each instance (``VersionGate``).
  3. When ``auto_activate`` is set, enables the admitted modules in an order
     that satisfies their declared dependencies.

Activation loop
---------------
``pending`` starts as every admitted module in admission order and is swept
front to back until it is empty:

  - no dependency, or dependency already activated → ``enable(host)``
  - dependency still pending → wait for a later sweep
  - dependency neither pending nor activated → ``MissingDependency``

A sweep that neither activates nor skips anything means every remaining
module waits, directly or transitively, on a dependency cycle.  They are all
skipped with ``DependencyCycle``, so the loop runs at most ``len(pending)``
sweeps.

A module whose ``enable`` raises is skipped with ``ActivationFailure``;
modules that depend on it then resolve to ``MissingDependency``.
"""

from __future__ import annotations

import uuid
from typing import Any

import networkx as nx

from modhost.config import get_settings
from modhost.exceptions import DependencyCycleError, ModuleLoadError
from modhost.logging import get_logger
from modhost.modules.base import BaseModule, type_id
from modhost.modules.descriptor import (
    Diagnostic,
    ModuleDescriptor,
    ModuleRecord,
    ModuleState,
    SkipReason,
)
from modhost.modules.registry import ModuleRegistry, get_registry
from modhost.modules.versioning import check_host_version

log = get_logger(__name__)


class ActivationEngine:
    """Per-session module instantiation and dependency-ordered activation.

    Usage::

        engine = ActivationEngine(host, auto_activate=True, host_version="2.2.0")
        [m.get_name() for m in engine.activated]   # enable order
        [d.reason for d in engine.diagnostics]     # why anything was skipped
    """

    def __init__(
        self,
        host: Any,
        auto_activate: bool | None = None,
        host_version: str | None = None,
        registry: ModuleRegistry | None = None,
    ) -> None:
        settings = None
        if auto_activate is None or host_version is None:
            settings = get_settings()
        self._host = host
        self._auto_activate = (
            settings.modules.auto_activate if auto_activate is None else auto_activate
        )
        self._host_version = (
            settings.effective_host_version() if host_version is None else host_version
        )
        self._registry = registry if registry is not None else get_registry()
        self.session_id = uuid.uuid4().hex[:12]
        self._log = log.bind(session_id=self.session_id)

        self._records: list[ModuleRecord] = []
        self._admitted: list[ModuleRecord] = []
        self._activated: list[ModuleRecord] = []
        self._diagnostics: list[Diagnostic] = []

        self._instantiate_all()
        if self._auto_activate:
            self.activate()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def host(self) -> Any:
        return self._host

    @property
    def host_version(self) -> str:
        return self._host_version

    @property
    def auto_activate(self) -> bool:
        return self._auto_activate

    @property
    def activated(self) -> list[BaseModule]:
        """Activated module instances, in the exact order they were enabled."""
        return [r.instance for r in self._activated if r.instance is not None]

    @property
    def loaded_modules(self) -> list[BaseModule]:
        """Admitted module instances that have not been skipped."""
        return [
            r.instance
            for r in self._admitted
            if r.state is not ModuleState.SKIPPED and r.instance is not None
        ]

    @property
    def records(self) -> list[ModuleRecord]:
        return list(self._records)

    @property
    def skipped(self) -> list[ModuleRecord]:
        return [r for r in self._records if r.state is ModuleState.SKIPPED]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return list(self._diagnostics)

    def get_record(self, module_type_id: str) -> ModuleRecord | None:
        for record in self._records:
            if record.type_id == module_type_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Instantiation + version gate
    # ------------------------------------------------------------------

    def _instantiate_all(self) -> None:
        for module_class in self._registry.all_registered():
            record = ModuleRecord(module_class=module_class)
            self._records.append(record)
            try:
                record.instance, record.descriptor = self._instantiate(module_class)
            except ModuleLoadError as exc:
                self._skip(record, SkipReason.INSTANTIATION_FAILURE, exc.message, exc.context)
                continue
            record.advance(ModuleState.INSTANTIATED)

            descriptor = record.descriptor
            self._log.info(
                "module_loading",
                module=descriptor.name,
                version=descriptor.version,
                author=descriptor.author,
            )
            gate = check_host_version(descriptor.minimum_host_version, self._host_version)
            if not gate.admitted:
                self._skip(
                    record,
                    SkipReason.VERSION_GATE,
                    f"Module '{descriptor.name}' expects host v{gate.required}, "
                    f"running v{gate.actual}: {gate.reason}",
                    {"required": gate.required, "actual": gate.actual},
                )
                continue
            self._admitted.append(record)

    @staticmethod
    def _instantiate(
        module_class: type[BaseModule],
    ) -> tuple[BaseModule, ModuleDescriptor]:
        try:
            instance = module_class()
            return instance, ModuleDescriptor.from_instance(instance)
        except Exception as exc:
            raise ModuleLoadError(
                type_id(module_class), f"{type(exc).__name__}: {exc}"
            ) from exc

    def load_module(self, module: BaseModule) -> ModuleRecord:
        """Manually add *module* to this session.  Does not enable it.

        The instance bypasses the registry and the version gate; it is
        enabled by the next :meth:`activate` call.
        """
        record = ModuleRecord(
            module_class=type(module),
            instance=module,
            descriptor=ModuleDescriptor.from_instance(module),
        )
        record.advance(ModuleState.INSTANTIATED)
        self._records.append(record)
        self._admitted.append(record)
        self._log.debug("module_loaded_manually", type_id=record.type_id)
        return record

    # ------------------------------------------------------------------
    # Activation loop
    # ------------------------------------------------------------------

    def activate(self) -> list[BaseModule]:
        """Enable every admitted, not yet activated module in dependency order.

        Returns the modules enabled by this call, in enable order.
        """
        pending = [r for r in self._admitted if r.state is ModuleState.INSTANTIATED]
        activated_ids = {r.type_id for r in self._activated}
        enabled_now: list[BaseModule] = []

        while pending:
            progressed = False
            for record in list(pending):
                dependency = record.dependency
                if dependency is not None and dependency not in activated_ids:
                    if any(p.type_id == dependency for p in pending):
                        continue
                    pending.remove(record)
                    progressed = True
                    self._skip(
                        record,
                        SkipReason.MISSING_DEPENDENCY,
                        f"Module '{record.name}' is missing required module {dependency}",
                        {"dependency": dependency},
                    )
                    continue

                pending.remove(record)
                progressed = True
                if self._enable(record):
                    activated_ids.add(record.type_id)
                    enabled_now.append(record.instance)

            if not progressed:
                self._skip_cycle(pending)
                pending = []

        return enabled_now

    def _enable(self, record: ModuleRecord) -> bool:
        try:
            record.instance.enable(self._host)
        except Exception as exc:
            self._skip(
                record,
                SkipReason.ACTIVATION_FAILURE,
                f"Module '{record.name}' failed to enable: {type(exc).__name__}: {exc}",
                {"error": str(exc)},
            )
            return False
        record.advance(ModuleState.ACTIVATED)
        self._activated.append(record)
        self._log.info("module_activated", module=record.name, type_id=record.type_id)
        return True

    def _skip_cycle(self, stuck: list[ModuleRecord]) -> None:
        """Skip every module left waiting once no sweep can make progress."""
        graph: nx.DiGraph = nx.DiGraph()
        for record in stuck:
            graph.add_edge(record.type_id, record.dependency)

        in_cycle: dict[str, list[str]] = {}
        for cycle in nx.simple_cycles(graph):
            for member in cycle:
                in_cycle.setdefault(member, cycle)

        for record in stuck:
            cycle = in_cycle.get(record.type_id)
            if cycle is not None:
                start = cycle.index(record.type_id)
                ordered = cycle[start:] + cycle[:start]
                error = DependencyCycleError(ordered + [record.type_id])
                self._skip(record, SkipReason.DEPENDENCY_CYCLE, error.message, error.context)
            else:
                self._skip(
                    record,
                    SkipReason.DEPENDENCY_CYCLE,
                    f"Module '{record.name}' waits on {record.dependency}, "
                    "which is part of a dependency cycle",
                    {"blocked_by": record.dependency},
                )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _skip(
        self,
        record: ModuleRecord,
        reason: SkipReason,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        diagnostic = Diagnostic(
            reason=reason,
            module_name=record.name,
            type_id=record.type_id,
            message=message,
            details=dict(details or {}),
        )
        record.skip(diagnostic)
        self._diagnostics.append(diagnostic)
        self._log.warning("module_skipped", **diagnostic.to_dict())

    def status_report(self) -> dict[str, Any]:
        """Return a structured summary of the session.

        Schema::

            {
                "session_id": "3f2a9c0b1d4e",
                "host_version": "2.2.0",
                "activated": ["plugins.logger.LoggerModule"],
                "pending": [],
                "skipped": [{"reason": "VersionGate", ...}]
            }
        """
        return {
            "session_id": self.session_id,
            "host_version": self._host_version,
            "activated": [r.type_id for r in self._activated],
            "pending": [
                r.type_id for r in self._admitted if r.state is ModuleState.INSTANTIATED
            ],
            "skipped": [d.to_dict() for d in self._diagnostics],
        }
