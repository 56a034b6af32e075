"""Module layer — Archive scanner.

Turns packaged code into registered module types.  Supported archive kinds:

  - Zip-format archives (``.zip``, ``.whl``, ``.pyz``, ...): the archive is
    appended to ``sys.path`` and every importable ``*.py`` entry is imported.
    When the archive carries a ``modhost.json`` manifest at its root, only
    the types it lists are resolved::

        {"modules": ["greeter.module:GreeterModule"]}

  - A single ``*.py`` source file.  It is imported under a private name
    (``modhost_ext_<digest>_<stem>``) so it can never shadow an installed
    module, nor another file with the same stem.

Installed distributions can also export module types through the
``modhost.modules`` entry-point group (see :meth:`ArchiveScanner.scan_entry_points`).

Every archive is identified by its resolved absolute path.  The identity is
claimed in the registry before any filesystem or import work, so scanning is
idempotent.  Failures are entry-local: the failing entry is reported as a
``ScanFailure`` diagnostic and the rest of the archive is still scanned.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.metadata
import importlib.util
import json
import sys
import zipfile
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Iterable

from modhost.exceptions import ArchiveScanError
from modhost.logging import get_logger
from modhost.modules.base import BaseModule
from modhost.modules.descriptor import Diagnostic, SkipReason
from modhost.modules.registry import ModuleRegistry, get_registry

log = get_logger(__name__)

MANIFEST_NAME = "modhost.json"
DEFAULT_ENTRY_POINT_GROUP = "modhost.modules"
SOURCE_MODULE_PREFIX = "modhost_ext_"

ErrorCallback = Callable[[Diagnostic], None]


def archive_identity(archive: str | Path) -> str:
    """Return the canonical identity of *archive*: its resolved absolute path."""
    return str(Path(archive).expanduser().resolve())


def _entry_module_name(entry: str) -> str | None:
    """Map a zip entry (``pkg/mod.py``) to an importable name (``pkg.mod``)."""
    if not entry.endswith(".py"):
        return None
    parts = entry[: -len(".py")].split("/")
    if parts[-1] == "__init__":
        parts = parts[:-1]
    if not parts or parts[-1] == "__main__":
        return None
    if not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)


def source_module_name(path: Path) -> str:
    """Return the private import name used for the single source file *path*."""
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:10]
    return f"{SOURCE_MODULE_PREFIX}{digest}_{path.stem}"


def _module_types(module: ModuleType) -> list[type[BaseModule]]:
    """Return BaseModule subclasses defined in *module*, in definition order."""
    return [
        obj
        for obj in vars(module).values()
        if isinstance(obj, type)
        and issubclass(obj, BaseModule)
        and obj is not BaseModule
        and obj.__module__ == module.__name__
    ]


class ArchiveScanner:
    """Discovers module types and registers them in a :class:`ModuleRegistry`.

    Usage::

        scanner = ArchiveScanner()
        found = scanner.scan("modules/greeter.zip")
        again = scanner.scan("modules/greeter.zip")   # set() — already scanned
    """

    def __init__(self, registry: ModuleRegistry | None = None) -> None:
        self._registry = registry if registry is not None else get_registry()
        self._failures: list[Diagnostic] = []

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def failures(self) -> list[Diagnostic]:
        """Every ScanFailure reported by this scanner."""
        return list(self._failures)

    # ------------------------------------------------------------------
    # Archives
    # ------------------------------------------------------------------

    def scan(
        self, archive: str | Path, on_error: ErrorCallback | None = None
    ) -> set[type[BaseModule]]:
        """Scan *archive* and register every module type it contains.

        Returns the newly discovered types; an empty set when the archive was
        already scanned or contains no module.
        """
        identity = archive_identity(archive)
        with self._registry.locked():
            if not self._registry.claim_archive(identity):
                log.debug("archive_already_scanned", archive=identity)
                return set()

            found = self._scan_claimed(Path(identity), on_error)
            for module_class in found:
                self._registry.register(module_class)

        log.info("archive_scanned", archive=identity, found=len(found))
        return set(found)

    def _scan_claimed(
        self, path: Path, on_error: ErrorCallback | None
    ) -> list[type[BaseModule]]:
        if not path.is_file():
            self._report(on_error, path, "not a regular file")
            return []
        if path.suffix == ".py":
            return self._scan_source_file(path, on_error)
        if zipfile.is_zipfile(path):
            return self._scan_zip(path, on_error)
        self._report(on_error, path, "unsupported archive format")
        return []

    def _scan_source_file(
        self, path: Path, on_error: ErrorCallback | None
    ) -> list[type[BaseModule]]:
        name = source_module_name(path)
        try:
            if not path.stem.isidentifier():
                raise ArchiveScanError(str(path), f"'{path.stem}' is not a valid module name")
            if name in sys.modules:
                raise ArchiveScanError(str(path), f"module name '{name}' is already imported")
            module = self._load_source(name, path)
        except ArchiveScanError as exc:
            self._report(on_error, path, exc.reason)
            return []
        return _module_types(module)

    @staticmethod
    def _load_source(name: str, path: Path) -> ModuleType:
        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise ArchiveScanError(str(path), "no import loader for file")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(name, None)
            raise ArchiveScanError(str(path), f"{type(exc).__name__}: {exc}") from exc
        return module

    def _scan_zip(
        self, path: Path, on_error: ErrorCallback | None
    ) -> list[type[BaseModule]]:
        try:
            with zipfile.ZipFile(path) as archive:
                entries = sorted(
                    info.filename for info in archive.infolist() if not info.is_dir()
                )
                manifest = (
                    archive.read(MANIFEST_NAME) if MANIFEST_NAME in entries else None
                )
        except (OSError, zipfile.BadZipFile) as exc:
            self._report(on_error, path, str(exc))
            return []

        location = str(path)
        if location not in sys.path:
            sys.path.append(location)

        if manifest is not None:
            return self._resolve_manifest(path, manifest, on_error)

        found: list[type[BaseModule]] = []
        for entry in entries:
            module_name = _entry_module_name(entry)
            if module_name is None:
                continue
            try:
                module = self._import(path, entry, module_name)
            except ArchiveScanError as exc:
                self._report(on_error, path, exc.reason, entry=entry)
                continue
            for module_class in _module_types(module):
                if module_class not in found:
                    found.append(module_class)
        return found

    def _resolve_manifest(
        self, path: Path, raw: bytes, on_error: ErrorCallback | None
    ) -> list[type[BaseModule]]:
        try:
            declared = json.loads(raw).get("modules", [])
            if not isinstance(declared, list):
                raise ValueError("'modules' must be a list")
        except (ValueError, AttributeError) as exc:
            self._report(on_error, path, f"invalid manifest: {exc}", entry=MANIFEST_NAME)
            return []

        found: list[type[BaseModule]] = []
        for target in declared:
            try:
                module_class = self._resolve_target(path, str(target))
            except ArchiveScanError as exc:
                self._report(on_error, path, exc.reason, entry=str(target))
                continue
            if module_class not in found:
                found.append(module_class)
        return found

    def _resolve_target(self, path: Path, target: str) -> type[BaseModule]:
        module_name, sep, attr = target.partition(":")
        if not sep or not module_name or not attr:
            raise ArchiveScanError(str(path), "expected 'package.module:ClassName'", target)
        module = self._import(path, target, module_name)
        obj: Any = module
        for part in attr.split("."):
            obj = getattr(obj, part, None)
        if not (isinstance(obj, type) and issubclass(obj, BaseModule)):
            raise ArchiveScanError(str(path), "not a BaseModule subclass", target)
        return obj

    @staticmethod
    def _import(path: Path, entry: str, module_name: str) -> ModuleType:
        try:
            return importlib.import_module(module_name)
        except Exception as exc:
            raise ArchiveScanError(
                str(path), f"{type(exc).__name__}: {exc}", entry
            ) from exc

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def scan_entry_points(
        self,
        group: str = DEFAULT_ENTRY_POINT_GROUP,
        on_error: ErrorCallback | None = None,
    ) -> set[type[BaseModule]]:
        """Register module types exported by installed distributions.

        Example ``pyproject.toml`` for a community module::

            [project.entry-points."modhost.modules"]
            greeter = "modhost_greeter.module:GreeterModule"

        An entry point may also resolve to an iterable of module classes.
        """
        found: set[type[BaseModule]] = set()
        for ep in importlib.metadata.entry_points(group=group):
            identity = f"entry-point:{group}:{ep.value}"
            with self._registry.locked():
                if not self._registry.claim_archive(identity):
                    continue
                try:
                    classes = self._load_entry_point(ep)
                except ArchiveScanError as exc:
                    self._report(on_error, identity, exc.reason, entry=ep.name)
                    continue
                for module_class in classes:
                    self._registry.register(module_class)
                    found.add(module_class)
        if found:
            log.info("entry_points_scanned", group=group, found=len(found))
        return found

    @staticmethod
    def _load_entry_point(ep: importlib.metadata.EntryPoint) -> list[type[BaseModule]]:
        try:
            target = ep.load()
        except Exception as exc:
            raise ArchiveScanError(ep.value, f"{type(exc).__name__}: {exc}", ep.name) from exc

        candidates: Iterable[Any] = [target] if isinstance(target, type) else target
        try:
            classes = list(candidates)
        except TypeError as exc:
            raise ArchiveScanError(ep.value, "not a module class or iterable", ep.name) from exc
        for module_class in classes:
            if not (isinstance(module_class, type) and issubclass(module_class, BaseModule)):
                raise ArchiveScanError(
                    ep.value, f"{module_class!r} is not a BaseModule subclass", ep.name
                )
        return classes

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _report(
        self,
        on_error: ErrorCallback | None,
        archive: str | Path,
        reason: str,
        entry: str | None = None,
    ) -> None:
        error = ArchiveScanError(str(archive), reason, entry)
        diagnostic = Diagnostic(
            reason=SkipReason.SCAN_FAILURE,
            module_name=entry or Path(str(archive)).name,
            type_id=None,
            message=error.message,
            details=error.context,
        )
        self._failures.append(diagnostic)
        log.warning("scan_failure", **diagnostic.to_dict())
        if on_error is not None:
            on_error(diagnostic)
