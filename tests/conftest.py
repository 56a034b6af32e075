"""Shared pytest fixtures for the modhost test suite."""

from __future__ import annotations

import sys
import uuid
import zipfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from modhost.config import ModuleConfig, Settings, override_settings
from modhost.modules.base import BaseModule, HostContext
from modhost.modules.registry import ModuleRegistry, override_registry


# Top-level names of the packages tests build into archives.
SCANNED_PREFIXES = ("plugpkg_", "modhost_ext_", "modhost_module_example")


# ---------------------------------------------------------------------------
# Process-wide state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_process_state() -> Generator[None, None, None]:
    """Give every test its own registry, settings, sys.path and scanned packages."""
    saved_path = list(sys.path)
    saved_modules = set(sys.modules)
    override_registry(ModuleRegistry())
    override_settings(Settings())
    yield
    override_registry(None)
    override_settings(None)
    sys.path[:] = saved_path
    for name in set(sys.modules) - saved_modules:
        if name.startswith(SCANNED_PREFIXES):
            del sys.modules[name]


@pytest.fixture
def registry() -> ModuleRegistry:
    registry = ModuleRegistry()
    override_registry(registry)
    return registry


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    settings = Settings(
        modules=ModuleConfig(directory=tmp_path / "modules"),
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


@pytest.fixture
def host() -> HostContext:
    return HostContext(version="2.2.0")


# ---------------------------------------------------------------------------
# Module factories
# ---------------------------------------------------------------------------


@pytest.fixture
def enable_log() -> list[str]:
    """Names of modules in the order their enable() was called."""
    return []


@pytest.fixture
def make_module(enable_log: list[str]) -> Callable[..., type[BaseModule]]:
    """Build a concrete module class with a unique type identifier."""

    def factory(
        name: str,
        requires: str | type | None = None,
        min_host: str = "1.0.0",
        fail_enable: bool = False,
    ) -> type[BaseModule]:
        def enable(self: BaseModule, host: Any) -> None:
            if fail_enable:
                raise RuntimeError(f"{name} cannot start")
            enable_log.append(name)

        def disable(self: BaseModule) -> None:
            pass

        dependency = requires
        if isinstance(requires, type):
            dependency = f"{requires.__module__}.{requires.__qualname__}"

        return type(BaseModule)(
            name,
            (BaseModule,),
            {
                "__module__": "plugins.test",
                "NAME": name,
                "AUTHOR": "tests",
                "VERSION": "1.0.0",
                "MINIMUM_HOST_VERSION": min_host,
                "REQUIRES": dependency,
                "enable": enable,
                "disable": disable,
            },
        )

    return factory


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------

MODULE_SOURCE = '''
from modhost.modules.base import BaseModule, requires


class {name}(BaseModule):
    NAME = "{name}"
    AUTHOR = "archive tests"
    VERSION = "1.0.0"
    MINIMUM_HOST_VERSION = "{min_host}"

    def enable(self, host):
        host.extra.setdefault("enabled", []).append(self.NAME)

    def disable(self):
        pass
'''


@pytest.fixture
def unique_package() -> str:
    """A package name no other test has imported."""
    return f"plugpkg_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def build_archive(tmp_path: Path) -> Callable[..., Path]:
    """Write a zip archive from a ``{entry_name: source}`` mapping."""

    def builder(entries: dict[str, str], name: str = "modules.zip") -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as archive:
            for entry, source in entries.items():
                archive.writestr(entry, source)
        return path

    return builder


@pytest.fixture
def module_source() -> Callable[..., str]:
    def render(name: str, min_host: str = "1.0.0") -> str:
        return MODULE_SOURCE.format(name=name, min_host=min_host)

    return render
