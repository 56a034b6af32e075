"""Unit tests — Startup discovery (load_directory / bootstrap)."""

from __future__ import annotations

from pathlib import Path
from typing import Callable
from unittest.mock import patch

import pytest

from modhost.config import ModuleConfig, Settings
from modhost.modules.bootstrap import bootstrap, load_directory
from modhost.modules.registry import ModuleRegistry
from modhost.modules.scanner import ArchiveScanner


@pytest.mark.unit
class TestLoadDirectory:
    def test_missing_directory_is_created(self, tmp_path: Path, registry: ModuleRegistry) -> None:
        directory = tmp_path / "modules"
        assert load_directory(directory, create=True) == set()
        assert directory.is_dir()

    def test_missing_directory_left_alone_when_create_disabled(self, tmp_path: Path) -> None:
        directory = tmp_path / "modules"
        assert load_directory(directory, create=False) == set()
        assert not directory.exists()

    def test_every_regular_file_is_scanned(
        self, tmp_path: Path, registry: ModuleRegistry,
        module_source: Callable[..., str], unique_package: str,
    ) -> None:
        directory = tmp_path / "modules"
        directory.mkdir()
        (directory / f"{unique_package}_a.py").write_text(module_source("First"))
        (directory / f"{unique_package}_b.py").write_text(module_source("Second"))
        (directory / "subdir").mkdir()

        found = load_directory(directory)

        assert {c.__name__ for c in found} == {"First", "Second"}
        assert [c.__name__ for c in registry.all_registered()] == ["First", "Second"]

    def test_defaults_to_configured_directory(
        self, test_settings: Settings, registry: ModuleRegistry,
        module_source: Callable[..., str], unique_package: str,
    ) -> None:
        directory = test_settings.modules.directory
        directory.mkdir()
        (directory / f"{unique_package}.py").write_text(module_source("Configured"))

        assert {c.__name__ for c in load_directory()} == {"Configured"}

    def test_repeated_bootstrap_is_harmless(
        self, tmp_path: Path, registry: ModuleRegistry,
        module_source: Callable[..., str], unique_package: str,
    ) -> None:
        directory = tmp_path / "modules"
        directory.mkdir()
        (directory / f"{unique_package}.py").write_text(module_source("Only"))

        load_directory(directory)
        assert load_directory(directory) == set()
        assert len(registry) == 1

    def test_file_instead_of_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "modules"
        target.write_text("oops")
        assert load_directory(target) == set()


@pytest.mark.unit
class TestBootstrap:
    def test_entry_points_only_when_enabled(self, tmp_path: Path, registry: ModuleRegistry) -> None:
        settings = Settings(modules=ModuleConfig(directory=tmp_path / "m"))
        scanner = ArchiveScanner(registry)
        with patch.object(scanner, "scan_entry_points", return_value=set()) as mock_eps:
            bootstrap(settings, scanner=scanner)
        mock_eps.assert_not_called()

    def test_entry_points_scanned_with_configured_group(
        self, tmp_path: Path, registry: ModuleRegistry
    ) -> None:
        settings = Settings(
            modules=ModuleConfig(
                directory=tmp_path / "m",
                discover_entry_points=True,
                entry_point_group="acme.plugins",
            )
        )
        scanner = ArchiveScanner(registry)
        with patch.object(scanner, "scan_entry_points", return_value=set()) as mock_eps:
            bootstrap(settings, scanner=scanner)
        mock_eps.assert_called_once_with("acme.plugins", None)
