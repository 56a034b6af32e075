"""Unit tests — ModuleRecord state machine and descriptors."""

from __future__ import annotations

from typing import Any

import pytest

from modhost.exceptions import ModuleStateError
from modhost.modules.base import BaseModule, type_id
from modhost.modules.descriptor import (
    Diagnostic,
    ModuleDescriptor,
    ModuleRecord,
    ModuleState,
    SkipReason,
)


class CacheModule(BaseModule):
    NAME = "Cache"
    AUTHOR = "ops"
    VERSION = "0.3.0"
    MINIMUM_HOST_VERSION = "2.0.0"
    REQUIRES = "plugins.storage.StorageModule"

    def enable(self, host: Any) -> None:
        pass

    def disable(self) -> None:
        pass


def _diagnostic() -> Diagnostic:
    return Diagnostic(
        reason=SkipReason.VERSION_GATE,
        module_name="Cache",
        type_id=type_id(CacheModule),
        message="too old",
    )


@pytest.mark.unit
class TestModuleDescriptor:
    def test_from_instance(self) -> None:
        descriptor = ModuleDescriptor.from_instance(CacheModule())
        assert descriptor.type_id == type_id(CacheModule)
        assert descriptor.name == "Cache"
        assert descriptor.author == "ops"
        assert descriptor.version == "0.3.0"
        assert descriptor.minimum_host_version == "2.0.0"
        assert descriptor.dependency == "plugins.storage.StorageModule"

    def test_to_dict_keys(self) -> None:
        data = ModuleDescriptor.from_instance(CacheModule()).to_dict()
        assert set(data) == {
            "type_id", "name", "author", "version", "minimum_host_version", "dependency",
        }

    def test_non_string_metadata_is_rejected(self) -> None:
        class NumericVersion(CacheModule):
            VERSION = 3  # type: ignore[assignment]

        with pytest.raises(TypeError, match="version must be a string"):
            ModuleDescriptor.from_instance(NumericVersion())

    def test_non_string_dependency_is_rejected(self) -> None:
        class ClassDependency(CacheModule):
            REQUIRES = CacheModule  # type: ignore[assignment]

        with pytest.raises(TypeError, match="dependency must be a string"):
            ModuleDescriptor.from_instance(ClassDependency())



@pytest.mark.unit
class TestModuleRecord:
    def test_starts_discovered(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        assert record.state is ModuleState.DISCOVERED
        assert record.name == "CacheModule"
        assert record.dependency is None

    def test_forward_transitions(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        record.advance(ModuleState.INSTANTIATED)
        record.advance(ModuleState.ACTIVATED)
        assert record.state is ModuleState.ACTIVATED

    def test_cannot_skip_instantiation(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        with pytest.raises(ModuleStateError):
            record.advance(ModuleState.ACTIVATED)

    def test_cannot_regress(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        record.advance(ModuleState.INSTANTIATED)
        with pytest.raises(ModuleStateError, match="cannot move"):
            record.advance(ModuleState.DISCOVERED)

    def test_activated_is_terminal(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        record.advance(ModuleState.INSTANTIATED)
        record.advance(ModuleState.ACTIVATED)
        with pytest.raises(ModuleStateError):
            record.skip(_diagnostic())

    def test_skip_stores_diagnostic(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        record.skip(_diagnostic())
        assert record.state is ModuleState.SKIPPED
        assert record.diagnostic is not None
        assert record.to_dict()["diagnostic"]["reason"] == "VersionGate"

    def test_skipped_is_terminal(self) -> None:
        record = ModuleRecord(module_class=CacheModule)
        record.skip(_diagnostic())
        with pytest.raises(ModuleStateError):
            record.advance(ModuleState.INSTANTIATED)
