"""Module layer — BaseModule contract.

Every module, built-in or community, must subclass ``BaseModule`` and
implement ``enable()`` and ``disable()``.

Design principles:
  - Metadata accessors are pure and are called before ``enable``.
  - The engine calls ``enable`` at most once per module per session.
  - ``disable`` is never called by the activation engine; the host calls it
    when it shuts down.
  - A module declares at most one dependency: the fully-qualified type
    identifier of another module class that must be active first.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, TypeVar, Union

if TYPE_CHECKING:
    from modhost.config import Settings

M = TypeVar("M", bound=type)


def type_id(module_class: type) -> str:
    """Return the fully-qualified identifier of *module_class*.

    This is the identifier dependencies are declared against, e.g.
    ``"modhost_module_example.module.GreeterModule"``.
    """
    return f"{module_class.__module__}.{module_class.__qualname__}"


@dataclass
class HostContext:
    """Default host handle passed to :meth:`BaseModule.enable`."""

    version: str
    settings: "Settings | None" = None
    extra: dict[str, Any] = field(default_factory=dict)


class BaseModule(ABC):
    """Abstract base class for all modhost modules.

    Subclasses must:
      1. Set ``NAME``, ``AUTHOR`` and ``VERSION`` class attributes
      2. Set ``MINIMUM_HOST_VERSION`` (dotted string, e.g. ``"2.2.0"``)
      3. Implement :meth:`enable` and :meth:`disable`
      4. Optionally declare a dependency with ``REQUIRES`` or :func:`requires`
      5. Be constructible without arguments

    The ``get_*`` accessors are **not** abstract: they return the class
    attributes by default.  Override them when metadata is computed.
    """

    NAME: str = ""
    AUTHOR: str = ""
    VERSION: str = "0.0.0"
    MINIMUM_HOST_VERSION: str = "0.0.0"
    REQUIRES: str | None = None

    @abstractmethod
    def enable(self, host: Any) -> None:
        """Wire the module into the live *host*."""
        ...

    @abstractmethod
    def disable(self) -> None:
        """Release everything acquired in :meth:`enable`."""
        ...

    def get_name(self) -> str:
        return self.NAME or type(self).__name__

    def get_author(self) -> str:
        return self.AUTHOR

    def get_version(self) -> str:
        return self.VERSION

    def get_minimum_host_version(self) -> str:
        return self.MINIMUM_HOST_VERSION

    def get_dependency(self) -> str | None:
        """Return the type identifier this module needs active first, if any."""
        return self.REQUIRES or None


def requires(target: Union[str, type]) -> Callable[[M], M]:
    """Class decorator declaring the single module this module depends on.

    *target* is either a fully-qualified type identifier or the module class
    itself::

        @requires("plugins.logger.LoggerModule")
        class MetricsModule(BaseModule):
            ...
    """
    dependency = target if isinstance(target, str) else type_id(target)
    if not dependency:
        raise ValueError("requires() needs a non-empty type identifier.")

    def decorator(module_class: M) -> M:
        module_class.REQUIRES = dependency
        return module_class

    return decorator
