"""Example modhost module — Implementation.

Demonstrates the minimum required structure:
  1. Subclass BaseModule
  2. Set NAME, AUTHOR, VERSION and MINIMUM_HOST_VERSION
  3. Implement ``enable()`` and ``disable()``
  4. Optionally declare a dependency with ``@requires``
"""

from __future__ import annotations

from typing import Any

from modhost.modules.base import BaseModule, requires


class GreeterModule(BaseModule):
    """Publishes a ``greet`` callable on the host."""

    NAME = "Greeter"
    AUTHOR = "Your Name <you@example.com>"
    VERSION = "0.1.0"
    MINIMUM_HOST_VERSION = "2.0.0"

    def __init__(self) -> None:
        self.host: Any = None

    def enable(self, host: Any) -> None:
        self.host = host
        host.extra["greet"] = self.greet

    def disable(self) -> None:
        if self.host is not None:
            self.host.extra.pop("greet", None)
            self.host = None

    @staticmethod
    def greet(name: str, formal: bool = False) -> str:
        if formal:
            return f"Good day, {name}. I trust you are well."
        return f"Hello, {name}!"


@requires(GreeterModule)
class WordCountModule(BaseModule):
    """Counts the words of every greeting produced by the Greeter module."""

    NAME = "WordCount"
    AUTHOR = "Your Name <you@example.com>"
    VERSION = "0.1.0"
    MINIMUM_HOST_VERSION = "2.0.0"

    def __init__(self) -> None:
        self.host: Any = None

    def enable(self, host: Any) -> None:
        greet = host.extra["greet"]
        self.host = host
        host.extra["greeting_words"] = lambda name: len(greet(name).split())

    def disable(self) -> None:
        if self.host is not None:
            self.host.extra.pop("greeting_words", None)
            self.host = None
