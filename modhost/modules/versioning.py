"""Module layer — Host version gate.

A module declares the lowest host version it runs on.  The gate compares
the declared minimum with the running host version **component by
component**: for every index compared, the required component must not
exceed the host component.  It is not an ordered comparison, so ``"2.9.0"``
is rejected on a ``"3.0.0"`` host (9 > 0).  Modules already in the wild rely
on this behaviour, so it is kept as is.

Pre-release and build suffixes are dropped before parsing: ``-SNAPSHOT``,
``+local``, and PEP 440 markers such as ``rc1`` or ``.dev0``.  At most three
numeric components (major, minor, patch) are compared; trailing components
missing on either side are not compared.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

_MAX_COMPONENTS = 3
_SUFFIX_RE = re.compile(r"[-+].*$")


def parse_components(version: str) -> tuple[int, ...]:
    """Return up to three numeric release components of *version*.

    Raises:
        ValueError: *version* has no parsable numeric release.
    """
    if not isinstance(version, str):
        raise ValueError(f"Invalid version {version!r}: expected a string")
    base = _SUFFIX_RE.sub("", version.strip())
    try:
        release = Version(base).release
    except InvalidVersion as exc:
        raise ValueError(f"Invalid version string {version!r}") from exc
    return tuple(release[:_MAX_COMPONENTS])


@dataclass(frozen=True)
class GateResult:
    admitted: bool
    required: str
    actual: str
    reason: str = ""


def check_host_version(required: str, actual: str) -> GateResult:
    """Apply the component-wise gate to a module's *required* host version."""
    try:
        required_parts = parse_components(required)
        actual_parts = parse_components(actual)
    except ValueError as exc:
        return GateResult(False, required, actual, str(exc))

    for wanted, have in zip(required_parts, actual_parts):
        if wanted > have:
            return GateResult(
                False,
                required,
                actual,
                f"requires host v{required}, running v{actual}",
            )
    return GateResult(True, required, actual)
