"""Example modhost module package.

This package demonstrates the minimum structure required for a community
module.  Zip this directory (or build a wheel) and drop the archive into the
host's module directory.

Type identifiers are fully-qualified class paths, e.g.
``modhost_module_example.module.GreeterModule``.
"""

from modhost_module_example.module import GreeterModule, WordCountModule

__all__ = ["GreeterModule", "WordCountModule"]
