# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
ignore-python - gitignore-aware recursive directory traversal

This package walks directory trees while honoring .gitignore, .ignore,
.git/info/exclude, the global git excludes file, custom ignore files and
caller-supplied override globs.

Basic usage::

    from ignore import Walk

    for entry in Walk("."):
        print(entry.path(), entry.depth())

With configuration::

    from ignore import WalkBuilder
    from ignore.overrides import OverrideBuilder

    overrides = OverrideBuilder(".").add("*.py").add("!setup.py").build()
    walk = (
        WalkBuilder(".")
        .hidden(False)
        .max_depth(3)
        .overrides(overrides)
        .build()
    )

Per-entry errors::

    for item in walk.results():
        if isinstance(item, WalkError):
            print("skipped:", item)
        else:
            print(item.path())
"""

from ignore import overrides
from ignore.types import (
    DirEntry,
    FileType,
    Match,
    WalkConfig,
    IgnoreError,
    IgnoreCLIError,
    InvalidPatternError,
    WalkError,
    WalkIOError,
    NotFoundError,
    LoopError,
)
from ignore.walk import Walk, WalkBuilder
from ignore.util import VERSION as __version__

# Compatibility aliases
Error = IgnoreError
IOError = NotFoundError

__all__ = [
    "overrides",
    "Walk",
    "WalkBuilder",
    "WalkConfig",
    "DirEntry",
    "FileType",
    "Match",
    "IgnoreError",
    "IgnoreCLIError",
    "InvalidPatternError",
    "WalkError",
    "WalkIOError",
    "NotFoundError",
    "LoopError",
    "Error",
    "IOError",
    "__version__",
]
