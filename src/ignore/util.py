# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Utility functions for ignore-python.

This module contains general-purpose utilities used throughout ignore-python,
including verbosity-controlled debug output and path manipulation.
"""

from __future__ import annotations

import os
import sys

VERSION = "0.1.0"
PROGRAM_NAME = "ignore-walk"

# Debug level is module-level state
_debug_level = 0


def set_debug_level(level: int) -> None:
    """Set verbosity level for debug()."""
    global _debug_level
    _debug_level = level


def get_debug_level() -> int:
    """Get current debug level."""
    return _debug_level


def debug(level: int, *args) -> None:
    """
    Log to STDERR based on debug_level setting.

    Verbosity rules:
        0: errors only
        >= 1: ignore files loaded
        >= 2: skipped entries, refused descents
        >= 3: trace detail: enter/leave directory
        >= 4: per-source match verdicts
        >= 5: pattern compilation

    Supports two calling conventions:
        debug(level, msg)
        debug(level, indent_level, msg)
    """
    if len(args) >= 2 and isinstance(args[0], int):
        indent_level = args[0]
        msg = args[1]
    elif len(args) >= 1:
        indent_level = 0
        msg = args[0]
    else:
        return

    if _debug_level >= level:
        indent = "    " * indent_level
        print(f"{indent}{msg}", file=sys.stderr)


def to_path_str(path) -> str:
    """
    Convert a str, bytes or os.PathLike into a str path.

    Bytes are decoded with the filesystem encoding and surrogateescape, so
    names that are not valid UTF-8 survive a round trip back to bytes.
    """
    return os.fsdecode(os.fspath(path))


def to_posix(path: str) -> str:
    """Use '/' as the only separator (no-op on POSIX)."""
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    if os.altsep and os.altsep != "/":
        path = path.replace(os.altsep, "/")
    return path


def join_rel(lead: str, rel: str) -> str:
    """Join two '/'-separated relative paths, either of which may be empty."""
    if not lead:
        return rel
    if not rel:
        return lead
    return f"{lead}/{rel}"


def relative_to(path: str, root: str) -> str:
    """
    Express path relative to root, '/'-separated.

    A textual prefix check is tried first because walk paths are built by
    joining names onto the root exactly as it was given. Paths outside root
    are returned without their leading './' or '/'.
    """
    path = to_posix(path)
    root = to_posix(root)

    while path.startswith("./"):
        path = path[2:]
    while root.startswith("./"):
        root = root[2:]

    if root in ("", "."):
        if path == ".":
            return ""
        if not os.path.isabs(path):
            return path
    elif path == root:
        return ""
    else:
        prefix = root if root.endswith("/") else root + "/"
        if path.startswith(prefix):
            return path[len(prefix):]

    abs_path = to_posix(os.path.abspath(path))
    abs_root = to_posix(os.path.abspath(root))
    if abs_path == abs_root:
        return ""
    prefix = abs_root if abs_root.endswith("/") else abs_root + "/"
    if abs_path.startswith(prefix):
        return abs_path[len(prefix):]

    return path.lstrip("/")


def file_name(path: str) -> str:
    """Return the final component of path ('' for filesystem roots)."""
    path = to_posix(path).rstrip("/")
    return path.rpartition("/")[2]


def is_hidden(name: str) -> bool:
    """Determine whether a base name denotes a hidden entry."""
    return name.startswith(".") and name not in (".", "..")


def expand_filepath(path: str) -> str:
    """Expand environment variables and tilde in a file path."""
    return os.path.expanduser(os.path.expandvars(path))
