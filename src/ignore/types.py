# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Type definitions for ignore-python.

This module contains the enums, value types, configuration dataclass and
exception classes shared by the matcher and the walker.
"""

from __future__ import annotations

import errno as errno_module
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from ignore.util import file_name

if TYPE_CHECKING:
    from ignore.gitignore import IgnoreLayer
    from ignore.overrides import Override


class Match(Enum):
    """Verdict of a pattern source for one path."""

    NONE = "none"
    IGNORE = "ignore"
    WHITELIST = "whitelist"

    @property
    def is_none(self) -> bool:
        return self is Match.NONE

    @property
    def is_ignore(self) -> bool:
        return self is Match.IGNORE

    @property
    def is_whitelist(self) -> bool:
        return self is Match.WHITELIST

    def invert(self) -> Match:
        """Swap IGNORE and WHITELIST; NONE stays NONE."""
        if self is Match.IGNORE:
            return Match.WHITELIST
        if self is Match.WHITELIST:
            return Match.IGNORE
        return Match.NONE

    def or_else(self, other: Match) -> Match:
        """Return self unless it is NONE."""
        return other if self is Match.NONE else self


class FileType(Enum):
    """Classification of a visited path."""

    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"

    @classmethod
    def from_mode(cls, mode: int) -> FileType:
        if stat.S_ISDIR(mode):
            return cls.DIR
        if stat.S_ISREG(mode):
            return cls.FILE
        if stat.S_ISLNK(mode):
            return cls.SYMLINK
        return cls.OTHER


class DirEntry:
    """
    An immutable snapshot of one path yielded by a walk.

    The accessors are methods, in the manner of os.DirEntry.
    """

    __slots__ = ("_path", "_depth", "_file_type", "_path_is_symlink", "_follow")

    def __init__(
        self,
        path: str,
        depth: int,
        file_type: FileType,
        path_is_symlink: bool = False,
        follow: bool = False,
    ):
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_depth", depth)
        object.__setattr__(self, "_file_type", file_type)
        object.__setattr__(self, "_path_is_symlink", path_is_symlink)
        object.__setattr__(self, "_follow", follow)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def path(self) -> Path:
        """The path of this entry, joined onto the root as it was given."""
        return Path(self._path)

    def depth(self) -> int:
        """Depth relative to the walk root (the root itself is 0)."""
        return self._depth

    def file_type(self) -> FileType:
        """File type, of the link target if the link was followed."""
        return self._file_type

    def is_dir(self) -> bool:
        return self._file_type is FileType.DIR

    def is_file(self) -> bool:
        return self._file_type is FileType.FILE

    def is_symlink(self) -> bool:
        return self._file_type is FileType.SYMLINK

    def path_is_symlink(self) -> bool:
        """Whether the path itself is a symlink, followed or not."""
        return self._path_is_symlink

    def file_name(self) -> str:
        return file_name(self._path) or self._path

    def metadata(self) -> os.stat_result:
        """Stat the entry now, following the link only if the walk did."""
        if self._follow:
            return os.stat(self._path)
        return os.lstat(self._path)

    def __fspath__(self) -> str:
        return self._path

    def __eq__(self, other) -> bool:
        if not isinstance(other, DirEntry):
            return NotImplemented
        return (
            self._path == other._path
            and self._depth == other._depth
            and self._file_type is other._file_type
            and self._path_is_symlink == other._path_is_symlink
        )

    def __hash__(self) -> int:
        return hash((self._path, self._depth, self._file_type))

    def __repr__(self) -> str:
        return (
            f"DirEntry(path={self._path!r}, depth={self._depth}, "
            f"file_type={self._file_type.value})"
        )


@dataclass(frozen=True)
class WalkConfig:
    """
    Immutable configuration of a walk.

    Attributes:
        roots: Paths to traverse, in order
        hidden: Skip entries whose name starts with '.'
        ignore: Read .ignore files
        git_ignore: Read .gitignore files
        git_global: Read the global git excludes file
        git_exclude: Read .git/info/exclude
        parents: Read ignore files of the root's ancestor directories
        require_git: Only apply git-sourced rules inside a repository
        ignore_case_insensitive: Compile discovered ignore files case-insensitively
        follow_links: Follow symbolic links
        same_file_system: Don't descend into other file systems
        max_depth: Maximum descent depth (None for unbounded)
        max_filesize: Skip files larger than this many bytes
        overrides: Caller-supplied override globs
        custom_ignore_filenames: Extra ignore file names, later names win
        explicit_ignores: Ignore files added with WalkBuilder.add_ignore()
        filter_entry: Predicate; entries for which it returns False are pruned
    """

    roots: tuple[str, ...]
    hidden: bool = True
    ignore: bool = True
    git_ignore: bool = True
    git_global: bool = True
    git_exclude: bool = True
    parents: bool = True
    require_git: bool = True
    ignore_case_insensitive: bool = False
    follow_links: bool = False
    same_file_system: bool = False
    max_depth: Optional[int] = None
    max_filesize: Optional[int] = None
    overrides: Optional[Override] = None
    custom_ignore_filenames: tuple[str, ...] = ()
    explicit_ignores: tuple[IgnoreLayer, ...] = ()
    filter_entry: Optional[Callable[[DirEntry], bool]] = None


# =============================================================================
# Exceptions
# =============================================================================


class IgnoreError(Exception):
    """Base class for all ignore-python errors."""

    def __init__(self, message: str, errno: int = 1):
        super().__init__(message)
        self.message = message
        self.errno = errno

    def __str__(self) -> str:
        return self.message


class IgnoreCLIError(IgnoreError):
    """Command line usage error."""


class InvalidPatternError(IgnoreError):
    """A glob could not be compiled."""

    def __init__(
        self,
        glob: str,
        reason: str,
        path: Optional[str] = None,
        lineno: Optional[int] = None,
    ):
        where = ""
        if path is not None:
            where = f"{path}:{lineno}: " if lineno is not None else f"{path}: "
        super().__init__(f"{where}error parsing glob '{glob}': {reason}")
        self.glob = glob
        self.reason = reason
        self.path = path
        self.lineno = lineno


class WalkError(IgnoreError):
    """An error tied to one entry of a walk; the walk itself continues."""

    def __init__(self, message: str, path: str, depth: int, errno: int = 1):
        super().__init__(message, errno)
        self.path = path
        self.depth = depth


class WalkIOError(WalkError):
    """A filesystem operation failed for a specific path."""

    def __init__(self, path: str, depth: int, error: OSError):
        strerror = error.strerror or str(error)
        super().__init__(
            f"{path}: {strerror}", path, depth, errno=error.errno or 1
        )
        self.error = error
        self.strerror = strerror
        self.filename = path

    @classmethod
    def from_os_error(cls, path: str, depth: int, error: OSError) -> WalkIOError:
        """Build the most specific error class for an OSError."""
        if error.errno == errno_module.ENOENT:
            return NotFoundError(path, depth, error)
        return cls(path, depth, error)


class NotFoundError(WalkIOError):
    """The path vanished or never existed (ENOENT)."""


class LoopError(WalkError):
    """Following a symlink led back to a directory being walked."""

    def __init__(self, path: str, depth: int, ancestor: str):
        super().__init__(
            f"File system loop found: {path} points to an ancestor {ancestor}",
            path,
            depth,
            errno=errno_module.ELOOP,
        )
        self.ancestor = ancestor
