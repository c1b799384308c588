# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Ignore layers: the compiled contents of one or more ignore files.

An IgnoreLayer belongs to a directory (its root) and answers, for a path
below that directory, whether the last matching pattern ignores or
whitelists it. This module also knows where git keeps the global excludes
file.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ignore.glob import Pattern, compile_pattern
from ignore.types import InvalidPatternError, Match
from ignore.util import debug, relative_to, to_path_str


@dataclass(frozen=True)
class IgnoreLayer:
    """
    An ordered, read-only set of patterns rooted at a directory.

    Attributes:
        root: Directory that relative patterns are resolved against
        patterns: Patterns in file order (later entries take precedence)
        sources: Ignore files the patterns were read from
    """

    root: str
    patterns: tuple[Pattern, ...] = ()
    sources: tuple[str, ...] = ()

    @classmethod
    def empty(cls, root: str = "") -> IgnoreLayer:
        return cls(root)

    def is_empty(self) -> bool:
        return not self.patterns

    def __len__(self) -> int:
        return len(self.patterns)

    def num_ignores(self) -> int:
        return sum(1 for p in self.patterns if not p.whitelist)

    def num_whitelists(self) -> int:
        return sum(1 for p in self.patterns if p.whitelist)

    def matched(self, path, is_dir: bool) -> Match:
        """Match a path given in the same terms as the layer's root."""
        if not self.patterns:
            return Match.NONE
        return self.matched_relative(relative_to(to_path_str(path), self.root), is_dir)

    def matched_relative(self, rel_path: str, is_dir: bool) -> Match:
        """Match a '/'-separated path that is already relative to the root.

        Last match wins: the patterns are scanned from the end and the first
        hit decides.
        """
        if not rel_path:
            return Match.NONE
        pattern = self.matching_pattern(rel_path, is_dir)
        if pattern is None:
            return Match.NONE
        return Match.WHITELIST if pattern.whitelist else Match.IGNORE

    def matching_pattern(self, rel_path: str, is_dir: bool) -> Optional[Pattern]:
        """Return the pattern that decides rel_path, if any."""
        for pattern in reversed(self.patterns):
            if pattern.is_match(rel_path, is_dir):
                return pattern
        return None


class IgnoreLayerBuilder:
    """Accumulates pattern lines, then builds an immutable IgnoreLayer."""

    def __init__(self, root, case_insensitive: bool = False):
        self.root = to_path_str(root)
        self._case_insensitive = case_insensitive
        self._patterns: list[Pattern] = []
        self._sources: list[str] = []

    def case_insensitive(self, yes: bool) -> IgnoreLayerBuilder:
        """Compile subsequently added lines case-insensitively."""
        self._case_insensitive = yes
        return self

    def add_line(
        self,
        line: str,
        source: Optional[str] = None,
        lineno: Optional[int] = None,
    ) -> IgnoreLayerBuilder:
        """Add one pattern line.

        Raises:
            InvalidPatternError: If the line is not a valid glob.
        """
        pattern = compile_pattern(
            line,
            case_insensitive=self._case_insensitive,
            source=source,
            lineno=lineno,
        )
        if pattern is not None:
            self._patterns.append(pattern)
        return self

    def add_lines(
        self, lines: Iterable[str], source: Optional[str] = None
    ) -> list[InvalidPatternError]:
        """Add many lines, skipping malformed ones.

        Returns the errors for the lines that were skipped.
        """
        errors: list[InvalidPatternError] = []
        for lineno, line in enumerate(lines, start=1):
            try:
                self.add_line(line, source, lineno)
            except InvalidPatternError as e:
                debug(1, 1, f"Skipping invalid pattern: {e.message}")
                errors.append(e)
        return errors

    def add(self, path) -> list[InvalidPatternError]:
        """Read an ignore file and add its lines.

        Malformed lines are skipped and returned; every other line is kept.

        Raises:
            OSError: If the file cannot be read.
        """
        path = to_path_str(path)
        lines = read_ignore_lines(path)
        self._sources.append(path)
        errors = self.add_lines(lines, source=path)
        debug(1, 0, f"Loaded ignore file {path} ({len(lines)} lines)")
        return errors

    def build(self) -> IgnoreLayer:
        return IgnoreLayer(self.root, tuple(self._patterns), tuple(self._sources))


def read_ignore_lines(path: str) -> list[str]:
    """Read an ignore file as a list of lines.

    Bytes that are not valid UTF-8 are kept as surrogate escapes so they
    still match the raw file names they were written for. Lines end at a
    newline only, with one trailing carriage return dropped, so other
    line separator characters stay part of the pattern.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, "rb") as f:
        data = f.read()
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    text = data.decode("utf-8", errors="surrogateescape")
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def load_ignore_files(
    directory: str,
    names: Iterable[str],
    case_insensitive: bool = False,
    root: Optional[str] = None,
) -> tuple[IgnoreLayer, list[OSError]]:
    """Build one layer from the named ignore files found in directory.

    Files that don't exist are silently absent. Malformed lines are skipped.
    The layer is rooted at directory unless another root is given.

    Returns:
        (layer, read_errors) where read_errors holds the OSErrors of files
        that exist but could not be read.
    """
    builder = IgnoreLayerBuilder(directory if root is None else root, case_insensitive)
    errors: list[OSError] = []
    for name in names:
        file_path = os.path.join(directory, name)
        try:
            builder.add(file_path)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            continue
        except OSError as e:
            if e.filename is None:
                e.filename = file_path
            errors.append(e)
    return builder.build(), errors


# =============================================================================
# Global git excludes
# =============================================================================

_EXCLUDES_FILE = re.compile(
    r'^\s*excludesfile\s*=\s*"?\s*(\S+?)\s*"?\s*$', re.IGNORECASE | re.MULTILINE
)


def _git_config_paths() -> list[str]:
    """Git config files that may set core.excludesFile, lowest priority first."""
    paths: list[str] = []
    xdg = os.environ.get("XDG_CONFIG_HOME")
    home = os.environ.get("HOME") or os.path.expanduser("~")
    if xdg:
        paths.append(os.path.join(xdg, "git", "config"))
    elif home:
        paths.append(os.path.join(home, ".config", "git", "config"))
    if home:
        paths.append(os.path.join(home, ".gitconfig"))
    return paths


def _excludes_file_from_config(config_path: str) -> Optional[str]:
    try:
        with open(config_path, "rb") as f:
            text = f.read().decode("utf-8", errors="surrogateescape")
    except OSError:
        return None
    values = _EXCLUDES_FILE.findall(text)
    if not values:
        return None
    return os.path.expanduser(values[-1])


def global_gitignore_path() -> Optional[str]:
    """Locate the global git excludes file, the way git does.

    core.excludesFile from ~/.gitconfig wins over the XDG config file; with
    neither set, $XDG_CONFIG_HOME/git/ignore (or ~/.config/git/ignore).
    """
    found = None
    for config_path in _git_config_paths():
        value = _excludes_file_from_config(config_path)
        if value is not None:
            found = value
    if found is not None:
        return found

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return os.path.join(xdg, "git", "ignore")
    home = os.environ.get("HOME") or os.path.expanduser("~")
    if home:
        return os.path.join(home, ".config", "git", "ignore")
    return None


def load_global_gitignore(
    root: str, case_insensitive: bool = False
) -> tuple[IgnoreLayer, list[OSError]]:
    """Load the global excludes file as a layer rooted at root."""
    path = global_gitignore_path()
    if path is None:
        return IgnoreLayer.empty(root), []
    debug(4, 0, f"Global excludes file is {path}")
    directory, name = os.path.split(path)
    return load_ignore_files(directory or ".", [name], case_insensitive, root=root)
