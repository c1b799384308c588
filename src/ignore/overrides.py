# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Caller-supplied override globs.

Overrides use gitignore syntax with the polarity flipped: a plain glob
whitelists what it matches and a '!glob' ignores it. As soon as one
whitelist glob is present, every file that matches no glob is ignored, so
``OverrideBuilder(root).add("*.py").build()`` restricts a walk to Python
files. Directories are never ignored for failing to match, so the walk
still reaches files in subdirectories.

Overrides take precedence over every ignore file.
"""

from __future__ import annotations

from ignore.gitignore import IgnoreLayer, IgnoreLayerBuilder
from ignore.types import Match
from ignore.util import debug, to_path_str


class Override:
    """An immutable set of override globs rooted at a directory."""

    def __init__(self, layer: IgnoreLayer):
        self._layer = layer

    @classmethod
    def empty(cls) -> Override:
        return cls(IgnoreLayer.empty())

    @property
    def root(self) -> str:
        return self._layer.root

    def is_empty(self) -> bool:
        return self._layer.is_empty()

    def num_ignores(self) -> int:
        """Number of '!glob' entries (which ignore)."""
        return self._layer.num_whitelists()

    def num_whitelists(self) -> int:
        """Number of plain glob entries (which whitelist)."""
        return self._layer.num_ignores()

    def matched(self, path, is_dir: bool) -> Match:
        """Return the override verdict for path.

        The path is expressed relative to the override root before matching.
        """
        if self.is_empty():
            return Match.NONE
        verdict = self._layer.matched(to_path_str(path), is_dir).invert()
        if verdict.is_none and not is_dir and self.num_whitelists() > 0:
            return Match.IGNORE
        return verdict

    def __repr__(self) -> str:
        globs = [p.original for p in self._layer.patterns]
        return f"Override(root={self.root!r}, globs={globs!r})"


class OverrideBuilder:
    """Builds an Override from globs added one at a time."""

    def __init__(self, path):
        self._root = to_path_str(path)
        # (glob, case_insensitive) in the order they were added
        self._globs: list[tuple[str, bool]] = []
        self._case_insensitive = False

    def add(self, glob: str) -> OverrideBuilder:
        """Append one glob, using the current case sensitivity setting.

        Raises:
            InvalidPatternError: If the glob is malformed.
        """
        IgnoreLayerBuilder(self._root, self._case_insensitive).add_line(glob)
        self._globs.append((glob, self._case_insensitive))
        return self

    def case_insensitive(self, yes: bool) -> OverrideBuilder:
        """Match globs added from now on case-insensitively."""
        self._case_insensitive = yes
        return self

    def build(self) -> Override:
        """Compile the accumulated globs.

        Raises:
            InvalidPatternError: If any glob is malformed.
        """
        builder = IgnoreLayerBuilder(self._root)
        for glob, case_insensitive in self._globs:
            builder.case_insensitive(case_insensitive).add_line(glob)
        override = Override(builder.build())
        debug(4, 0, f"Built {override!r}")
        return override
