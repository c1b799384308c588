# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Recursive directory traversal that respects ignore files.

This module provides the public WalkBuilder and Walk classes, as well as
the internal _WalkState class that drives the traversal one step at a time.
"""

from __future__ import annotations

import dataclasses
import os
import stat
from collections import deque
from typing import Callable, Iterator, Optional, Union

from ignore.dir import IgnoreStack
from ignore.gitignore import IgnoreLayerBuilder
from ignore.overrides import Override
from ignore.types import (
    DirEntry,
    FileType,
    LoopError,
    WalkConfig,
    WalkError,
    WalkIOError,
)
from ignore.util import debug, file_name, to_path_str


# =============================================================================
# Public API
# =============================================================================


class WalkBuilder:
    """Configures a walk.

    Every setter returns the builder so calls can be chained::

        walk = WalkBuilder("src").hidden(False).max_depth(2).build()

    The builder holds an immutable WalkConfig that each setter replaces, so
    a Walk built earlier is never affected by later changes.
    """

    def __init__(self, path):
        self._config = WalkConfig(roots=(to_path_str(path),))

    @property
    def config(self) -> WalkConfig:
        return self._config

    def _set(self, **changes) -> WalkBuilder:
        self._config = dataclasses.replace(self._config, **changes)
        return self

    def hidden(self, yes: bool) -> WalkBuilder:
        """Skip hidden entries (enabled by default)."""
        return self._set(hidden=yes)

    def ignore(self, yes: bool) -> WalkBuilder:
        """Read .ignore files (enabled by default)."""
        return self._set(ignore=yes)

    def parents(self, yes: bool) -> WalkBuilder:
        """Read ignore files from the root's parent directories (enabled by default)."""
        return self._set(parents=yes)

    def git_ignore(self, yes: bool) -> WalkBuilder:
        """Read .gitignore files (enabled by default)."""
        return self._set(git_ignore=yes)

    def git_global(self, yes: bool) -> WalkBuilder:
        """Read the global git excludes file (enabled by default)."""
        return self._set(git_global=yes)

    def git_exclude(self, yes: bool) -> WalkBuilder:
        """Read .git/info/exclude (enabled by default)."""
        return self._set(git_exclude=yes)

    def require_git(self, yes: bool) -> WalkBuilder:
        """Apply git rules only inside a git repository (enabled by default)."""
        return self._set(require_git=yes)

    def ignore_case_insensitive(self, yes: bool) -> WalkBuilder:
        """Match discovered ignore files case-insensitively."""
        return self._set(ignore_case_insensitive=yes)

    def standard_filters(self, yes: bool) -> WalkBuilder:
        """Toggle hidden, parents, ignore and all git sources at once."""
        return self._set(
            hidden=yes,
            parents=yes,
            ignore=yes,
            git_ignore=yes,
            git_global=yes,
            git_exclude=yes,
        )

    def overrides(self, overrides: Override) -> WalkBuilder:
        return self._set(overrides=overrides)

    def follow_links(self, yes: bool) -> WalkBuilder:
        return self._set(follow_links=yes)

    def same_file_system(self, yes: bool) -> WalkBuilder:
        """Don't descend into directories on a different file system than the root."""
        return self._set(same_file_system=yes)

    def max_depth(self, depth: Optional[int] = None) -> WalkBuilder:
        """Limit descent depth; the root is depth 0. None removes the limit."""
        if depth is not None and depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {depth}")
        return self._set(max_depth=depth)

    def max_filesize(self, size: Optional[int] = None) -> WalkBuilder:
        """Skip files larger than size bytes. None removes the limit."""
        return self._set(max_filesize=size)

    def add_custom_ignore_filename(self, name: str) -> WalkBuilder:
        """Also read ignore files with this name; they take precedence over all others."""
        names = self._config.custom_ignore_filenames
        if name not in names:
            names = names + (name,)
        return self._set(custom_ignore_filenames=names)

    def add(self, path) -> WalkBuilder:
        """Add another root; roots are walked in the order they were added."""
        return self._set(roots=self._config.roots + (to_path_str(path),))

    def filter_entry(self, predicate: Callable[[DirEntry], bool]) -> WalkBuilder:
        """Prune every entry (and its subtree) for which predicate returns False."""
        return self._set(filter_entry=predicate)

    def add_ignore(self, path) -> None:
        """Read an extra ignore file that applies to every root.

        Its patterns are relative to the file's own directory and rank
        below every discovered ignore file.

        Raises:
            WalkIOError: If the file cannot be read (NotFoundError if missing).
            InvalidPatternError: If a line is malformed. The valid lines of
                the file are still added.
        """
        path = to_path_str(path)
        builder = IgnoreLayerBuilder(
            os.path.dirname(path) or os.curdir,
            self._config.ignore_case_insensitive,
        )
        try:
            errors = builder.add(path)
        except OSError as e:
            raise WalkIOError.from_os_error(path, 0, e) from e

        self._set(explicit_ignores=self._config.explicit_ignores + (builder.build(),))
        if errors:
            raise errors[0]

    def build(self) -> Walk:
        return Walk(config=self._config)


class Walk:
    """A single-pass iterator over the entries of a walk.

    Iterating yields DirEntry objects. A problem with one entry raises a
    WalkError subclass from __next__; the walk is not over and can be
    resumed by calling next() again. results() yields such errors inline
    instead, which suits a plain for loop.
    """

    def __init__(self, path=None, *, config: Optional[WalkConfig] = None):
        if config is None:
            if path is None:
                raise TypeError("Walk() needs a path or a config")
            config = WalkConfig(roots=(to_path_str(path),))
        self._state = _WalkState(config)

    @property
    def config(self) -> WalkConfig:
        return self._state.config

    def __iter__(self) -> Walk:
        return self

    def __next__(self) -> DirEntry:
        item = self._state.step()
        if item is None:
            raise StopIteration
        if isinstance(item, WalkError):
            raise item
        return item

    def results(self) -> Iterator[Union[DirEntry, WalkError]]:
        """Yield entries and per-entry errors in walk order."""
        while True:
            item = self._state.step()
            if item is None:
                return
            yield item


# =============================================================================
# Internal traversal state
# =============================================================================


class _OpenDir:
    """A directory being walked: its sorted children and a cursor into them."""

    __slots__ = ("path", "rel", "depth", "names", "index", "stack", "key")

    def __init__(self, path, rel, depth, names, stack, key):
        self.path = path
        self.rel = rel
        self.depth = depth
        self.names = names
        self.index = 0
        self.stack = stack
        self.key = key

    def next_name(self) -> Optional[str]:
        if self.index >= len(self.names):
            return None
        name = self.names[self.index]
        self.index += 1
        return name


class _WalkState:
    """
    Drives a walk one entry per step().

    Depth-first with an explicit stack of open directories, so the depth
    of the tree is not bounded by Python's recursion limit. Errors that
    belong after an entry (unreadable directory, loops) are queued and
    handed out before the next entry.
    """

    def __init__(self, config: WalkConfig):
        self.config = config
        self._roots = deque(config.roots)
        self._open: list[_OpenDir] = []
        self._queued: deque[WalkError] = deque()
        # (st_dev, st_ino) -> path, for directories currently descended into
        self._ancestors: dict[tuple[int, int], str] = {}
        self._root_device: Optional[int] = None
        self._done = False

    def step(self) -> Optional[Union[DirEntry, WalkError]]:
        """Advance the walk; return the next item or None when exhausted."""
        while True:
            if self._queued:
                return self._queued.popleft()
            if self._done:
                return None

            if self._open:
                top = self._open[-1]
                name = top.next_name()
                if name is None:
                    self._leave()
                    continue
                path = os.path.join(top.path, name)
                rel = f"{top.rel}/{name}" if top.rel else name
                item = self._visit(path, rel, name, top.depth + 1, top.stack)
            elif self._roots:
                item = self._start_root(self._roots.popleft())
            else:
                self._done = True
                return None

            if item is not None:
                return item

    def _start_root(self, root: str) -> Optional[Union[DirEntry, WalkError]]:
        debug(3, 0, f"Walking root {root}")
        self._ancestors.clear()
        self._root_device = None
        stack, errors = IgnoreStack.for_root(root, self.config)
        for e in errors:
            self._queued.append(WalkIOError.from_os_error(e.filename or root, 0, e))
        return self._visit(root, "", file_name(root), 0, stack)

    def _leave(self) -> None:
        top = self._open.pop()
        if top.key is not None:
            self._ancestors.pop(top.key, None)
        debug(3, 0, f"Leaving {top.path}")

    def _visit(
        self, path: str, rel: str, name: str, depth: int, stack: IgnoreStack
    ) -> Optional[Union[DirEntry, WalkError]]:
        """Classify, filter, yield and possibly open one path."""
        config = self.config

        try:
            st = os.stat(path) if depth == 0 else os.lstat(path)
        except OSError as e:
            return WalkIOError.from_os_error(path, depth, e)

        path_is_symlink = stat.S_ISLNK(st.st_mode)
        if depth == 0:
            try:
                path_is_symlink = os.path.islink(path)
            except OSError:
                path_is_symlink = False
        elif path_is_symlink and config.follow_links:
            try:
                st = os.stat(path)
            except OSError as e:
                return WalkIOError.from_os_error(path, depth, e)

        file_type = FileType.from_mode(st.st_mode)
        is_dir = file_type is FileType.DIR

        if depth > 0 and stack.should_skip(rel, name, is_dir, path):
            debug(2, 0, f"Skipping ignored {path}")
            return None

        if (
            depth > 0
            and config.max_filesize is not None
            and file_type is FileType.FILE
            and st.st_size > config.max_filesize
        ):
            debug(2, 0, f"Skipping {path} ({st.st_size} bytes > max_filesize)")
            return None

        entry = DirEntry(
            path,
            depth,
            file_type,
            path_is_symlink=path_is_symlink,
            follow=config.follow_links or depth == 0,
        )

        if depth > 0 and config.filter_entry is not None and not config.filter_entry(entry):
            debug(2, 0, f"Skipping filtered {path}")
            return None

        if depth == 0:
            self._root_device = st.st_dev

        if is_dir and (config.max_depth is None or depth < config.max_depth):
            self._descend(path, rel, depth, st, stack)

        return entry

    def _descend(
        self, path: str, rel: str, depth: int, st: os.stat_result, stack: IgnoreStack
    ) -> None:
        """Open a directory that was just yielded and push it on the stack."""
        config = self.config

        if config.same_file_system and st.st_dev != self._root_device:
            debug(2, 0, f"Not descending into {path}: different file system")
            return

        key = None
        if config.follow_links:
            key = (st.st_dev, st.st_ino)
            ancestor = self._ancestors.get(key)
            if ancestor is not None:
                debug(2, 0, f"Not descending into {path}: loop to {ancestor}")
                self._queued.append(LoopError(path, depth, ancestor))
                return

        try:
            names = sorted(os.listdir(path))
        except OSError as e:
            self._queued.append(WalkIOError.from_os_error(path, depth, e))
            return

        child_stack, errors = stack.add_child(path, rel)
        for e in errors:
            self._queued.append(
                WalkIOError.from_os_error(e.filename or path, depth, e)
            )

        if key is not None:
            self._ancestors[key] = path
        self._open.append(_OpenDir(path, rel, depth, names, child_stack, key))
