# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
The per-directory ignore context consulted by the walker.

An IgnoreStack is a chain of frames, one per directory from the top of the
filesystem (when parent ignore files are read) down to the directory whose
children are being evaluated. Each frame holds the ignore layers read from
its directory. Entering a directory pushes a frame and returns a new stack;
the parent's stack is left untouched, so leaving a directory is simply
returning to the parent's stack.

Candidate paths are passed relative to the walk root. Each frame knows how
to re-express them relative to its own directory: frames inside the walked
tree strip their relative directory, frames above the root prepend their
lead (the path from the frame's directory down to the root).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from ignore.gitignore import (
    IgnoreLayer,
    load_global_gitignore,
    load_ignore_files,
)
from ignore.overrides import Override
from ignore.types import Match, WalkConfig
from ignore.util import debug, is_hidden, join_rel, to_posix

IGNORE_FILE = ".ignore"
GITIGNORE_FILE = ".gitignore"
GIT_DIR = ".git"

_EMPTY = IgnoreLayer.empty()


@dataclass(frozen=True)
class IgnoreOptions:
    """The subset of WalkConfig that decides which ignore sources apply."""

    hidden: bool = True
    ignore: bool = True
    git_ignore: bool = True
    git_global: bool = True
    git_exclude: bool = True
    parents: bool = True
    require_git: bool = True
    ignore_case_insensitive: bool = False
    custom_ignore_filenames: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: WalkConfig) -> IgnoreOptions:
        return cls(
            hidden=config.hidden,
            ignore=config.ignore,
            git_ignore=config.git_ignore,
            git_global=config.git_global,
            git_exclude=config.git_exclude,
            parents=config.parents,
            require_git=config.require_git,
            ignore_case_insensitive=config.ignore_case_insensitive,
            custom_ignore_filenames=config.custom_ignore_filenames,
        )


@dataclass(frozen=True)
class _Frame:
    """The ignore layers of one directory."""

    parent: Optional[_Frame]
    dir: str
    rel_dir: Optional[str]
    lead: Optional[str]
    custom: IgnoreLayer
    ignore: IgnoreLayer
    gitignore: IgnoreLayer
    exclude: IgnoreLayer
    has_git: bool

    def relative(self, rel: str) -> str:
        """Re-express a root-relative path relative to this frame's directory."""
        if self.lead is not None:
            return join_rel(self.lead, rel)
        if not self.rel_dir:
            return rel
        return rel[len(self.rel_dir) + 1:]


@dataclass(frozen=True)
class _Shared:
    """State fixed for the whole walk of one root."""

    options: IgnoreOptions
    overrides: Optional[Override]
    global_layer: IgnoreLayer
    global_lead: str
    explicit: tuple[tuple[IgnoreLayer, Optional[str]], ...]
    outer_exclude: IgnoreLayer
    outer_lead: str
    repo_found: bool


class IgnoreStack:
    """Decides, for one directory's children, which entries to skip."""

    __slots__ = ("_shared", "_top", "_any_git")

    def __init__(self, shared: _Shared, top: Optional[_Frame], any_git: bool):
        self._shared = shared
        self._top = top
        self._any_git = any_git

    @classmethod
    def for_root(cls, root: str, config: WalkConfig) -> tuple[IgnoreStack, list[OSError]]:
        """Build the stack that evaluates a walk root's children's ancestors.

        Resolves the global excludes file, locates the enclosing repository
        and, when parents is set, loads the ignore files of every ancestor
        of the root. The root's own frame is pushed by the walker when it
        enters the root.

        Returns:
            (stack, read_errors)
        """
        options = IgnoreOptions.from_config(config)
        ci = options.ignore_case_insensitive
        abs_root = os.path.abspath(root)
        repo_root = find_repository(abs_root)
        errors: list[OSError] = []

        global_layer, global_lead = _EMPTY, ""
        if options.git_global:
            global_root = repo_root if repo_root is not None else abs_root
            global_layer, errs = load_global_gitignore(global_root, ci)
            global_lead = _lead(abs_root, global_root)
            errors.extend(errs)

        outer_exclude, outer_lead = _EMPTY, ""
        if (
            options.git_exclude
            and not options.parents
            and repo_root is not None
            and repo_root != abs_root
        ):
            outer_exclude, errs = _load_exclude(repo_root, ci)
            outer_lead = _lead(abs_root, repo_root)
            errors.extend(errs)

        explicit = []
        for layer in reversed(config.explicit_ignores):
            layer_root = os.path.abspath(layer.root or ".")
            lead = _lead(abs_root, layer_root) if _is_within(abs_root, layer_root) else None
            explicit.append((layer, lead))

        shared = _Shared(
            options=options,
            overrides=config.overrides,
            global_layer=global_layer,
            global_lead=global_lead,
            explicit=tuple(explicit),
            outer_exclude=outer_exclude,
            outer_lead=outer_lead,
            repo_found=repo_root is not None,
        )
        stack = cls(shared, None, shared.repo_found)

        if options.parents:
            for ancestor in reversed(_ancestors(abs_root)):
                stack, errs = stack._push(ancestor, rel_dir=None, lead=_lead(abs_root, ancestor))
                errors.extend(errs)

        return stack, errors

    def add_child(self, directory: str, rel_dir: str) -> tuple[IgnoreStack, list[OSError]]:
        """Push the frame of a directory inside the walked tree.

        Args:
            directory: The directory path as the walker joined it
            rel_dir: The same directory relative to the walk root ('' for the root)

        Returns:
            (child_stack, read_errors)
        """
        return self._push(directory, rel_dir=rel_dir, lead=None)

    def _push(
        self, directory: str, rel_dir: Optional[str], lead: Optional[str]
    ) -> tuple[IgnoreStack, list[OSError]]:
        options = self._shared.options
        ci = options.ignore_case_insensitive
        errors: list[OSError] = []
        has_git = os.path.lexists(os.path.join(directory, GIT_DIR))
        any_git = self._any_git or has_git

        custom = ignore = gitignore = exclude = _EMPTY
        if options.custom_ignore_filenames:
            custom, errs = load_ignore_files(directory, options.custom_ignore_filenames, ci)
            errors.extend(errs)
        if options.ignore:
            ignore, errs = load_ignore_files(directory, (IGNORE_FILE,), ci)
            errors.extend(errs)
        if options.git_ignore and (any_git or not options.require_git):
            gitignore, errs = load_ignore_files(directory, (GITIGNORE_FILE,), ci)
            errors.extend(errs)
        if options.git_exclude and has_git:
            exclude, errs = _load_exclude(directory, ci)
            errors.extend(errs)

        frame = _Frame(
            parent=self._top,
            dir=directory,
            rel_dir=rel_dir,
            lead=lead,
            custom=custom,
            ignore=ignore,
            gitignore=gitignore,
            exclude=exclude,
            has_git=has_git,
        )
        debug(3, 0, f"Entering {directory}")
        return IgnoreStack(self._shared, frame, any_git), errors

    def matched(self, rel: str, name: str, is_dir: bool, path: str) -> Match:
        """Resolve the verdict for one candidate entry.

        Args:
            rel: The entry relative to the walk root, '/'-separated
            name: The entry's base name
            is_dir: Whether the entry is (or links to) a directory
            path: The entry path as the walker joined it

        Sources are tried in precedence order and the first verdict wins:
        overrides, custom ignore files, .gitignore, .ignore,
        .git/info/exclude, the global excludes file, explicitly added ignore
        files and finally the hidden-file rule.
        """
        shared = self._shared
        options = shared.options

        if shared.overrides is not None and not shared.overrides.is_empty():
            verdict = shared.overrides.matched(path, is_dir)
            if not verdict.is_none:
                debug(4, 1, f"{rel}: {verdict.value} by override")
                return verdict

        m_custom = m_gitignore = m_ignore = m_exclude = Match.NONE
        use_git = self._any_git or not options.require_git
        saw_git = False
        frame = self._top
        while frame is not None:
            frame_rel = frame.relative(rel)
            if m_custom.is_none:
                m_custom = frame.custom.matched_relative(frame_rel, is_dir)
            if m_ignore.is_none:
                m_ignore = frame.ignore.matched_relative(frame_rel, is_dir)
            if use_git and not saw_git:
                if m_gitignore.is_none:
                    m_gitignore = frame.gitignore.matched_relative(frame_rel, is_dir)
                if m_exclude.is_none:
                    m_exclude = frame.exclude.matched_relative(frame_rel, is_dir)
            saw_git = saw_git or frame.has_git
            frame = frame.parent

        verdict = m_custom.or_else(m_gitignore).or_else(m_ignore).or_else(m_exclude)
        if verdict.is_none and use_git and not saw_git:
            verdict = shared.outer_exclude.matched_relative(
                join_rel(shared.outer_lead, rel), is_dir
            )
        if verdict.is_none and use_git:
            verdict = shared.global_layer.matched_relative(
                join_rel(shared.global_lead, rel), is_dir
            )
        if verdict.is_none:
            for layer, lead in shared.explicit:
                if lead is None:
                    verdict = layer.matched(path, is_dir)
                else:
                    verdict = layer.matched_relative(join_rel(lead, rel), is_dir)
                if not verdict.is_none:
                    break
        if verdict.is_none and options.hidden and is_hidden(name):
            verdict = Match.IGNORE

        if not verdict.is_none:
            debug(4, 1, f"{rel}: {verdict.value}")
        return verdict

    def should_skip(self, rel: str, name: str, is_dir: bool, path: str) -> bool:
        """True when the entry is ignored and must be neither yielded nor opened."""
        return self.matched(rel, name, is_dir, path).is_ignore


# =============================================================================
# Module-level helper functions
# =============================================================================


def find_repository(abs_dir: str) -> Optional[str]:
    """Return the nearest directory at or above abs_dir that contains .git."""
    current = abs_dir
    while True:
        if os.path.lexists(os.path.join(current, GIT_DIR)):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def git_dir_of(repo_dir: str) -> str:
    """Resolve the git directory of a repository, following 'gitdir:' files."""
    dot_git = os.path.join(repo_dir, GIT_DIR)
    if os.path.isfile(dot_git):
        try:
            with open(dot_git, "r", encoding="utf-8", errors="surrogateescape") as f:
                first = f.readline().strip()
        except OSError:
            return dot_git
        if first.startswith("gitdir:"):
            return os.path.join(repo_dir, first[len("gitdir:"):].strip())
    return dot_git


def _load_exclude(repo_dir: str, case_insensitive: bool) -> tuple[IgnoreLayer, list[OSError]]:
    info_dir = os.path.join(git_dir_of(repo_dir), "info")
    return load_ignore_files(info_dir, ("exclude",), case_insensitive, root=repo_dir)


def _ancestors(abs_dir: str) -> list[str]:
    """Strict ancestors of abs_dir, nearest first, up to the filesystem root."""
    result = []
    current = abs_dir
    while True:
        parent = os.path.dirname(current)
        if parent == current:
            return result
        result.append(parent)
        current = parent


def _lead(abs_root: str, abs_dir: str) -> str:
    """Path from abs_dir down to abs_root, '/'-separated ('' when equal)."""
    rel = os.path.relpath(abs_root, abs_dir)
    return "" if rel == os.curdir else to_posix(rel)


def _is_within(abs_path: str, abs_dir: str) -> bool:
    if abs_path == abs_dir:
        return True
    prefix = abs_dir if abs_dir.endswith(os.sep) else abs_dir + os.sep
    return abs_path.startswith(prefix)
