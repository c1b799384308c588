"""
Pytest configuration for ignore-python tests.

Every test gets a private HOME (so the user's global git excludes file
and ~/.ignorewalkrc are never read) and a scratch tree to walk.
"""

from __future__ import annotations

import os

import pytest

from ignore import WalkBuilder
from ignore.types import WalkError


class WalkTestEnv:
    """A scratch directory tree plus helpers for walking it."""

    def __init__(self, tmp_path):
        self.base = str(tmp_path)
        self.home = os.path.join(self.base, "home")
        self.root = os.path.join(self.base, "tree")
        os.makedirs(self.home)
        os.makedirs(self.root)

    def path(self, rel: str = "") -> str:
        return os.path.join(self.root, rel) if rel else self.root

    def create(self, files):
        """
        Create entries below the tree root.

        files: dict mapping relative paths to content (or None for directories)
        """
        for rel, content in files.items():
            full_path = self.path(rel)
            if content is None:
                os.makedirs(full_path, exist_ok=True)
                continue
            parent = os.path.dirname(full_path)
            os.makedirs(parent, exist_ok=True)
            mode = "wb" if isinstance(content, bytes) else "w"
            with open(full_path, mode) as f:
                f.write(content)

    def write(self, rel: str, content: str) -> str:
        self.create({rel: content})
        return self.path(rel)

    def mkdir(self, rel: str) -> str:
        self.create({rel: None})
        return self.path(rel)

    def symlink(self, rel: str, dest: str) -> str:
        full_path = self.path(rel)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        os.symlink(dest, full_path)
        return full_path

    def init_git(self, rel: str = "") -> str:
        """Mark a directory as a git repository root."""
        return self.mkdir(os.path.join(rel, ".git") if rel else ".git")

    def builder(self, rel: str = "") -> WalkBuilder:
        return WalkBuilder(self.path(rel))

    def rel(self, entry) -> str:
        path = os.fspath(entry)
        rel = os.path.relpath(path, self.root)
        return "" if rel == os.curdir else rel.replace(os.sep, "/")

    def paths(self, walk) -> list[str]:
        """Relative paths of the entries yielded below the root, in walk order.

        Errors are collected in self.errors.
        """
        self.errors = []
        result = []
        for item in walk.results():
            if isinstance(item, WalkError):
                self.errors.append(item)
            elif item.depth() > 0:
                result.append(self.rel(item))
        return result


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Isolated tree and HOME for one test."""
    walk_env = WalkTestEnv(tmp_path)
    monkeypatch.setenv("HOME", walk_env.home)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.chdir(walk_env.base)
    return walk_env
