"""
Tests for IgnoreStack: which source decides, and where files are looked up.
"""

import os

from ignore.dir import IgnoreStack, find_repository, git_dir_of
from ignore.gitignore import IgnoreLayerBuilder
from ignore.overrides import OverrideBuilder
from ignore.types import Match, WalkConfig


def stack_for(env, config, *dirs):
    """Stack as the walker has it when evaluating children of dirs[-1]."""
    stack, errors = IgnoreStack.for_root(env.root, config)
    assert errors == []
    stack, errors = stack.add_child(env.root, "")
    assert errors == []
    for rel in dirs:
        stack, errors = stack.add_child(env.path(rel), rel)
        assert errors == []
    return stack


def verdict(stack, env, rel, is_dir=False):
    name = rel.rsplit("/", 1)[-1]
    return stack.matched(rel, name, is_dir, env.path(rel))


def config_for(env, **kwargs):
    return WalkConfig(roots=(env.root,), **kwargs)


class TestPrecedence:
    def test_override_beats_gitignore(self, env):
        env.init_git()
        env.create({".gitignore": "*.txt\n", "sub/.gitignore": "*.txt\n"})
        overrides = OverrideBuilder(env.root).add("secrets.txt").build()
        stack = stack_for(env, config_for(env, overrides=overrides), "sub")
        assert verdict(stack, env, "sub/secrets.txt") is Match.WHITELIST
        # Whitelist overrides ignore every other file
        assert verdict(stack, env, "sub/notes.txt") is Match.IGNORE

    def test_override_ignore_is_final(self, env):
        env.create({".ignore": "!build.log\n"})
        overrides = OverrideBuilder(env.root).add("!*.log").build()
        stack = stack_for(env, config_for(env, overrides=overrides))
        assert verdict(stack, env, "build.log") is Match.IGNORE

    def test_custom_beats_gitignore(self, env):
        env.init_git()
        env.create({".gitignore": "x.txt\n", ".myignore": "!x.txt\n"})
        config = config_for(env, custom_ignore_filenames=(".myignore",))
        stack = stack_for(env, config)
        assert verdict(stack, env, "x.txt") is Match.WHITELIST

    def test_gitignore_beats_dot_ignore(self, env):
        env.init_git()
        env.create({".gitignore": "x.txt\n", ".ignore": "!x.txt\n"})
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "x.txt") is Match.IGNORE

    def test_dot_ignore_beats_exclude(self, env):
        env.init_git()
        env.create({".git/info/exclude": "*.cfg\n", ".ignore": "!local.cfg\n"})
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "local.cfg") is Match.WHITELIST
        assert verdict(stack, env, "other.cfg") is Match.IGNORE

    def test_exclude_beats_global(self, env):
        env.init_git()
        global_dir = os.path.join(env.home, ".config", "git")
        os.makedirs(global_dir)
        with open(os.path.join(global_dir, "ignore"), "w") as f:
            f.write("*.swp\n")
        env.create({".git/info/exclude": "!keep.swp\n"})
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "a.swp") is Match.IGNORE
        assert verdict(stack, env, "keep.swp") is Match.WHITELIST

    def test_explicit_ignore_below_discovered_files(self, env):
        extra = os.path.join(env.base, "extra-ignore")
        with open(extra, "w") as f:
            f.write("*.dat\nkeep.bin\n")
        layer = IgnoreLayerBuilder(env.base)
        layer.add(extra)
        env.create({".ignore": "!keep.dat\n"})
        config = config_for(env, explicit_ignores=(layer.build(),))
        stack = stack_for(env, config)
        assert verdict(stack, env, "x.dat") is Match.IGNORE
        assert verdict(stack, env, "keep.dat") is Match.WHITELIST
        assert verdict(stack, env, "keep.bin") is Match.IGNORE

    def test_hidden_rule_last(self, env):
        env.create({".ignore": "!.env\n"})
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, ".hidden") is Match.IGNORE
        assert verdict(stack, env, ".env") is Match.WHITELIST
        assert verdict(stack, env, "visible") is Match.NONE

    def test_hidden_disabled(self, env):
        stack = stack_for(env, config_for(env, hidden=False))
        assert verdict(stack, env, ".hidden") is Match.NONE


class TestLayering:
    def test_deeper_file_wins(self, env):
        env.init_git()
        env.create({".gitignore": "*.log\n", "sub/.gitignore": "!keep.log\n"})
        stack = stack_for(env, config_for(env), "sub")
        assert verdict(stack, env, "sub/keep.log") is Match.WHITELIST
        assert verdict(stack, env, "sub/other.log") is Match.IGNORE

    def test_patterns_relative_to_their_directory(self, env):
        env.create({"sub/.ignore": "/data\n"})
        stack = stack_for(env, config_for(env), "sub")
        assert verdict(stack, env, "sub/data") is Match.IGNORE
        deeper = stack.add_child(env.mkdir("sub/x"), "sub/x")[0]
        assert verdict(deeper, env, "sub/x/data") is Match.NONE

    def test_parent_stack_unchanged_by_child(self, env):
        env.create({"sub/.ignore": "*.tmp\n"})
        root_stack = stack_for(env, config_for(env))
        root_stack.add_child(env.path("sub"), "sub")
        assert verdict(root_stack, env, "a.tmp") is Match.NONE

    def test_multiple_custom_names_later_wins(self, env):
        env.create({".first": "x\n", ".second": "!x\n"})
        config = config_for(env, custom_ignore_filenames=(".first", ".second"))
        assert verdict(stack_for(env, config), env, "x") is Match.WHITELIST

    def test_dir_only_pattern(self, env):
        env.create({".ignore": "build/\n"})
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "build", is_dir=True) is Match.IGNORE
        assert verdict(stack, env, "build", is_dir=False) is Match.NONE

    def test_disabled_sources(self, env):
        env.init_git()
        env.create({".gitignore": "a\n", ".ignore": "b\n", ".git/info/exclude": "c\n"})
        config = config_for(env, git_ignore=False, ignore=False, git_exclude=False)
        stack = stack_for(env, config)
        for name in ("a", "b", "c"):
            assert verdict(stack, env, name) is Match.NONE


class TestRequireGit:
    def test_gitignore_absent_outside_repository(self, env):
        env.create({".gitignore": "*.o\n", ".ignore": "*.a\n"})
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "x.o") is Match.NONE
        assert verdict(stack, env, "x.a") is Match.IGNORE

    def test_gitignore_applies_without_require_git(self, env):
        env.create({".gitignore": "*.o\n"})
        stack = stack_for(env, config_for(env, require_git=False))
        assert verdict(stack, env, "x.o") is Match.IGNORE

    def test_global_absent_outside_repository(self, env):
        global_dir = os.path.join(env.home, ".config", "git")
        os.makedirs(global_dir)
        with open(os.path.join(global_dir, "ignore"), "w") as f:
            f.write("*.swp\n")
        assert verdict(stack_for(env, config_for(env)), env, "a.swp") is Match.NONE
        config = config_for(env, require_git=False)
        assert verdict(stack_for(env, config), env, "a.swp") is Match.IGNORE

    def test_nested_repository_enables_its_gitignore(self, env):
        env.create({".gitignore": "*.c\n", "sub/.gitignore": "*.o\n"})
        env.init_git("sub")
        root_stack = stack_for(env, config_for(env))
        assert verdict(root_stack, env, "main.c") is Match.NONE
        sub_stack = stack_for(env, config_for(env), "sub")
        assert verdict(sub_stack, env, "sub/main.o") is Match.IGNORE

    def test_custom_files_independent_of_git(self, env):
        env.create({".myignore": "*.o\n"})
        config = config_for(env, custom_ignore_filenames=(".myignore",))
        assert verdict(stack_for(env, config), env, "x.o") is Match.IGNORE

    def test_repository_above_root_found(self, env):
        # The walk root is a subdirectory of the repository
        env.init_git()
        env.create({"sub/.gitignore": "*.o\n"})
        stack, _ = IgnoreStack.for_root(env.path("sub"), WalkConfig(roots=(env.path("sub"),)))
        stack, _ = stack.add_child(env.path("sub"), "")
        name = "x.o"
        assert stack.matched(name, name, False, env.path("sub/x.o")) is Match.IGNORE


class TestParents:
    def test_parent_ignore_files_loaded(self, env):
        with open(os.path.join(env.base, ".ignore"), "w") as f:
            f.write("*.bak\n/tree/top.txt\n")
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "a.bak") is Match.IGNORE
        assert verdict(stack, env, "top.txt") is Match.IGNORE

    def test_parents_disabled(self, env):
        with open(os.path.join(env.base, ".ignore"), "w") as f:
            f.write("*.bak\n")
        stack = stack_for(env, config_for(env, parents=False))
        assert verdict(stack, env, "a.bak") is Match.NONE

    def test_gitignore_above_repository_root_does_not_apply(self, env):
        env.init_git()
        with open(os.path.join(env.base, ".gitignore"), "w") as f:
            f.write("*.md\n")
        stack = stack_for(env, config_for(env))
        assert verdict(stack, env, "README.md") is Match.NONE

    def test_exclude_of_outer_repository_without_parents(self, env):
        env.init_git()
        env.create({".git/info/exclude": "/sub/local.cfg\n"})
        sub = env.mkdir("sub")
        config = WalkConfig(roots=(sub,), parents=False)
        stack, _ = IgnoreStack.for_root(sub, config)
        stack, _ = stack.add_child(sub, "")
        path = os.path.join(sub, "local.cfg")
        assert stack.matched("local.cfg", "local.cfg", False, path) is Match.IGNORE


class TestRepositoryHelpers:
    def test_find_repository(self, env):
        env.init_git()
        deep = env.mkdir("a/b/c")
        assert find_repository(deep) == env.root
        assert find_repository(env.base) is None

    def test_git_dir_of_worktree_file(self, env):
        real = env.mkdir("real-git-dir")
        env.write("wt/.git", f"gitdir: {real}\n")
        assert git_dir_of(env.path("wt")) == real

    def test_exclude_through_gitdir_file(self, env):
        real = env.mkdir("gitdir")
        env.write("gitdir/info/exclude", "*.secret\n")
        env.write("wt/.git", f"gitdir: {real}\n")
        sub = env.path("wt")
        stack, _ = IgnoreStack.for_root(sub, WalkConfig(roots=(sub,)))
        stack, _ = stack.add_child(sub, "")
        path = os.path.join(sub, "a.secret")
        assert stack.matched("a.secret", "a.secret", False, path) is Match.IGNORE
