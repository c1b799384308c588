# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Command-line interface for ignore-python.

This module contains the ignore-walk command, the handling of the
.ignorewalkrc configuration files and the main entry point.
"""

from __future__ import annotations

import os
import shlex
import sys
from typing import Optional, Sequence

import click

from ignore.overrides import OverrideBuilder
from ignore.types import IgnoreCLIError, IgnoreError, WalkError
from ignore.util import PROGRAM_NAME, VERSION, expand_filepath, set_debug_level
from ignore.walk import WalkBuilder

RC_FILE = ".ignorewalkrc"


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the ignore-walk command."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        args = get_config_file_options() + args
        status = walk_command.main(
            args=args, prog_name=PROGRAM_NAME, standalone_mode=False
        )
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        sys.exit(1)
    except IgnoreCLIError as e:
        print(e.message, file=sys.stderr)
        sys.exit(e.errno)
    except IgnoreError as e:
        print(f"{PROGRAM_NAME}: ERROR: {e.message}", file=sys.stderr)
        sys.exit(e.errno)
    sys.exit(status or 0)


def get_config_file_options() -> list[str]:
    """Read default arguments from the .ignorewalkrc files.

    ~/.ignorewalkrc is read first, then ./.ignorewalkrc, so options in the
    current directory's file come later and win. Each line is split like a
    shell command line.
    """
    defaults: list[str] = []
    candidate_paths = [RC_FILE]

    home = os.environ.get("HOME")
    if home:
        candidate_paths.insert(0, os.path.join(home, RC_FILE))

    for file_path in candidate_paths:
        try:
            with open(file_path, "r") as f:
                for line in f:
                    line = line.rstrip("\n\r")
                    if line.lstrip().startswith("#"):
                        continue
                    try:
                        defaults.extend(shlex.split(line))
                    except ValueError:
                        defaults.extend(line.split())
        except (FileNotFoundError, PermissionError):
            continue
        except IsADirectoryError:
            raise IgnoreCLIError(f"Could not open {file_path} for reading")

    return defaults


@click.command(
    name=PROGRAM_NAME,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--hidden", is_flag=True, help="Include hidden files and directories.")
@click.option("--no-ignore", is_flag=True, help="Don't read any ignore files.")
@click.option("--no-ignore-vcs", is_flag=True, help="Don't read .gitignore, exclude or global files.")
@click.option("--no-ignore-dot", is_flag=True, help="Don't read .ignore files.")
@click.option("--no-ignore-parent", is_flag=True, help="Don't read ignore files of parent directories.")
@click.option("--no-ignore-global", is_flag=True, help="Don't read the global git excludes file.")
@click.option("--no-ignore-exclude", is_flag=True, help="Don't read .git/info/exclude.")
@click.option("--no-require-git", is_flag=True, help="Apply .gitignore files outside git repositories.")
@click.option("-L", "--follow", is_flag=True, help="Follow symbolic links.")
@click.option("--one-file-system", is_flag=True, help="Don't cross file system boundaries.")
@click.option("-d", "--max-depth", type=click.IntRange(min=0), help="Descend at most this deep.")
@click.option("--max-filesize", type=click.IntRange(min=0), help="Skip files larger than this many bytes.")
@click.option("-g", "--glob", "globs", multiple=True, help="Override glob; prefix with '!' to exclude.")
@click.option("--iglob", "iglobs", multiple=True, help="Case-insensitive override glob; --glob stays case-sensitive.")
@click.option("--ignore-file", "ignore_files", multiple=True, help="Extra ignore file (lowest precedence).")
@click.option("--custom-ignore-filename", "custom_names", multiple=True, help="Also read ignore files with this name.")
@click.option("--ignore-case", is_flag=True, help="Match ignore files case-insensitively.")
@click.option("--depth", "show_depth", is_flag=True, help="Prefix each path with its depth.")
@click.option("-0", "--null", "null", is_flag=True, help="Separate paths with NUL instead of newline.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (up to -vvvvv).")
@click.version_option(VERSION, "-V", "--version", prog_name=PROGRAM_NAME)
@click.pass_context
def walk_command(
    ctx: click.Context,
    paths: tuple[str, ...],
    hidden: bool,
    no_ignore: bool,
    no_ignore_vcs: bool,
    no_ignore_dot: bool,
    no_ignore_parent: bool,
    no_ignore_global: bool,
    no_ignore_exclude: bool,
    no_require_git: bool,
    follow: bool,
    one_file_system: bool,
    max_depth: Optional[int],
    max_filesize: Optional[int],
    globs: tuple[str, ...],
    iglobs: tuple[str, ...],
    ignore_files: tuple[str, ...],
    custom_names: tuple[str, ...],
    ignore_case: bool,
    show_depth: bool,
    null: bool,
    verbose: int,
) -> int:
    """Print the paths below PATH (default '.') that are not ignored."""
    set_debug_level(verbose)
    roots = paths or (".",)

    try:
        builder = build_walk(
            roots,
            hidden=hidden,
            no_ignore=no_ignore,
            no_ignore_vcs=no_ignore_vcs,
            no_ignore_dot=no_ignore_dot,
            no_ignore_parent=no_ignore_parent,
            no_ignore_global=no_ignore_global,
            no_ignore_exclude=no_ignore_exclude,
            no_require_git=no_require_git,
            follow=follow,
            one_file_system=one_file_system,
            max_depth=max_depth,
            max_filesize=max_filesize,
            globs=globs,
            iglobs=iglobs,
            ignore_files=ignore_files,
            custom_names=custom_names,
            ignore_case=ignore_case,
        )
    except IgnoreError as e:
        click.echo(f"{PROGRAM_NAME}: ERROR: {e.message}", err=True)
        ctx.exit(1)

    end = b"\0" if null else b"\n"
    status = 0
    for item in builder.build().results():
        if isinstance(item, WalkError):
            click.echo(f"{PROGRAM_NAME}: ERROR: {item.message}", err=True)
            status = 2
            continue
        # Raw bytes, so names that aren't valid UTF-8 are printed as they are
        line = os.fsencode(os.fspath(item))
        if show_depth:
            line = b"%d\t%s" % (item.depth(), line)
        click.echo(line + end, nl=False)

    if status:
        ctx.exit(status)
    return status


def build_walk(roots: Sequence[str], **options) -> WalkBuilder:
    """Translate command line options into a configured WalkBuilder.

    Raises:
        InvalidPatternError: If a --glob/--iglob or --ignore-file line is malformed.
        WalkIOError: If an --ignore-file cannot be read.
    """
    builder = WalkBuilder(roots[0])
    for root in roots[1:]:
        builder.add(root)

    builder.hidden(not options["hidden"])
    builder.parents(not options["no_ignore_parent"])
    builder.ignore(not options["no_ignore_dot"])
    builder.git_ignore(not options["no_ignore_vcs"])
    builder.git_global(not (options["no_ignore_vcs"] or options["no_ignore_global"]))
    builder.git_exclude(not (options["no_ignore_vcs"] or options["no_ignore_exclude"]))
    builder.require_git(not options["no_require_git"])
    builder.ignore_case_insensitive(options["ignore_case"])
    builder.follow_links(options["follow"])
    builder.same_file_system(options["one_file_system"])
    builder.max_depth(options["max_depth"])
    builder.max_filesize(options["max_filesize"])

    if options["no_ignore"]:
        builder.ignore(False).git_ignore(False).git_global(False).git_exclude(False)
        builder.parents(False)
    else:
        for name in options["custom_names"]:
            builder.add_custom_ignore_filename(name)
        for path in options["ignore_files"]:
            builder.add_ignore(expand_filepath(path))

    globs, iglobs = options["globs"], options["iglobs"]
    if globs or iglobs:
        override = OverrideBuilder(os.curdir)
        for glob in globs:
            override.add(glob)
        override.case_insensitive(True)
        for glob in iglobs:
            override.add(glob)
        builder.overrides(override.build())

    return builder
