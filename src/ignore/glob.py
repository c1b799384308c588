# Ignore-Python - gitignore-aware directory traversal
# Copyright (C) 2025 Istvan Sarandi
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Compilation of gitignore-style pattern lines into regular expressions.

A pattern line goes through the usual gitignore parsing (comments, trailing
whitespace, '!' negation, '/' anchoring, trailing '/' for directories). The
remaining glob is turned into regexes by pathspec's gitwildmatch translator,
which are matched against '/'-separated paths relative to the directory the
pattern came from.

Two things are handled here before the glob reaches pathspec: '{a,b}'
alternates are expanded into one glob per alternative, and bracket
expressions are translated locally so that they accept '^' negation and
never match '/'.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from pathspec.patterns import GitWildMatchPattern
from pathspec.patterns.gitwildmatch import GitWildMatchPatternError

from ignore.types import InvalidPatternError
from ignore.util import debug

# Trailing whitespace that is not preceded by a backslash
_TRAILING_WS = re.compile(r"(?<!\\)[ \t]+$")

# Bracket expressions travel through pathspec as private-use stand-ins
_STAND_IN_BASE = 0xE000


@dataclass(frozen=True)
class Pattern:
    """
    One compiled pattern line.

    Attributes:
        original: The line as written (minus the line terminator)
        glob: The glob left after stripping '!', '/' and trailing '/'
        regexes: One compiled matcher per '{a,b}' alternative, for paths
            relative to the pattern's directory
        whitelist: True for negated ('!') patterns
        anchored: Only matches relative to the pattern's own directory
        dir_only: Only matches directories
        source: File the pattern was read from, if any
        lineno: Line number within source
    """

    original: str
    glob: str
    regexes: tuple[re.Pattern, ...]
    whitelist: bool = False
    anchored: bool = False
    dir_only: bool = False
    source: Optional[str] = None
    lineno: Optional[int] = None

    def is_match(self, rel_path: str, is_dir: bool) -> bool:
        """Check a '/'-separated path relative to the pattern's directory."""
        if self.dir_only and not is_dir:
            return False
        return any(_matches_whole_path(regex, rel_path) for regex in self.regexes)


def _matches_whole_path(regex: re.Pattern, path: str) -> bool:
    m = regex.fullmatch(path)
    if m is None:
        return False
    # pathspec sets its named group when only a parent directory matched;
    # parents get their own verdict when the walker visits them
    return all(m.start(name) == -1 for name in regex.groupindex)


def compile_pattern(
    line: str,
    *,
    case_insensitive: bool = False,
    source: Optional[str] = None,
    lineno: Optional[int] = None,
) -> Optional[Pattern]:
    """Compile one gitignore line.

    Args:
        line: The pattern line
        case_insensitive: Compile the regexes with re.IGNORECASE
        source: File the line was read from (for error messages)
        lineno: Line number within source

    Returns:
        The compiled Pattern, or None for blank lines and comments.

    Raises:
        InvalidPatternError: If the glob syntax is malformed.
    """
    original = line.rstrip("\r\n")
    if original.startswith("#"):
        return None

    text = _TRAILING_WS.sub("", original)
    if not text:
        return None

    whitelist = False
    anchored = False
    dir_only = False

    if text.startswith("\\!") or text.startswith("\\#"):
        text = text[1:]
    elif text.startswith("!"):
        whitelist = True
        text = text[1:]

    if text.startswith("/"):
        anchored = True
        text = text[1:]

    if text.endswith("/") and not text.endswith("\\/"):
        dir_only = True
        text = text[:-1]

    if not text:
        return None

    # A slash anywhere but the end anchors the pattern as well
    if "/" in text:
        anchored = True

    def fail(reason: str) -> InvalidPatternError:
        return InvalidPatternError(original, reason, source, lineno)

    flags = re.DOTALL
    if case_insensitive:
        flags |= re.IGNORECASE

    regexes = []
    for glob in expand_alternates(text, fail):
        regex = _compile_glob(glob, anchored, flags, fail)
        if regex is not None:
            regexes.append(regex)
    if not regexes:
        return None

    debug(5, 2, f"| Compiled {original!r} => "
          + " ".join(f"/{regex.pattern}/" for regex in regexes))
    return Pattern(
        original=original,
        glob=text,
        regexes=tuple(regexes),
        whitelist=whitelist,
        anchored=anchored,
        dir_only=dir_only,
        source=source,
        lineno=lineno,
    )


def _compile_glob(glob: str, anchored: bool, flags: int, fail) -> Optional[re.Pattern]:
    """Build the regex for one alternative through pathspec."""
    glob, classes = _stash_classes(glob, fail)
    if glob == "**":
        # A lone '**' matches every path at any depth
        glob = "**/*"
    if anchored:
        glob = "/" + glob
    elif glob[:1] in ("!", "#") or glob[:1].isspace():
        # pathspec would read these as negation, comment or padding
        glob = "\\" + glob

    try:
        source_regex, _ = GitWildMatchPattern.pattern_to_regex(glob)
    except GitWildMatchPatternError as e:
        raise fail(str(e)) from e
    if source_regex is None:
        return None

    for stand_in, class_regex in classes.items():
        source_regex = source_regex.replace(re.escape(stand_in), class_regex)
    try:
        return re.compile(source_regex, flags)
    except re.error as e:
        raise fail(str(e)) from e


def expand_alternates(glob: str, fail) -> list[str]:
    """Expand '{a,b}' groups into one glob per alternative.

    Groups don't nest. Escapes and bracket expressions are copied through
    as they are, so a ',' or '}' inside them is literal. A glob without
    groups comes back as the only element.
    """
    variants = [""]
    i = 0
    n = len(glob)
    while i < n:
        if glob[i] == "{":
            options, i = _split_alternates(glob, i, fail)
            variants = [v + option for v in variants for option in options]
            continue
        j = _skip_literal(glob, i, fail)
        variants = [v + glob[i:j] for v in variants]
        i = j
    return variants


def _split_alternates(glob: str, start: int, fail) -> tuple[list[str], int]:
    options = []
    begin = i = start + 1
    n = len(glob)
    while i < n:
        c = glob[i]
        if c == "{":
            raise fail("nested alternate groups are not allowed")
        if c == "}":
            options.append(glob[begin:i])
            return options, i + 1
        if c == ",":
            options.append(glob[begin:i])
            begin = i = i + 1
            continue
        i = _skip_literal(glob, i, fail)
    raise fail("unclosed alternate group; missing '}'")


def _skip_literal(glob: str, i: int, fail) -> int:
    """Return the index just past the escape, bracket expression or character at i."""
    c = glob[i]
    if c == "\\":
        if i + 1 >= len(glob):
            raise fail("dangling '\\'")
        return i + 2
    if c == "[":
        return _translate_class(glob, i, fail)[1]
    return i + 1


def _stash_classes(glob: str, fail) -> tuple[str, dict[str, str]]:
    """Replace each bracket expression by a stand-in character.

    Returns the rewritten glob and a map from stand-in to class regex.
    """
    classes: dict[str, str] = {}
    out = []
    i = 0
    n = len(glob)
    while i < n:
        if glob[i] == "[":
            class_regex, i = _translate_class(glob, i, fail)
            code = _STAND_IN_BASE
            while chr(code) in glob or chr(code) in classes:
                code += 1
            classes[chr(code)] = class_regex
            out.append(chr(code))
        else:
            j = _skip_literal(glob, i, fail)
            out.append(glob[i:j])
            i = j
    return "".join(out), classes


def _translate_class(glob: str, start: int, fail) -> tuple[str, int]:
    """Translate the bracket expression starting at glob[start] == '['.

    Returns the regex and the index just past the closing ']'. The regex
    never matches '/'.
    """
    n = len(glob)
    i = start + 1
    negated = False
    if i < n and glob[i] in "!^":
        negated = True
        i += 1

    items: list[str] = []
    # A ']' right after the opening bracket is a literal
    if i < n and glob[i] == "]":
        items.append("\\]")
        i += 1

    while i < n and glob[i] != "]":
        c = glob[i]
        if c == "\\" and i + 1 < n:
            items.append(re.escape(glob[i + 1]))
            i += 2
            continue
        if c == "-" and items and i + 1 < n and glob[i + 1] != "]":
            items.append("-")
        else:
            items.append(re.escape(c))
        i += 1

    if i >= n:
        raise fail("unclosed character class; missing ']'")

    body = "".join(items)
    if negated:
        return f"[^/{body}]", i + 1
    return f"(?!/)[{body}]", i + 1
