"""Glob-style ignore rules for candidate documentation files.

Rules are newline-delimited. Blank lines and lines starting with ``#`` are
skipped. Within a pattern:

- ``*`` matches any run of characters except ``/``
- ``**/`` matches zero or more whole path segments
- ``**`` anywhere else matches any run of characters, ``/`` included
- every other character is literal

A pattern must match the full path. ``*.md`` matches ``readme.md`` but not
``docs/readme.md``; ``docs/**/*.md`` matches both ``docs/x.md`` and
``docs/a/b/c.md``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")


def parse_rules(ignore_rules: str | None) -> list[str]:
    """Split a rules blob into patterns, dropping blanks and comments."""
    if not ignore_rules:
        return []
    patterns = []
    for line in ignore_rules.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate one glob pattern into an anchored regex."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


class IgnoreRules:
    """A compiled set of ignore patterns."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = list(patterns)
        self._compiled = [compile_pattern(p) for p in self.patterns]

    @classmethod
    def parse(cls, ignore_rules: str | None) -> IgnoreRules:
        return cls(parse_rules(ignore_rules))

    def __bool__(self) -> bool:
        return bool(self._compiled)

    def matches(self, path: str) -> bool:
        """True if any rule matches the full path."""
        return any(regex.match(path) for regex in self._compiled)

    def filter(self, files: Sequence[T]) -> list[T]:
        """Drop files matched by any rule.

        Accepts plain path strings or objects with a ``path`` attribute.
        """
        if not self._compiled:
            return list(files)
        return [f for f in files if not self.matches(_path_of(f))]


def apply_ignore_rules(files: Sequence[T], ignore_rules: str | None) -> list[T]:
    """Filter files against a newline-delimited rules blob. No rules is identity."""
    return IgnoreRules.parse(ignore_rules).filter(files)


def _path_of(item: object) -> str:
    if isinstance(item, str):
        return item
    return getattr(item, "path")
