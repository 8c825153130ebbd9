"""Maintains the translations table in the repository's index document."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable

from docmirror.translation.languages import language_name

START_MARKER = "<!-- translations:start -->"
END_MARKER = "<!-- translations:end -->"


def render_translations_table(
    entries: Iterable[tuple[str, str]], translations_root: str = "translations"
) -> str:
    """Render one row per language.

    entries are (language, translated_path) pairs. A language links to its
    translated README when one is among the entries, otherwise to its
    directory.
    """
    links: dict[str, str] = {}
    for language, path in entries:
        if posixpath.basename(path).lower().startswith("readme"):
            if posixpath.dirname(path) == posixpath.join(translations_root, language):
                links[language] = path
                continue
        links.setdefault(language, f"{translations_root}/{language}/")

    lines = [
        START_MARKER,
        "## Translations",
        "",
        "| Language | Documentation |",
        "| --- | --- |",
    ]
    for language in sorted(links):
        target = links[language]
        lines.append(f"| {language_name(language)} (`{language}`) | [{target}]({target}) |")
    lines.append(END_MARKER)
    return "\n".join(lines)


_ROW = re.compile(r"^\|.*\(`(?P<lang>[^`]+)`\)\s*\|\s*\[(?P<target>[^\]]+)\]")


def _marked_block(readme: str) -> tuple[int, int] | None:
    start = readme.find(START_MARKER)
    end = readme.find(END_MARKER, start + 1) if start != -1 else -1
    if start == -1 or end == -1:
        return None
    return start, end


def existing_entries(readme: str) -> list[tuple[str, str]]:
    """(language, link target) pairs already listed in the marked block."""
    block = _marked_block(readme)
    if block is None:
        return []
    entries = []
    for line in readme[block[0]:block[1]].splitlines():
        match = _ROW.match(line.strip())
        if match:
            entries.append((match["lang"], match["target"]))
    return entries


def update_readme_with_translations(
    readme: str,
    entries: Iterable[tuple[str, str]],
    translations_root: str = "translations",
) -> str:
    """Merge entries into the marked translations block, or append one if absent.

    Languages listed by earlier runs keep their rows.
    """
    merged = existing_entries(readme) + list(entries)
    table = render_translations_table(merged, translations_root)
    block = _marked_block(readme)
    if block is not None:
        start, end = block
        return readme[:start] + table + readme[end + len(END_MARKER):]
    return readme.rstrip("\n") + "\n\n" + table + "\n"
