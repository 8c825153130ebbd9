"""Recursive repository listing for full rescans."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from docmirror.vcs.base import ContentClient

logger = logging.getLogger(__name__)

DEFAULT_SKIP_DIRS: frozenset[str] = frozenset(
    {"node_modules", ".git", "dist", "build", "translations"}
)


def has_extension(path: str, extensions: Iterable[str]) -> bool:
    """Case-insensitive suffix check against a set of extensions like '.md'."""
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


async def walk_files(
    client: ContentClient,
    installation_id: int,
    repo: str,
    *,
    ref: str | None = None,
    extensions: Iterable[str] = (".md",),
    skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    skip_paths: Iterable[str] = (),
    max_depth: int = 10,
) -> list[str]:
    """Recursively collect file paths with one of the given extensions.

    Directories named in skip_dirs, or whose full path is in skip_paths, are
    never entered, and traversal stops below max_depth. Paths come back in
    listing order.
    """
    extensions = tuple(extensions)
    skip = set(skip_dirs)
    skip_full = {p.strip("/") for p in skip_paths}
    result: list[str] = []

    async def _traverse(path: str = "", depth: int = 0) -> None:
        if depth > max_depth:
            logger.debug("Not descending into %s: depth limit %d", path, max_depth)
            return
        nodes = await client.list_directory(installation_id, repo, path, ref)
        for node in nodes:
            if node.type == "dir":
                if node.name not in skip and node.path.strip("/") not in skip_full:
                    await _traverse(node.path, depth + 1)
            elif has_extension(node.name, extensions):
                result.append(node.path)

    await _traverse()
    return result
