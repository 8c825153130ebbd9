"""Line-aligned chunking of Markdown documents for translation."""

from __future__ import annotations

DEFAULT_MAX_CHUNK_SIZE = 8000
CHUNK_SEPARATOR = "\n\n"


def chunk_content(content: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> list[str]:
    """Split content into chunks of at most max_chunk_size characters.

    Splits only between lines; a single line longer than the limit becomes
    a chunk of its own. Each chunk is stripped of surrounding whitespace and
    whitespace-only chunks are dropped.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks: list[str] = []
    current: list[str] = []
    current_size = 0

    for line in content.split("\n"):
        line_size = len(line) + 1
        if current_size + line_size > max_chunk_size and "".join(current).strip():
            chunks.append("\n".join(current).strip())
            current = []
            current_size = 0
        current.append(line)
        current_size += line_size

    tail = "\n".join(current).strip()
    if tail:
        chunks.append(tail)
    return chunks


def merge_chunks(translated: list[str]) -> str:
    return CHUNK_SEPARATOR.join(translated)
