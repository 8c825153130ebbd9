"""Guess the source language of a repository's documentation."""

from __future__ import annotations

import logging
import re

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

from docmirror.translation.languages import LANGUAGE_NAMES
from docmirror.vcs.base import ContentClient

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

# langdetect is probabilistic; a fixed seed keeps repeated runs stable
DetectorFactory.seed = 0

_FENCED_CODE = re.compile(r"^(```|~~~).*?^\1", re.MULTILINE | re.DOTALL)
_INLINE_CODE = re.compile(r"`[^`\n]*`")
_LINK_TARGET = re.compile(r"\]\([^)]*\)|<[^>\n]+>|https?://\S+")


def _prose(markdown: str) -> str:
    text = _FENCED_CODE.sub(" ", markdown)
    text = _INLINE_CODE.sub(" ", text)
    return _LINK_TARGET.sub(" ", text)


def detect_language(
    text: str, default: str = DEFAULT_LANGUAGE, min_confidence: float = 0.5
) -> str:
    """Return the pipeline language code for text, or default when unsure.

    Code blocks and link targets are dropped first so identifiers do not
    outvote the prose. Chinese variants collapse to ``zh``. Languages the
    pipeline has no name for fall back to default.
    """
    prose = _prose(text or "").strip()
    if not prose:
        return default
    try:
        candidates = detect_langs(prose)
    except LangDetectException as e:
        logger.debug("Language detection gave up: %s", e)
        return default

    best = candidates[0]
    code = "zh" if best.lang.startswith("zh") else best.lang
    if best.prob < min_confidence or code not in LANGUAGE_NAMES:
        logger.debug("Unusable language guess %s (p=%.2f)", best.lang, best.prob)
        return default
    return code


async def detect_base_language(
    client: ContentClient,
    installation_id: int,
    repo: str,
    ref: str | None = None,
    index_path: str = "README.md",
    default: str = DEFAULT_LANGUAGE,
) -> str:
    """Detect a repository's base language from its index document."""
    readme = await client.get_file(installation_id, repo, index_path, ref=ref)
    if readme is None:
        logger.info("%s has no %s; assuming %s", repo, index_path, default)
        return default
    language = detect_language(readme.content, default=default)
    logger.info("Detected %s as the base language of %s", language, repo)
    return language
