"""Single-document translation on top of an LLM provider."""

from __future__ import annotations

import logging

from docmirror.llm.base import LLMProvider
from docmirror.translation.chunking import DEFAULT_MAX_CHUNK_SIZE, chunk_content, merge_chunks
from docmirror.translation.prompts import SYSTEM_PROMPT, build_translation_prompt

logger = logging.getLogger(__name__)


class Translator:
    """Translates Markdown text, chunking documents that exceed the size limit.

    Chunks are translated independently; no context or glossary is carried
    from one chunk to the next.
    """

    def __init__(self, llm: LLMProvider, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> None:
        self.llm = llm
        self.max_chunk_size = max_chunk_size

    async def translate(self, content: str, target_lang: str, source_lang: str = "en") -> str:
        response = await self.llm.generate(
            SYSTEM_PROMPT, build_translation_prompt(content, target_lang, source_lang)
        )
        return response.content

    async def translate_large(
        self, content: str, target_lang: str, source_lang: str = "en"
    ) -> str:
        """Translate a document of any size.

        Content that fits in one chunk is sent verbatim in a single call.
        """
        chunks = chunk_content(content, self.max_chunk_size)
        if len(chunks) <= 1:
            return await self.translate(content, target_lang, source_lang)

        logger.debug("Translating %d chunks into %s", len(chunks), target_lang)
        translated = []
        for chunk in chunks:
            translated.append(await self.translate(chunk, target_lang, source_lang))
        return merge_chunks(translated)
