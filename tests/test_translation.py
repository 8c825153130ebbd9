"""Tests for chunking, prompts, translated paths and the Translator."""

from unittest.mock import AsyncMock

import pytest

from docmirror.llm.models import LLMResponse
from docmirror.translation.chunking import chunk_content, merge_chunks
from docmirror.translation.languages import language_name
from docmirror.translation.paths import normalize_file_name, translated_path
from docmirror.translation.prompts import SYSTEM_PROMPT, build_translation_prompt
from docmirror.translation.translator import Translator


# ── chunk_content ───────────────────────────────────────────────────


class TestChunkContent:
    def test_small_content_single_chunk(self):
        assert chunk_content("# Title\n\nBody text.", 8000) == ["# Title\n\nBody text."]

    def test_splits_on_line_boundaries_in_order(self):
        lines = [f"line {i:03d}" for i in range(100)]
        content = "\n".join(lines)
        chunks = chunk_content(content, 100)
        assert len(chunks) > 1
        assert all(len(c) <= 100 for c in chunks)
        # Every line survives intact and in order
        rejoined = [line for c in chunks for line in c.split("\n")]
        assert rejoined == lines

    def test_oversized_line_is_its_own_chunk(self):
        long_line = "x" * 250
        chunks = chunk_content(f"short\n{long_line}\ntail", 100)
        assert chunks == ["short", long_line, "tail"]

    def test_chunks_are_stripped_and_blank_chunks_dropped(self):
        chunks = chunk_content("aaaa\n\n\n\nbbbb\n\n", 6)
        assert chunks == ["aaaa", "bbbb"]

    def test_empty_content(self):
        assert chunk_content("", 10) == []

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            chunk_content("abc", 0)

    def test_merge_joins_with_blank_line(self):
        assert merge_chunks(["a", "b"]) == "a\n\nb"


# ── prompts & languages ─────────────────────────────────────────────


class TestPrompts:
    def test_user_prompt_names_languages(self):
        prompt = build_translation_prompt("# Hello", "ja", "en")
        assert "from English to Japanese" in prompt
        assert "# Hello" in prompt

    def test_system_prompt_preserves_structure(self):
        assert "Markdown" in SYSTEM_PROMPT
        assert "Output only the translated content" in SYSTEM_PROMPT

    def test_unknown_language_code_passes_through(self):
        assert language_name("tlh") == "tlh"
        assert language_name("zh-CN") == "Chinese (Simplified)"


# ── translated paths ────────────────────────────────────────────────


class TestTranslatedPath:
    def test_root_file(self):
        assert translated_path("README.md", "fr", "en") == "translations/fr/README.md"

    def test_nested_file_keeps_structure(self):
        assert translated_path("docs/api/ref.md", "ja", "en") == "translations/ja/docs/api/ref.md"

    def test_custom_root(self):
        assert translated_path("a.md", "de", "en", root="i18n") == "i18n/de/a.md"

    def test_base_language_keeps_name(self):
        assert translated_path("docs/安装指南.md", "zh", "zh") == "translations/zh/docs/安装指南.md"

    def test_known_term_normalized_for_other_languages(self):
        assert translated_path("docs/安装指南.md", "en", "zh") == (
            "translations/en/docs/installation-guide.md"
        )


class TestNormalizeFileName:
    def test_ascii_unchanged(self):
        assert normalize_file_name("getting-started.md", "en") == "getting-started.md"

    def test_chinese_readme_collapses(self):
        assert normalize_file_name("README.中文.zh.md", "zh") == "README.md"

    def test_longest_term_wins(self):
        assert normalize_file_name("开发文档.md", "zh") == "development-guide.md"

    def test_language_suffix_kept_when_not_base(self):
        assert normalize_file_name("快速开始.ja.md", "zh") == "quick-start.ja.md"

    def test_mdx_extension_preserved(self):
        assert normalize_file_name("教程.mdx", "zh") == "tutorial.mdx"

    def test_unknown_name_passes_through(self):
        assert normalize_file_name("设计.md", "zh") == "设计.md"


# ── Translator ──────────────────────────────────────────────────────


class TestTranslator:
    async def test_single_chunk_sends_original_verbatim(self, mock_llm_provider):
        content = "  # Title\n\nBody\n\n"
        translator = Translator(mock_llm_provider, max_chunk_size=8000)

        large = await translator.translate_large(content, "fr", "en")
        direct = await translator.translate(content, "fr", "en")

        assert large == direct == "Contenu traduit."
        calls = mock_llm_provider.generate.await_args_list
        assert calls[0].args == calls[1].args
        assert calls[0].args[0] == SYSTEM_PROMPT
        assert content in calls[0].args[1]

    async def test_multi_chunk_translates_each_and_merges(self, mock_llm_provider):
        replies = iter(["UN", "DEUX", "TROIS"])

        async def _generate(system, user):
            return LLMResponse(content=next(replies), model="test-model")

        mock_llm_provider.generate = AsyncMock(side_effect=_generate)
        translator = Translator(mock_llm_provider, max_chunk_size=10)

        result = await translator.translate_large("one one\ntwo two\nthree", "fr")
        assert result == "UN\n\nDEUX\n\nTROIS"
        prompts = [c.args[1] for c in mock_llm_provider.generate.await_args_list]
        assert "one one" in prompts[0] and "two two" not in prompts[0]

    async def test_errors_propagate(self, mock_llm_provider):
        mock_llm_provider.generate = AsyncMock(side_effect=RuntimeError("down"))
        with pytest.raises(RuntimeError):
            await Translator(mock_llm_provider).translate_large("hi", "fr")
