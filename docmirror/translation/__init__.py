from docmirror.translation.chunking import chunk_content, merge_chunks
from docmirror.translation.languages import LANGUAGE_NAMES, language_name
from docmirror.translation.orchestrator import (
    OrchestratorSummary,
    TranslationOrchestrator,
    summarize_errors,
)
from docmirror.translation.paths import normalize_file_name, translated_path
from docmirror.translation.translator import Translator

__all__ = [
    "LANGUAGE_NAMES",
    "OrchestratorSummary",
    "TranslationOrchestrator",
    "Translator",
    "chunk_content",
    "language_name",
    "merge_chunks",
    "normalize_file_name",
    "summarize_errors",
    "translated_path",
]
