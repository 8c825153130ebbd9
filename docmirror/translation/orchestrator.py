"""Language-major fan-out of a task's documents through the translator."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from docmirror.llm.errors import classify_error
from docmirror.store.base import TaskStore
from docmirror.store.models import (
    ResultStatus,
    TaskStatus,
    TranslationResult,
    TranslationTask,
)
from docmirror.translation.paths import translated_path
from docmirror.translation.translator import Translator
from docmirror.vcs.models import FileContent

logger = logging.getLogger(__name__)


class OrchestratorSummary(BaseModel):
    task_id: int
    status: TaskStatus
    total: int
    succeeded: int = 0
    failed: int = 0
    error_message: str | None = None
    errors: list[str] = Field(default_factory=list)


def summarize_errors(errors: Sequence[str], failed: int, total: int) -> str | None:
    """Collapse per-pair error messages into the task's error_message."""
    if not failed:
        return None
    distinct = list(dict.fromkeys(errors))
    if len(distinct) == 1:
        return f"{failed}/{total} files failed: {distinct[0]}"
    if len(distinct) <= 3:
        return f"{failed}/{total} files failed. Errors: {'; '.join(distinct)}"
    return f"{failed}/{total} files failed. {len(distinct)} different errors occurred."


class TranslationOrchestrator:
    """Translates every (language, file) pair of a task and records the outcome.

    A failing pair never stops the loop. Counters are written through the
    store after each pair, so status polls see progress as it happens.
    """

    def __init__(
        self,
        translator: Translator,
        store: TaskStore,
        translations_root: str = "translations",
    ) -> None:
        self.translator = translator
        self.store = store
        self.translations_root = translations_root

    async def run(
        self,
        task: TranslationTask,
        files: Sequence[FileContent],
        target_languages: Sequence[str],
        base_language: str,
    ) -> OrchestratorSummary:
        """Translate every pair that has no recorded result yet.

        Pairs already in the store (from a run that died part way) are
        counted toward the summary as they were recorded, never redone.
        """
        total = len(files) * len(target_languages)
        succeeded = 0
        errors: list[str] = []

        recorded = {(r.language, r.original_path): r for r in self.store.list_results(task.id)}
        if recorded:
            logger.info("Task %s: resuming with %d pair(s) already done", task.id, len(recorded))
        self.store.mark_started(task.id)

        for language in target_languages:
            lang_ok = 0
            for doc in files:
                previous = recorded.get((language, doc.path))
                if previous is not None:
                    if previous.status == ResultStatus.completed:
                        succeeded += 1
                        lang_ok += 1
                    else:
                        errors.append(previous.error_message or "Unknown error")
                    continue

                dest = translated_path(
                    doc.path, language, base_language, root=self.translations_root
                )
                result = TranslationResult(
                    task_id=task.id,
                    original_path=doc.path,
                    language=language,
                    translated_path=dest,
                    original_content=doc.content,
                    original_sha=doc.sha,
                    status=ResultStatus.completed,
                )
                try:
                    translated = await self.translator.translate_large(
                        doc.content, language, base_language
                    )
                except Exception as e:
                    classified = classify_error(e)
                    logger.warning(
                        "Translating %s into %s failed (%s): %s",
                        doc.path, language, classified.kind.value, e,
                    )
                    errors.append(classified.message)
                    self.store.record_result(result.model_copy(update={
                        "status": ResultStatus.failed,
                        "error_message": classified.message,
                    }))
                    continue

                self.store.record_result(
                    result.model_copy(update={"translated_content": translated})
                )
                succeeded += 1
                lang_ok += 1

            logger.info(
                "Task %s: %s done (%d/%d files)", task.id, language, lang_ok, len(files)
            )

        failed = len(errors)
        status = TaskStatus.failed if total and not succeeded else TaskStatus.completed
        error_message = summarize_errors(errors, failed, total)
        self.store.finish_task(task.id, status, error_message)
        logger.info(
            "Task %s %s: %d succeeded, %d failed", task.id, status.value, succeeded, failed
        )
        return OrchestratorSummary(
            task_id=task.id,
            status=status,
            total=total,
            succeeded=succeeded,
            failed=failed,
            error_message=error_message,
            errors=errors,
        )
