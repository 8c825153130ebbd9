from docmirror.store.base import PipelineStore, RepositoryStore, TaskStore
from docmirror.store.models import (
    Repository,
    ResultStatus,
    TaskStatus,
    TaskType,
    TranslationResult,
    TranslationTask,
)
from docmirror.store.sqlite_store import SQLiteStore

__all__ = [
    "PipelineStore",
    "Repository",
    "RepositoryStore",
    "ResultStatus",
    "SQLiteStore",
    "TaskStatus",
    "TaskStore",
    "TaskType",
    "TranslationResult",
    "TranslationTask",
]
