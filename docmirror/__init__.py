"""docmirror - keeps translated mirrors of a repository's Markdown docs in sync."""

from docmirror.config import DocMirrorConfig, load_config
from docmirror.detection import ChangeDetector, apply_ignore_rules
from docmirror.errors import (
    CommitError,
    CredentialError,
    DetectionError,
    DocMirrorError,
    TaskStateError,
)
from docmirror.llm import LLMProvider, create_llm_provider
from docmirror.pipeline import TaskController, TaskQueue, Worker
from docmirror.publish import BatchCommitWriter
from docmirror.store import SQLiteStore
from docmirror.translation import TranslationOrchestrator, Translator
from docmirror.vcs import GitHubContentClient, InstallationTokenManager, create_client

__version__ = "0.1.0"

__all__ = [
    "BatchCommitWriter",
    "ChangeDetector",
    "CommitError",
    "CredentialError",
    "DetectionError",
    "DocMirrorConfig",
    "DocMirrorError",
    "GitHubContentClient",
    "InstallationTokenManager",
    "LLMProvider",
    "SQLiteStore",
    "TaskController",
    "TaskQueue",
    "TaskStateError",
    "TranslationOrchestrator",
    "Translator",
    "Worker",
    "apply_ignore_rules",
    "create_client",
    "create_llm_provider",
    "load_config",
]
