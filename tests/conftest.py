"""Shared test fixtures for docmirror."""

import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock

from docmirror.config.models import DocMirrorConfig
from docmirror.llm.base import LLMProvider
from docmirror.llm.models import AIConfig, LLMResponse, TokenUsage
from docmirror.pipeline.queue import TaskQueue
from docmirror.store.models import Repository
from docmirror.store.sqlite_store import SQLiteStore
from docmirror.vcs.base import ContentClient
from docmirror.vcs.models import FileContent, FileNode, PullRequestRef, RepoRef


def make_status_error(status: int, code: str | None = None, message: str = "boom"):
    """Build the openai SDK exception the client raises for an HTTP status."""
    request = httpx.Request("POST", "https://api.example.test/v1/chat/completions")
    response = httpx.Response(status, request=request)
    body = {"code": code, "message": message} if code else None
    cls = {
        401: openai.AuthenticationError,
        403: openai.PermissionDeniedError,
        429: openai.RateLimitError,
    }.get(status, openai.InternalServerError if status >= 500 else openai.APIStatusError)
    return cls(message, response=response, body=body)


@pytest.fixture
def sample_config():
    return DocMirrorConfig()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "state" / "docmirror.db")


@pytest.fixture
def store(db_path):
    s = SQLiteStore(db_path)
    yield s
    s.close()


@pytest.fixture
def queue(db_path):
    q = TaskQueue(db_path)
    yield q
    q.close()


@pytest.fixture
def repository(store):
    return store.add_repository(
        Repository(
            owner="acme",
            name="widget-docs",
            installation_id=42,
            default_branch="main",
            base_language="en",
            target_languages=["fr", "ja"],
        )
    )


@pytest.fixture
def mock_client():
    client = MagicMock(spec=ContentClient)
    client.get_repo_metadata = AsyncMock(
        return_value=RepoRef(owner="acme", name="widget-docs", default_branch="main")
    )
    client.get_branch_head = AsyncMock(return_value="head-sha")
    client.list_directory = AsyncMock(
        return_value=[FileNode(path="README.md", name="README.md", type="file", sha="blob-1")]
    )
    client.get_file = AsyncMock(
        return_value=FileContent(path="README.md", content="# Widget\nHello.", sha="blob-1")
    )
    client.put_file = AsyncMock(return_value="commit-sha")
    client.create_branch = AsyncMock(return_value="head-sha")
    client.list_commits = AsyncMock(return_value=[])
    client.compare_commits = AsyncMock(return_value=[])
    client.create_pull_request = AsyncMock(
        return_value=PullRequestRef(number=7, url="https://github.com/acme/widget-docs/pull/7")
    )
    return client


@pytest.fixture
def mock_llm_provider():
    provider = MagicMock(spec=LLMProvider)
    provider.config = AIConfig(
        provider="openrouter",
        base_url="https://openrouter.ai/api/v1",
        api_key="sk-test",
        model="test-model",
    )
    provider.generate = AsyncMock(
        return_value=LLMResponse(
            content="Contenu traduit.",
            usage=TokenUsage(input_tokens=100, output_tokens=120),
            model="test-model",
        )
    )
    return provider
