"""Hosting-platform access for docmirror."""

from docmirror.config.models import GitHubAppConfig
from docmirror.vcs.auth import (
    CachedToken,
    InMemoryTokenCache,
    InstallationTokenManager,
    TokenCache,
)
from docmirror.vcs.base import ContentClient
from docmirror.vcs.crawler import walk_files
from docmirror.vcs.github import GitHubContentClient
from docmirror.vcs.models import (
    ChangedFile,
    CommitInfo,
    FileContent,
    FileNode,
    InstallationInfo,
    PullRequestRef,
    RepoRef,
)


def create_client(
    config: GitHubAppConfig, tokens: InstallationTokenManager | None = None
) -> GitHubContentClient:
    """Create a GitHub content client from app config.

    Reads the app id from the environment variable named in
    config.app_id_env when no token manager is passed in.
    """
    if tokens is None:
        tokens = InstallationTokenManager.from_config(config)
    return GitHubContentClient(tokens, base_url=config.api_url)


__all__ = [
    "CachedToken",
    "ChangedFile",
    "CommitInfo",
    "ContentClient",
    "FileContent",
    "FileNode",
    "GitHubContentClient",
    "InMemoryTokenCache",
    "InstallationInfo",
    "InstallationTokenManager",
    "PullRequestRef",
    "RepoRef",
    "TokenCache",
    "create_client",
    "walk_files",
]
