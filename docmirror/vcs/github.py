"""GitHub content client using PyGithub and installation tokens."""

from __future__ import annotations

import asyncio
import logging
from itertools import islice

from github import Auth, Github, GithubException, UnknownObjectException
from github.Repository import Repository

from docmirror.vcs.auth import GITHUB_API_URL, InstallationTokenManager
from docmirror.vcs.base import ContentClient
from docmirror.vcs.models import (
    ChangedFile,
    CommitInfo,
    FileContent,
    FileNode,
    PullRequestRef,
    RepoRef,
)

logger = logging.getLogger(__name__)

# GitHub's compare API reports a few statuses beyond the four we track
_STATUS_MAP = {
    "added": "added",
    "modified": "modified",
    "removed": "removed",
    "renamed": "renamed",
    "copied": "added",
    "changed": "modified",
    "unchanged": "modified",
}


class GitHubContentClient(ContentClient):
    """GitHub implementation of ContentClient.

    Each call asks the token manager for the installation's token, so an
    expired token is replaced transparently between calls. PyGithub is
    synchronous, so all blocking calls are wrapped with asyncio.to_thread()
    to avoid blocking the event loop.
    """

    def __init__(
        self, tokens: InstallationTokenManager, base_url: str = GITHUB_API_URL
    ) -> None:
        self.tokens = tokens
        self.base_url = base_url

    async def _repo(self, installation_id: int, repo: str, lazy: bool = True) -> Repository:
        token = await self.tokens.get_token(installation_id)
        client = Github(auth=Auth.Token(token), base_url=self.base_url, per_page=100)
        if lazy:
            return client.get_repo(repo, lazy=True)
        return await asyncio.to_thread(client.get_repo, repo)

    async def get_repo_metadata(self, installation_id: int, repo: str) -> RepoRef:
        gh_repo = await self._repo(installation_id, repo, lazy=False)
        return RepoRef(
            owner=gh_repo.owner.login,
            name=gh_repo.name,
            default_branch=gh_repo.default_branch,
        )

    async def list_directory(
        self, installation_id: int, repo: str, path: str = "", ref: str | None = None
    ) -> list[FileNode]:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> list[FileNode]:
            kwargs = {"ref": ref} if ref else {}
            contents = gh_repo.get_contents(path, **kwargs)
            # get_contents returns a single item for files, list for dirs
            if not isinstance(contents, list):
                contents = [contents]
            return [
                FileNode(
                    path=c.path,
                    name=c.name,
                    type="dir" if c.type == "dir" else "file",
                    size=c.size,
                    sha=c.sha,
                )
                for c in contents
            ]

        return await asyncio.to_thread(_sync)

    async def get_file(
        self, installation_id: int, repo: str, path: str, ref: str | None = None
    ) -> FileContent | None:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> FileContent | None:
            kwargs = {"ref": ref} if ref else {}
            try:
                content = gh_repo.get_contents(path, **kwargs)
            except UnknownObjectException:
                return None
            if isinstance(content, list):
                raise ValueError(f"Path '{path}' is a directory, not a file.")
            return FileContent(
                path=content.path,
                content=content.decoded_content.decode("utf-8"),
                sha=content.sha,
            )

        return await asyncio.to_thread(_sync)

    async def put_file(
        self,
        installation_id: int,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> str:
            if sha:
                result = gh_repo.update_file(path, message, content, sha, branch=branch)
            else:
                result = gh_repo.create_file(path, message, content, branch=branch)
            return result["commit"].sha

        return await asyncio.to_thread(_sync)

    async def create_branch(
        self, installation_id: int, repo: str, name: str, from_branch: str
    ) -> str:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> str:
            head_sha = gh_repo.get_branch(from_branch).commit.sha
            gh_repo.create_git_ref(f"refs/heads/{name}", head_sha)
            return head_sha

        return await asyncio.to_thread(_sync)

    async def get_branch_head(
        self, installation_id: int, repo: str, branch: str
    ) -> str | None:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> str | None:
            try:
                return gh_repo.get_branch(branch).commit.sha
            except UnknownObjectException:
                return None
            except GithubException as e:
                if e.status == 404:
                    return None
                raise

        return await asyncio.to_thread(_sync)

    async def list_commits(
        self, installation_id: int, repo: str, branch: str | None = None, limit: int = 100
    ) -> list[CommitInfo]:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> list[CommitInfo]:
            commits = gh_repo.get_commits(sha=branch) if branch else gh_repo.get_commits()
            return [
                CommitInfo(sha=c.sha, message=c.commit.message or "")
                for c in islice(commits, limit)
            ]

        return await asyncio.to_thread(_sync)

    async def compare_commits(
        self, installation_id: int, repo: str, base: str, head: str
    ) -> list[ChangedFile]:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> list[ChangedFile]:
            comparison = gh_repo.compare(base, head)
            return [
                ChangedFile(
                    path=f.filename,
                    status=_STATUS_MAP.get(f.status, "modified"),
                    previous_path=f.previous_filename if f.status == "renamed" else None,
                )
                for f in comparison.files
            ]

        return await asyncio.to_thread(_sync)

    async def create_pull_request(
        self,
        installation_id: int,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequestRef:
        gh_repo = await self._repo(installation_id, repo)

        def _sync() -> PullRequestRef:
            pr = gh_repo.create_pull(title=title, body=body, head=head, base=base)
            logger.info("Opened pull request #%d on %s", pr.number, repo)
            return PullRequestRef(number=pr.number, url=pr.html_url)

        return await asyncio.to_thread(_sync)
