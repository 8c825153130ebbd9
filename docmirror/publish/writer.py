"""Writes a task's completed translations to a branch and proposes them as a PR."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from pydantic import BaseModel

from docmirror.config.models import TranslationConfig
from docmirror.errors import CommitError, CredentialError
from docmirror.publish.messages import (
    generate_branch_name,
    generate_commit_message,
    generate_pr_body,
    generate_pr_title,
    generate_readme_commit_message,
)
from docmirror.publish.readme import update_readme_with_translations
from docmirror.store.models import (
    Repository,
    ResultStatus,
    TaskType,
    TranslationResult,
    TranslationTask,
)
from docmirror.vcs.base import ContentClient

logger = logging.getLogger(__name__)


class CommitOutcome(BaseModel):
    branch_name: str
    pr_url: str | None = None
    pr_number: int | None = None
    files_committed: int = 0


def order_for_commit(results: Sequence[TranslationResult]) -> list[TranslationResult]:
    """Completed results, one per translated path, shallow paths first."""
    by_path: dict[str, TranslationResult] = {}
    for r in results:
        if r.status == ResultStatus.completed:
            by_path[r.translated_path] = r
    return sorted(
        by_path.values(),
        key=lambda r: (len(r.translated_path.split("/")), r.translated_path),
    )


class BatchCommitWriter:
    """Branch, per-file commits, README table and pull request for one task.

    File writes abort the batch with CommitError. The README table and the
    pull request are best effort: their failures are logged and the commit
    still counts.
    """

    def __init__(
        self,
        client: ContentClient,
        config: TranslationConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.config = config or TranslationConfig()
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def commit(
        self,
        task: TranslationTask,
        repository: Repository,
        results: Sequence[TranslationResult],
        create_pr: bool = True,
        branch_name: str | None = None,
    ) -> CommitOutcome:
        installation_id = repository.installation_id
        repo = repository.full_name
        languages = task.target_languages

        files = order_for_commit(results)
        if not files:
            raise CommitError(f"Task {task.id} has no completed translations to commit")

        branch = await self._unique_branch(
            installation_id, repo, branch_name or generate_branch_name(languages, self._now_ms())
        )
        try:
            await self.client.create_branch(
                installation_id, repo, branch, repository.default_branch
            )
        except CredentialError:
            raise
        except Exception as e:
            raise CommitError(f"Failed to create branch {branch}: {e}", branch=branch) from e
        logger.info("Created branch %s on %s", branch, repo)

        incremental = task.type == TaskType.incremental
        committed = await self.write_files(installation_id, repo, branch, files, incremental)

        await self._update_readme(installation_id, repo, branch, files, languages)

        outcome = CommitOutcome(branch_name=branch, files_committed=committed)
        if create_pr:
            try:
                pr = await self.client.create_pull_request(
                    installation_id,
                    repo,
                    title=generate_pr_title(languages),
                    body=generate_pr_body(
                        languages,
                        committed,
                        incremental,
                        task.id,
                        self.config.translations_root,
                    ),
                    head=branch,
                    base=repository.default_branch,
                )
            except Exception as e:
                logger.error("Failed to open pull request for %s on %s: %s", branch, repo, e)
            else:
                outcome.pr_url = pr.url
                outcome.pr_number = pr.number
                logger.info("Opened PR #%d: %s", pr.number, pr.url)
        return outcome

    async def _unique_branch(self, installation_id: int, repo: str, branch: str) -> str:
        try:
            existing = await self.client.get_branch_head(installation_id, repo, branch)
        except CredentialError:
            raise
        except Exception as e:
            raise CommitError(f"Failed to look up branch {branch}: {e}", branch=branch) from e
        if existing is None:
            return branch
        unique = f"{branch}-{self._now_ms()}"
        logger.info("Branch %s already exists; using %s", branch, unique)
        return unique

    async def write_files(
        self,
        installation_id: int,
        repo: str,
        branch: str,
        results: Sequence[TranslationResult],
        incremental: bool = True,
    ) -> int:
        """Create or update each translated file on branch, in commit order.

        The current blob sha is looked up on the branch before every write,
        so re-running over the same branch updates files in place.
        """
        count = 0
        for result in order_for_commit(results):
            path = result.translated_path
            try:
                existing = await self.client.get_file(installation_id, repo, path, ref=branch)
                await self.client.put_file(
                    installation_id,
                    repo,
                    path,
                    result.translated_content,
                    generate_commit_message([result.language], 1, incremental),
                    branch,
                    sha=existing.sha if existing else None,
                )
            except CredentialError:
                raise
            except Exception as e:
                raise CommitError(
                    f"Failed to commit {path} to {branch}: {e}", path=path, branch=branch
                ) from e
            count += 1
            logger.debug("Committed %s to %s", path, branch)
        logger.info("Committed %d file(s) to %s", count, branch)
        return count

    async def _update_readme(
        self,
        installation_id: int,
        repo: str,
        branch: str,
        results: Sequence[TranslationResult],
        languages: Sequence[str],
    ) -> None:
        index_path = self.config.index_path
        try:
            current = await self.client.get_file(installation_id, repo, index_path, ref=branch)
            original = current.content if current else "# README\n"
            updated = update_readme_with_translations(
                original,
                [(r.language, r.translated_path) for r in results],
                self.config.translations_root,
            )
            if current and updated == current.content:
                return
            await self.client.put_file(
                installation_id,
                repo,
                index_path,
                updated,
                generate_readme_commit_message(languages),
                branch,
                sha=current.sha if current else None,
            )
        except Exception as e:
            logger.error("Failed to update %s on %s: %s", index_path, branch, e)
            return
        logger.info("Updated translations table in %s", index_path)
