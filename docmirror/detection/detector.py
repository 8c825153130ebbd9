"""Change detection between the translated baseline and the default branch head."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

from docmirror.config.models import TranslationConfig
from docmirror.detection.ignore import IgnoreRules
from docmirror.errors import CredentialError, DetectionError
from docmirror.store.models import Repository
from docmirror.vcs.base import ContentClient
from docmirror.vcs.crawler import has_extension, walk_files

logger = logging.getLogger(__name__)


class DetectedFile(BaseModel):
    """A documentation file that needs (re)translation."""

    path: str
    status: Literal["added", "modified", "renamed"] = "added"

    @property
    def is_new(self) -> bool:
        return self.status == "added"


class DetectionResult(BaseModel):
    files: list[DetectedFile] = Field(default_factory=list)
    latest_sha: str
    is_full_rescan: bool = False

    @property
    def has_changes(self) -> bool:
        return bool(self.files)


class ChangeDetector:
    """Works out which Markdown files changed since the baseline commit.

    Pipeline:
        head sha -> (no baseline | compare | history scan) -> markdown filter -> ignore rules
    """

    def __init__(self, client: ContentClient, config: TranslationConfig | None = None) -> None:
        self.client = client
        self.config = config or TranslationConfig()

    async def latest_sha(self, installation_id: int, repo: Repository) -> str:
        """Head commit of the repository's default branch."""
        sha = await self.client.get_branch_head(
            installation_id, repo.full_name, repo.default_branch
        )
        if not sha:
            raise DetectionError(
                f"No commits found on {repo.full_name}@{repo.default_branch}"
            )
        return sha

    async def detect(
        self,
        installation_id: int,
        repo: Repository,
        baseline_sha: str | None,
    ) -> DetectionResult:
        """Return the changed Markdown files between baseline_sha and the head.

        A missing baseline, or one that vanished from history (force push),
        yields a full rescan of every eligible file.
        """
        latest = await self.latest_sha(installation_id, repo)
        if baseline_sha and baseline_sha == latest:
            logger.info("%s is up to date at %s", repo.full_name, latest[:7])
            return DetectionResult(latest_sha=latest)

        rules = IgnoreRules.parse(repo.ignore_rules)

        if not baseline_sha:
            logger.info("%s has no baseline; scanning all documentation", repo.full_name)
            return await self._full_rescan(installation_id, repo, latest, rules)

        try:
            changed = await self.client.compare_commits(
                installation_id, repo.full_name, baseline_sha, latest
            )
        except CredentialError:
            raise
        except Exception as e:
            logger.warning(
                "Comparing %s..%s on %s failed: %s",
                baseline_sha[:7], latest[:7], repo.full_name, e,
            )
            if await self._baseline_in_history(installation_id, repo, baseline_sha):
                raise DetectionError(
                    f"Failed to detect changes on {repo.full_name}: {e}"
                ) from e
            logger.warning(
                "Baseline %s not found in recent history of %s; treating as force push",
                baseline_sha[:7], repo.full_name,
            )
            return await self._full_rescan(installation_id, repo, latest, rules)

        files = [
            DetectedFile(path=c.path, status=c.status)
            for c in changed
            if c.status != "removed"
        ]
        files = [f for f in files if has_extension(f.path, self.config.markdown_extensions)]
        output_prefix = self.config.output_dir + "/"
        files = [f for f in files if not f.path.startswith(output_prefix)]
        files = rules.filter(files)
        logger.info(
            "%s: %d documentation file(s) changed since %s",
            repo.full_name, len(files), baseline_sha[:7],
        )
        return DetectionResult(files=files, latest_sha=latest)

    async def _baseline_in_history(
        self, installation_id: int, repo: Repository, baseline_sha: str
    ) -> bool:
        try:
            commits = await self.client.list_commits(
                installation_id,
                repo.full_name,
                repo.default_branch,
                limit=self.config.history_scan_depth,
            )
        except CredentialError:
            raise
        except Exception as e:
            raise DetectionError(
                f"Failed to list commits on {repo.full_name}: {e}"
            ) from e
        return any(c.sha == baseline_sha for c in commits)

    async def _full_rescan(
        self,
        installation_id: int,
        repo: Repository,
        latest_sha: str,
        rules: IgnoreRules,
    ) -> DetectionResult:
        paths = await walk_files(
            self.client,
            installation_id,
            repo.full_name,
            ref=latest_sha,
            extensions=self.config.markdown_extensions,
            skip_dirs=self.config.skip_dirs,
            skip_paths=[self.config.output_dir],
            max_depth=self.config.max_scan_depth,
        )
        files = rules.filter([DetectedFile(path=p) for p in paths])
        return DetectionResult(files=files, latest_sha=latest_sha, is_full_rescan=True)
