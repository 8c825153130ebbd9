from docmirror.publish.messages import (
    generate_branch_name,
    generate_commit_message,
    generate_pr_body,
    generate_pr_title,
)
from docmirror.publish.readme import update_readme_with_translations
from docmirror.publish.writer import BatchCommitWriter, CommitOutcome, order_for_commit

__all__ = [
    "BatchCommitWriter",
    "CommitOutcome",
    "generate_branch_name",
    "generate_commit_message",
    "generate_pr_body",
    "generate_pr_title",
    "order_for_commit",
    "update_readme_with_translations",
]
