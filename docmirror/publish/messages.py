"""Branch names, commit messages and pull request text for translation batches."""

from __future__ import annotations

from collections.abc import Sequence

from docmirror.translation.languages import language_name


def _lang_suffix(languages: Sequence[str]) -> str:
    if len(languages) <= 3:
        return "-".join(languages)
    return f"{len(languages)}-langs"


def generate_branch_name(languages: Sequence[str], timestamp_ms: int) -> str:
    """``translation/fr-ja-1700000000000`` or ``translation/5-langs-...``."""
    return f"translation/{_lang_suffix(languages)}-{timestamp_ms}"


def generate_commit_message(
    languages: Sequence[str], file_count: int, incremental: bool
) -> str:
    if len(languages) <= 3:
        lang_list = ", ".join(language_name(l) for l in languages)
    else:
        lang_list = f"{len(languages)} languages"
    kind = "Incremental" if incremental else "Full"
    return (
        f"{kind} translation to {lang_list}\n"
        "\n"
        f"- Translated {file_count} markdown file(s)\n"
        f"- Target languages: {', '.join(languages)}\n"
    )


def generate_readme_commit_message(languages: Sequence[str]) -> str:
    return f"Update README with translation links ({', '.join(languages)})"


def generate_pr_title(languages: Sequence[str]) -> str:
    return f"Translation Update ({', '.join(languages)})"


def generate_pr_body(
    languages: Sequence[str],
    file_count: int,
    incremental: bool,
    task_id: int | None,
    translations_root: str = "translations",
) -> str:
    lang_lines = "\n".join(f"- {language_name(l)} (`{l}`)" for l in languages)
    kind = "Incremental (changed files only)" if incremental else "Full (all files)"
    return (
        "## Translation Update\n"
        "\n"
        f"This PR contains {'incremental' if incremental else 'full'} "
        "translations for your documentation.\n"
        "\n"
        "### Target Languages\n"
        f"{lang_lines}\n"
        "\n"
        "### Statistics\n"
        f"- **Files translated**: {file_count}\n"
        f"- **Translation type**: {kind}\n"
        "\n"
        "### Review Notes\n"
        f"- All translations are stored in `{translations_root}/{{lang}}/`\n"
        "- Original file structure is preserved\n"
        "- Code blocks and technical terms are left untranslated\n"
        "\n"
        "---\n"
        f"*Task ID: {task_id}*\n"
    )
