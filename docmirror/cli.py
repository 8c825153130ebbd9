"""CLI entry point for docmirror."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated

import typer
import yaml
from github import GithubException
from rich import print as rprint
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from docmirror.config import DocMirrorConfig, load_config
from docmirror.config.loader import DEFAULT_CONFIG_TEMPLATE
from docmirror.detection import ChangeDetector, detect_base_language
from docmirror.errors import DocMirrorError
from docmirror.llm import create_llm_provider
from docmirror.logging_setup import setup_logging
from docmirror.pipeline import TaskController, TaskQueue, TaskReport, Worker
from docmirror.store import Repository, SQLiteStore, TaskStatus
from docmirror.vcs import create_client

app = typer.Typer(
    name="docmirror",
    help="Keep translated mirrors of a repository's Markdown docs in sync.",
)

config_app = typer.Typer(help="Manage docmirror configuration.")
app.add_typer(config_app, name="config")

repo_app = typer.Typer(help="Manage registered repositories.")
app.add_typer(repo_app, name="repo")

# Global state
_config: DocMirrorConfig | None = None


def _get_config() -> DocMirrorConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to docmirror.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    setup_logging(_config.log_level, _config.log_format)


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def _open_store(cfg: DocMirrorConfig) -> SQLiteStore:
    return SQLiteStore(cfg.storage.db_path)


def _build_controller(
    cfg: DocMirrorConfig, *, github: bool = True, llm: bool = False
) -> TaskController:
    """Wire a controller with only the collaborators the command needs."""
    client = create_client(cfg.github) if github else None
    provider = create_llm_provider(cfg.ai) if llm else None
    return TaskController(
        _open_store(cfg),
        TaskQueue(cfg.storage.db_path),
        client=client,
        llm=provider,
        config=cfg,
    )


def _split_repo(repo_id: str) -> tuple[str, str]:
    """Split 'owner/name'. Raises ValueError if the format is invalid."""
    parts = repo_id.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid repo identifier '{repo_id}': expected 'owner/repo'")
    return parts[0], parts[1]


def _find_repo(controller: TaskController, repo_id: str) -> Repository:
    owner, name = _split_repo(repo_id)
    repo = controller.store.find_repository(owner, name)
    if repo is None:
        raise ValueError(f"{repo_id} is not registered. Run 'docmirror repo add {repo_id}' first.")
    return repo


def _fail(e: Exception) -> typer.Exit:
    rprint(f"[red]Error:[/red] {e}")
    return typer.Exit(1)


def _status_style(status: TaskStatus) -> str:
    return {
        TaskStatus.running: "[yellow]running[/yellow]",
        TaskStatus.completed: "[green]completed[/green]",
        TaskStatus.failed: "[red]failed[/red]",
    }[status]


def _display_report(report: TaskReport) -> None:
    lines = [
        f"[bold]{report.repository}[/bold]  task {report.task_id} ({report.type.value})",
        "",
        f"[dim]Status:[/dim]    {_status_style(report.status)}",
        f"[dim]Languages:[/dim] {', '.join(report.target_languages)}",
        f"[dim]Progress:[/dim]  {report.processed_files} ok, {report.failed_files} failed "
        f"of {report.total_files} ({report.progress:.1f}%)",
    ]
    if report.job_status and report.status == TaskStatus.running:
        lines.append(f"[dim]Queue:[/dim]     {report.job_status.value}")
    if report.head_sha:
        lines.append(f"[dim]Head:[/dim]      {report.head_sha[:7]}")
    if report.error_message:
        lines.append(f"[dim]Error:[/dim]     [red]{report.error_message}[/red]")
    if report.branch_name:
        lines.append(f"[dim]Branch:[/dim]    {report.branch_name}")
    if report.pr_url:
        lines.append(f"[dim]PR:[/dim]        #{report.pr_number} {report.pr_url}")
    rprint(Panel("\n".join(lines), title="Translation Task", border_style="blue"))

    if report.languages:
        table = Table(title="Per-language results")
        table.add_column("Language", style="cyan")
        table.add_column("Completed", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")
        for lang in report.languages:
            table.add_row(lang.language, str(len(lang.completed)), str(len(lang.failed)))
        rprint(table)

    for failure in report.failures:
        rprint(f"  [red]failed:[/red] {failure.path} ({failure.language}): {failure.error}")


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


@repo_app.command("add")
def repo_add(
    repo: str = typer.Argument(..., help="Repository as owner/name"),
    lang: Annotated[
        list[str] | None, typer.Option("--lang", "-l", help="Target language code (repeatable)")
    ] = None,
    base: Annotated[
        str | None,
        typer.Option("--base", help="Source language of the docs (detected from README if omitted)"),
    ] = None,
    installation_id: Annotated[
        int | None,
        typer.Option("--installation-id", help="GitHub App installation id (looked up if omitted)"),
    ] = None,
    ignore_file: Annotated[
        Path | None, typer.Option("--ignore-file", help="File of newline-delimited ignore globs")
    ] = None,
) -> None:
    """Register a repository for translation."""
    cfg = _get_config()
    try:
        owner, name = _split_repo(repo)
        if not lang:
            raise ValueError("At least one --lang is required")
        controller = _build_controller(cfg)
        tokens = controller.client.tokens
        if installation_id is None:
            installation_id = asyncio.run(tokens.find_installation_for_repo(owner, name))
            if installation_id is None:
                raise ValueError(f"The GitHub App is not installed on {repo}")
        meta = asyncio.run(controller.client.get_repo_metadata(installation_id, repo))
        if base is None:
            base = asyncio.run(detect_base_language(
                controller.client,
                installation_id,
                repo,
                ref=meta.default_branch,
                index_path=cfg.translation.index_path,
            ))
        ignore_rules = ignore_file.read_text(encoding="utf-8") if ignore_file else None
        saved = controller.store.add_repository(Repository(
            owner=owner,
            name=name,
            installation_id=installation_id,
            default_branch=meta.default_branch,
            base_language=base,
            target_languages=list(lang),
            ignore_rules=ignore_rules,
        ))
    except (DocMirrorError, GithubException, ValueError, OSError) as e:
        raise _fail(e)
    rprint(
        f"[green]Registered[/green] {saved.full_name} (id {saved.id}, "
        f"branch {saved.default_branch}, {base} -> {', '.join(saved.target_languages)})"
    )


@repo_app.command("list")
def repo_list() -> None:
    """List registered repositories."""
    store = _open_store(_get_config())
    repos = store.list_repositories()
    if not repos:
        rprint("[yellow]No repositories registered.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Repositories ({len(repos)})")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Branch")
    table.add_column("Languages", style="green")
    table.add_column("Baseline", style="dim")
    for r in repos:
        table.add_row(
            str(r.id),
            r.full_name,
            r.default_branch,
            f"{r.base_language} -> {', '.join(r.target_languages)}",
            r.baseline_sha[:7] if r.baseline_sha else "-",
        )
    rprint(table)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@app.command()
def detect(
    repo: str = typer.Argument(..., help="Repository as owner/name"),
    full: Annotated[bool, typer.Option("--full", help="Ignore the baseline")] = False,
) -> None:
    """Show which docs changed since the last translated commit."""
    cfg = _get_config()
    try:
        controller = _build_controller(cfg)
        repository = _find_repo(controller, repo)
        detector = ChangeDetector(controller.client, cfg.translation)
        baseline = None if full else repository.baseline_sha
        result = asyncio.run(detector.detect(repository.installation_id, repository, baseline))
    except (DocMirrorError, GithubException, ValueError) as e:
        raise _fail(e)

    if not result.has_changes:
        rprint(f"[green]Up to date[/green] at {result.latest_sha[:7]}")
        return

    kind = "full rescan" if result.is_full_rescan else "incremental"
    table = Table(title=f"Changed docs ({len(result.files)}, {kind}) at {result.latest_sha[:7]}")
    table.add_column("Path", style="cyan")
    table.add_column("Status")
    for f in result.files:
        table.add_row(f.path, f.status)
    rprint(table)


@app.command()
def translate(
    repo: str = typer.Argument(..., help="Repository as owner/name"),
    full: Annotated[bool, typer.Option("--full", help="Translate every doc, not just changes")] = False,
    file: Annotated[
        list[str] | None, typer.Option("--file", "-f", help="Only translate these paths (repeatable)")
    ] = None,
    lang: Annotated[
        list[str] | None, typer.Option("--lang", "-l", help="Override target languages (repeatable)")
    ] = None,
    wait: Annotated[bool, typer.Option("--wait", help="Run the task now instead of queueing")] = False,
) -> None:
    """Create a translation task for a repository."""
    cfg = _get_config()
    try:
        controller = _build_controller(cfg, llm=wait)
        repository = _find_repo(controller, repo)
        created = asyncio.run(controller.create_task(
            repository.id,
            "full" if full else "incremental",
            selected_files=file or None,
            target_languages=lang or None,
        ))
    except (DocMirrorError, GithubException, ValueError) as e:
        raise _fail(e)

    if created is None:
        rprint("[green]No changes detected since last translation.[/green]")
        raise typer.Exit(0)

    rprint(
        f"[green]Created[/green] {created.type.value} task {created.task_id}: "
        f"{created.file_count} file(s) x {len(created.target_languages)} language(s)"
    )
    if not wait:
        rprint("[dim]Queued. Run 'docmirror worker' to process it.[/dim]")
        return

    worker = Worker(controller, controller.queue)
    try:
        asyncio.run(worker.drain())
    except DocMirrorError as e:
        raise _fail(e)
    report = controller.get_status(created.task_id)
    _display_report(report)
    if report.status == TaskStatus.failed:
        raise typer.Exit(1)


@app.command()
def status(
    task_id: int = typer.Argument(..., help="Task id"),
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw report as JSON")] = False,
) -> None:
    """Show progress and results of a translation task."""
    cfg = _get_config()
    try:
        controller = _build_controller(cfg, github=False)
        report = controller.get_status(task_id)
    except DocMirrorError as e:
        raise _fail(e)
    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2))
        return
    _display_report(report)


@app.command()
def commit(
    task_id: int = typer.Argument(..., help="Task id"),
    no_pr: Annotated[bool, typer.Option("--no-pr", help="Push the branch without a PR")] = False,
    branch: Annotated[
        str | None, typer.Option("--branch", "-b", help="Working branch name")
    ] = None,
) -> None:
    """Commit a completed task's translations and open a pull request."""
    cfg = _get_config()
    create_pr = cfg.translation.create_pr and not no_pr
    try:
        controller = _build_controller(cfg)
        outcome = asyncio.run(
            controller.commit_task(task_id, create_pr=create_pr, branch_name=branch)
        )
    except DocMirrorError as e:
        raise _fail(e)

    rprint(f"[green]Committed[/green] {outcome.files_committed} file(s) to {outcome.branch_name}")
    if outcome.pr_url:
        rprint(f"[green]Pull request[/green] #{outcome.pr_number}: {outcome.pr_url}")
    elif create_pr:
        rprint("[yellow]Pull request could not be created; see logs.[/yellow]")


@app.command()
def poll() -> None:
    """Queue incremental tasks for every repository whose default branch moved."""
    cfg = _get_config()
    try:
        controller = _build_controller(cfg)
        created = asyncio.run(controller.poll())
    except DocMirrorError as e:
        raise _fail(e)

    if not created:
        rprint("[green]All repositories up to date.[/green]")
        return
    table = Table(title=f"Queued tasks ({len(created)})")
    table.add_column("Task", justify="right", style="cyan")
    table.add_column("Type")
    table.add_column("Files", justify="right")
    table.add_column("Languages", style="green")
    for c in created:
        table.add_row(str(c.task_id), c.type.value, str(c.file_count), ", ".join(c.target_languages))
    rprint(table)


@app.command()
def worker(
    once: Annotated[bool, typer.Option("--once", help="Drain the queue and exit")] = False,
    interval: Annotated[float, typer.Option("--interval", help="Seconds between queue polls")] = 2.0,
) -> None:
    """Process queued translation tasks."""
    cfg = _get_config()
    try:
        controller = _build_controller(cfg, github=False, llm=True)
    except (DocMirrorError, ValueError) as e:
        raise _fail(e)
    w = Worker(controller, controller.queue, poll_interval=interval)
    if once:
        processed = asyncio.run(w.drain())
        rprint(f"[green]Done.[/green] Processed {processed} job(s).")
        return
    try:
        asyncio.run(w.run_forever())
    except KeyboardInterrupt:
        rprint("[dim]Worker interrupted.[/dim]")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default docmirror.yaml in current directory."""
    target = Path("docmirror.yaml")
    if target.exists() and not force:
        rprint("[yellow]docmirror.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
    if not os.environ.get("GITHUB_APP_ID"):
        rprint("[dim]Set GITHUB_APP_ID and place the app's private key at private-key.pem.[/dim]")


if __name__ == "__main__":
    app()
