"""repoindex sync — incremental resync of connected repositories.

Only the presence diff against the live tree is applied:
  - files removed upstream → modules + embeddings deleted
  - new files → fetched, parsed, summarized, embedded
  - unchanged files → untouched
The architecture summary is regenerated afterwards.

Usage:
  repoindex sync                       (every connection in the workspace)
  repoindex sync --repo octocat/hello-world
  repoindex sync --force               (override a stale 'syncing' state)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from repoindex.cli.common import (
    DEFAULT_DB,
    DEFAULT_WORKSPACE,
    check_api_keys,
    load_cfg,
    open_existing_db,
    resolve_connection,
    resolve_token,
)
from repoindex.cli.errors import err_no_connections, err_sync_failed, err_sync_in_progress
from repoindex.config import RepoIndexConfig
from repoindex.db.models import Connection
from repoindex.db.repository import Repository
from repoindex.ingest.github import GitHubClient
from repoindex.ingest.indexer import Indexer, ProgressEvent, SyncInProgressError, SyncReport

console = Console()


def sync_cmd(
    repo_name: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="OWNER/REPO to sync (default: all connections)."),
    ] = None,
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace the connections belong to."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db."),
    ] = DEFAULT_DB,
    token: Annotated[
        str | None,
        typer.Option("--token", help="GitHub token (default: $GITHUB_TOKEN)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Run even if a connection is marked as syncing."),
    ] = False,
) -> None:
    """Re-sync connected repositories with their default branch."""
    cfg = load_cfg()
    github_token = resolve_token(token)
    check_api_keys(cfg.summary.model, cfg.architecture.model, cfg.embedding.model)

    conn = open_existing_db(db)
    repo = Repository(conn)
    try:
        if repo_name is not None:
            connections = [resolve_connection(repo, workspace, repo_name)]
        else:
            connections = repo.list_connections(workspace)
        if not connections:
            console.print(err_no_connections(workspace))
            raise typer.Exit(0)

        failed = False
        for connection in connections:
            console.print(f"\n[bold]→ {connection.repo_name}[/] ({connection.default_branch})")
            try:
                report = asyncio.run(
                    run_indexer(repo, cfg, github_token, connection, full=False, force=force)
                )
            except SyncInProgressError:
                console.print(err_sync_in_progress(connection.repo_name))
                failed = True
                continue
            failed |= not show_report(repo, connection, report)
    finally:
        conn.close()

    if failed:
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Shared with `repoindex connect`
# ------------------------------------------------------------------


async def run_indexer(
    repo: Repository,
    cfg: RepoIndexConfig,
    token: str,
    connection: Connection,
    *,
    full: bool,
    force: bool = False,
) -> SyncReport | None:
    """Run a full index (*full*) or a resync for *connection* with a live progress bar."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task("Listing repository tree…", total=None)

        def on_progress(event: ProgressEvent) -> None:
            if event.kind == "files_found":
                prog.update(task, description="Fetching files…", total=event.total, completed=0)
            elif event.kind == "batch_done":
                prog.update(task, completed=event.processed, total=event.total)
                if event.processed >= event.total:
                    prog.update(task, description="Summarizing modules…")
            elif event.kind == "summarized":
                prog.update(task, description="Synthesizing architecture…")

        async with GitHubClient(
            token, api_url=cfg.github.api_url, timeout=cfg.github.timeout
        ) as github:
            indexer = Indexer.from_config(repo, github, cfg, on_progress=on_progress)
            if full:
                return await indexer.index_repository(connection.id, force=force)
            return await indexer.resync_repository(connection.id, force=force)


def show_report(repo: Repository, connection: Connection, report: SyncReport | None) -> bool:
    """Print the outcome of a run. Returns False if the run failed."""
    current = repo.get_connection(connection.id) or connection
    if report is None:
        console.print(err_sync_failed(connection.repo_name, current.error_message))
        return False

    console.print(
        f"  [green]✓[/] {current.module_count} modules "
        f"({report.added} added, {report.removed} removed, {report.unchanged} unchanged)"
    )
    if report.skipped:
        console.print(f"  [dim]{report.skipped} files skipped (too large or unreadable)[/]")
    return True
