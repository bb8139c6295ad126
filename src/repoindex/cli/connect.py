"""repoindex connect — link a GitHub repository and run the first full index.

Usage:
  repoindex connect octocat/hello-world
  repoindex connect https://github.com/octocat/hello-world --branch develop
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from repoindex.cli.common import (
    DEFAULT_DB,
    DEFAULT_WORKSPACE,
    check_api_keys,
    load_cfg,
    open_db,
    parse_repo_name,
    resolve_token,
)
from repoindex.cli.errors import err_already_connected, err_github, err_sync_in_progress
from repoindex.cli.sync import run_indexer, show_report
from repoindex.config import RepoIndexConfig
from repoindex.db.models import Connection
from repoindex.db.repository import Repository
from repoindex.ingest.github import GitHubClient, GitHubError, GitHubRepo
from repoindex.ingest.indexer import SyncInProgressError

console = Console()


def connect_cmd(
    repo_name: Annotated[
        str,
        typer.Argument(help="Repository as OWNER/REPO or a github.com URL."),
    ],
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Branch to index (default: the repo's default branch)."),
    ] = None,
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace to link the repository to."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db (created if missing)."),
    ] = DEFAULT_DB,
    token: Annotated[
        str | None,
        typer.Option("--token", help="GitHub token (default: $GITHUB_TOKEN)."),
    ] = None,
) -> None:
    """Connect a GitHub repository and index it."""
    name = parse_repo_name(repo_name)
    cfg = load_cfg()
    github_token = resolve_token(token)
    check_api_keys(cfg.summary.model, cfg.architecture.model, cfg.embedding.model)

    conn = open_db(db)
    repo = Repository(conn)
    try:
        if repo.get_connection_by_repo(workspace, name) is not None:
            console.print(err_already_connected(name))
            raise typer.Exit(1)

        try:
            meta = asyncio.run(_fetch_repo(cfg, github_token, name))
        except GitHubError as exc:
            console.print(err_github(str(exc)))
            raise typer.Exit(1) from None

        connection = Connection(
            id=str(uuid.uuid4()),
            workspace_id=workspace,
            repo_url=meta.html_url or f"https://github.com/{meta.full_name}",
            repo_name=meta.full_name,
            default_branch=branch or meta.default_branch,
        )
        repo.add_connection(connection)
        console.print(
            f"[green]✓[/] Connected [bold]{connection.repo_name}[/] "
            f"({connection.default_branch}) to workspace '{workspace}'"
        )

        try:
            report = asyncio.run(
                run_indexer(repo, cfg, github_token, connection, full=True)
            )
        except SyncInProgressError:
            console.print(err_sync_in_progress(connection.repo_name))
            raise typer.Exit(1) from None
        ok = show_report(repo, connection, report)
    finally:
        conn.close()

    if not ok:
        raise typer.Exit(1)


async def _fetch_repo(cfg: RepoIndexConfig, token: str, name: str) -> GitHubRepo:
    owner, repo = name.split("/", 1)
    async with GitHubClient(token, api_url=cfg.github.api_url, timeout=cfg.github.timeout) as github:
        return await github.fetch_repo(owner, repo)
