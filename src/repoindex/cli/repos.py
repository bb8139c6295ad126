"""repoindex repos — list the GitHub repositories the token can access."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from repoindex.cli.common import load_cfg, resolve_token
from repoindex.cli.errors import err_github
from repoindex.config import RepoIndexConfig
from repoindex.ingest.github import GitHubClient, GitHubError, GitHubRepo

console = Console()


def repos_cmd(
    token: Annotated[
        str | None,
        typer.Option("--token", help="GitHub token (default: $GITHUB_TOKEN)."),
    ] = None,
) -> None:
    """List repositories available to connect."""
    cfg = load_cfg()
    github_token = resolve_token(token)
    try:
        repos = asyncio.run(_list_repos(cfg, github_token))
    except GitHubError as exc:
        console.print(err_github(str(exc)))
        raise typer.Exit(1) from None

    if not repos:
        console.print("[dim]No repositories visible to this token.[/]")
        return

    table = Table(padding=(0, 1))
    table.add_column("Repository", style="bold")
    table.add_column("Branch", style="dim")
    table.add_column("Visibility")
    table.add_column("Description", style="dim", overflow="fold")
    for r in repos:
        table.add_row(
            r.full_name,
            r.default_branch,
            "private" if r.private else "public",
            escape(r.description or ""),
        )
    console.print(table)


async def _list_repos(cfg: RepoIndexConfig, token: str) -> list[GitHubRepo]:
    async with GitHubClient(token, api_url=cfg.github.api_url, timeout=cfg.github.timeout) as github:
        return await github.list_repos()
