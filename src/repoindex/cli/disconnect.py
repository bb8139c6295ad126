"""repoindex disconnect — connection lifecycle management.

Removes a connection and everything indexed for it:
  - embeddings (rows + vectors in every vec table)
  - module records
  - the connection record

Usage:
  repoindex disconnect octocat/hello-world
  repoindex disconnect octocat/hello-world --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from repoindex.cli.common import DEFAULT_DB, DEFAULT_WORKSPACE, open_existing_db, resolve_connection
from repoindex.db.repository import Repository

console = Console()


def disconnect_cmd(
    repo_name: Annotated[
        str,
        typer.Argument(help="Repository to disconnect (OWNER/REPO)."),
    ],
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace the connection belongs to."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db."),
    ] = DEFAULT_DB,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Disconnect a repository and delete its indexed data."""
    conn = open_existing_db(db)
    repo = Repository(conn)
    try:
        connection = resolve_connection(repo, workspace, repo_name)
        module_count = repo.count_modules(connection.id)

        console.print(f"\nDisconnect: [bold]{connection.repo_name}[/]")
        console.print(f"  Modules: {module_count}  |  Status: {connection.status}")

        if not yes:
            if not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        removed = repo.delete_connection(connection.id)
        console.print(f"\n[green]✓[/] Disconnected: {connection.repo_name}")
        console.print(f"  {removed} modules and their embeddings deleted")
    finally:
        conn.close()
