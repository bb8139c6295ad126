"""repoindex modules — list indexed modules of a connection.

Usage:
  repoindex modules
  repoindex modules --repo octocat/hello-world --type service
  repoindex modules --query auth
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from repoindex.cli.common import DEFAULT_DB, DEFAULT_WORKSPACE, open_existing_db, resolve_connection
from repoindex.cli.errors import err_invalid_module_type
from repoindex.db.models import MODULE_TYPES
from repoindex.db.repository import Repository

console = Console()

_TYPE_CHOICES = [*MODULE_TYPES, "unknown"]
_SUMMARY_WIDTH = 90


def modules_cmd(
    repo_name: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="OWNER/REPO (optional when only one is connected)."),
    ] = None,
    module_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help=f"Filter by type: {', '.join(_TYPE_CHOICES)}."),
    ] = None,
    query: Annotated[
        str | None,
        typer.Option("--query", "-q", help="Case-insensitive substring of path or summary."),
    ] = None,
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace the connection belongs to."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db."),
    ] = DEFAULT_DB,
) -> None:
    """List the modules indexed for a repository."""
    if module_type is not None and module_type not in _TYPE_CHOICES:
        console.print(err_invalid_module_type(module_type, _TYPE_CHOICES))
        raise typer.Exit(1)

    conn = open_existing_db(db)
    repo = Repository(conn)
    try:
        connection = resolve_connection(repo, workspace, repo_name)
        modules = repo.list_modules(connection.id, module_type=module_type, query=query)
    finally:
        conn.close()

    if not modules:
        console.print("[dim]No modules match.[/]")
        return

    table = Table(title=f"{connection.repo_name} — {len(modules)} modules", padding=(0, 1))
    table.add_column("Path", style="bold", overflow="fold")
    table.add_column("Type")
    table.add_column("Language", style="dim")
    table.add_column("Exports", style="dim")
    table.add_column("Summary")

    for m in modules:
        exports = ", ".join(m.exports[:5]) + (" …" if len(m.exports) > 5 else "")
        summary = m.summary or "[dim](not summarized)[/]"
        if m.summary:
            summary = escape(_truncate(m.summary, _SUMMARY_WIDTH))
        table.add_row(m.file_path, m.module_type or "—", m.language or "—", exports, summary)

    console.print(table)


def _truncate(text: str, width: int) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"
