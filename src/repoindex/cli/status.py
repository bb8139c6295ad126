"""repoindex status command.

Shows the connections of a workspace (status, counters, last sync, last
error), the embedding store and whether an architecture summary exists.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from repoindex.cli.common import DEFAULT_DB, DEFAULT_WORKSPACE, open_db
from repoindex.db.models import (
    SOURCE_TYPE_MODULE,
    STATUS_ERROR,
    STATUS_PENDING,
    STATUS_READY,
    STATUS_SYNCING,
    Connection,
)
from repoindex.db.repository import Repository
from repoindex.db.vectors import list_vec_tables

console = Console()

_STATUS_STYLE = {
    STATUS_PENDING: "[dim]pending[/]",
    STATUS_SYNCING: "[yellow]⏳ syncing[/]",
    STATUS_READY: "[green]✓ ready[/]",
    STATUS_ERROR: "[red]✗ error[/]",
}


def status_cmd(
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace to show."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db."),
    ] = DEFAULT_DB,
) -> None:
    """Show connected repositories and their sync status."""
    if not db.exists():
        console.print(
            Panel(
                "[yellow]No database found.[/]\n"
                "  Run:  repoindex connect OWNER/REPO",
                title="[bold]Connections[/]",
                expand=False,
            )
        )
        return

    conn = open_db(db)
    repo = Repository(conn)
    try:
        connections = repo.list_connections(workspace)
        _show_connections_panel(workspace, connections)
        _show_index_panel(db, conn, repo, workspace)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Panel renderers
# ---------------------------------------------------------------------------


def _show_connections_panel(workspace: str, connections: list[Connection]) -> None:
    if not connections:
        console.print(
            Panel(
                "[dim]No repositories connected.[/]\n"
                "  Run:  repoindex connect OWNER/REPO",
                title=f"[bold]Connections[/] [dim]({workspace})[/]",
                expand=False,
            )
        )
        return

    table = Table(box=None, padding=(0, 1))
    table.add_column("Repository", style="bold")
    table.add_column("Branch", style="dim")
    table.add_column("Status")
    table.add_column("Files", justify="right")
    table.add_column("Modules", justify="right")
    table.add_column("Last sync", style="dim")

    for c in connections:
        table.add_row(
            c.repo_name,
            c.default_branch,
            _STATUS_STYLE.get(c.status, c.status),
            f"{c.file_count:,}",
            f"{c.module_count:,}",
            (c.last_synced_at or "never")[:16],
        )

    console.print(
        Panel(table, title=f"[bold]Connections[/] [dim]({workspace})[/]", expand=False)
    )

    for c in connections:
        if c.status == STATUS_ERROR and c.error_message:
            console.print(f"[red]✗ {c.repo_name}:[/] {escape(c.error_message)}")


def _show_index_panel(db: Path, conn: sqlite3.Connection, repo: Repository, workspace: str) -> None:
    size_mb = db.stat().st_size / (1024 * 1024)
    architecture = repo.get_architecture_summary(workspace)

    lines = [
        f"Database:     {db} ({size_mb:.1f} MB)",
        f"Embeddings:   [bold]{repo.count_embeddings(SOURCE_TYPE_MODULE):,}[/]",
    ]
    for name in list_vec_tables(conn):
        lines.append(f"  [dim]{name}[/]")
    if architecture is not None:
        lines.append(f"Architecture: [green]✓[/] [dim]updated {(architecture.updated_at or '')[:16]}[/]")
    else:
        lines.append("Architecture: [dim]not generated yet[/]")

    console.print(Panel("\n".join(lines), title="[bold]Index[/]", expand=False))

