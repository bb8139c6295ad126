"""repoindex architecture — print the workspace architecture summary."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from repoindex.cli.common import DEFAULT_DB, DEFAULT_WORKSPACE, open_existing_db
from repoindex.db.repository import Repository

console = Console()


def architecture_cmd(
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace whose summary to show."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db."),
    ] = DEFAULT_DB,
) -> None:
    """Show the generated architecture overview."""
    conn = open_existing_db(db)
    try:
        artifact = Repository(conn).get_architecture_summary(workspace)
    finally:
        conn.close()

    if artifact is None:
        console.print(
            "[yellow]No architecture summary yet.[/]\n"
            "  It is generated at the end of:  repoindex connect / repoindex sync"
        )
        return

    console.print(
        Panel(
            Text(artifact.content),
            title=f"[bold]{artifact.title}[/]",
            subtitle=f"[dim]updated {(artifact.updated_at or '')[:16]}[/]",
        )
    )
