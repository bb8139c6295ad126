"""repoindex search — semantic search over indexed modules.

Usage:
  repoindex search "where are webhooks verified"
  repoindex search "database models" --limit 5
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from repoindex.cli.common import DEFAULT_DB, DEFAULT_WORKSPACE, check_api_keys, load_cfg, open_existing_db
from repoindex.db.repository import Repository
from repoindex.rag.search import SearchConfig, search_modules

console = Console()


def search_cmd(
    query: Annotated[str, typer.Argument(help="Natural-language query.")],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, max=100, help="Maximum number of results."),
    ] = 10,
    workspace: Annotated[
        str,
        typer.Option("--workspace", "-w", help="Workspace to search."),
    ] = DEFAULT_WORKSPACE,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .repoindex.db."),
    ] = DEFAULT_DB,
) -> None:
    """Find the modules most related to QUERY."""
    cfg = load_cfg()
    check_api_keys(cfg.embedding.model)

    conn = open_existing_db(db)
    repo = Repository(conn)
    try:
        results = asyncio.run(
            search_modules(
                query,
                repo,
                workspace,
                SearchConfig(embedding_model=cfg.embedding.model, top_k=limit),
            )
        )
    except RuntimeError as exc:
        console.print(f"[red]Error:[/] {escape(str(exc))}")
        raise typer.Exit(1) from None
    finally:
        conn.close()

    if not results:
        console.print("[dim]No matching modules.[/]")
        return

    table = Table(padding=(0, 1))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Path", style="bold", overflow="fold")
    table.add_column("Type")
    table.add_column("Distance", justify="right", style="dim")
    table.add_column("Summary")

    for i, hit in enumerate(results, start=1):
        table.add_row(
            str(i),
            hit.module.file_path,
            hit.module.module_type or "—",
            f"{hit.distance:.3f}",
            escape(hit.module.summary or ""),
        )
    console.print(table)
