"""repoindex CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer

from repoindex.cli.architecture import architecture_cmd
from repoindex.cli.connect import connect_cmd
from repoindex.cli.disconnect import disconnect_cmd
from repoindex.cli.modules import modules_cmd
from repoindex.cli.repos import repos_cmd
from repoindex.cli.search import search_cmd
from repoindex.cli.status import status_cmd
from repoindex.cli.sync import sync_cmd


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"repoindex {_installed_version()}")
        raise typer.Exit()


def _installed_version() -> str:
    try:
        return importlib.metadata.version("repoindex")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


app = typer.Typer(
    name="repoindex",
    help=(
        "repoindex — index GitHub repositories into a searchable module map.\n\n"
        "  repoindex connect OWNER/REPO  Link a repository and run the first full index.\n"
        "  repoindex sync                Apply added / removed files since the last run."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline progress to stderr."),
    ] = False,
) -> None:
    """repoindex — codebase indexing and incremental sync."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command("connect")(connect_cmd)
app.command("sync")(sync_cmd)
app.command("status")(status_cmd)
app.command("modules")(modules_cmd)
app.command("search")(search_cmd)
app.command("architecture")(architecture_cmd)
app.command("repos")(repos_cmd)
app.command("disconnect")(disconnect_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed repoindex version."""
    typer.echo(f"repoindex {_installed_version()}")


if __name__ == "__main__":
    app()
