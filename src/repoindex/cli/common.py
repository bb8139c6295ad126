"""Helpers shared by repoindex CLI commands."""

from __future__ import annotations

import os
import re
import sqlite3
from pathlib import Path

import typer
from rich.console import Console

from repoindex.cli.errors import (
    err_ambiguous_connection,
    err_config,
    err_connection_not_found,
    err_invalid_repo,
    err_no_api_key,
    err_no_connections,
    err_no_db,
    err_no_token,
)
from repoindex.config import ConfigError, RepoIndexConfig, load_config
from repoindex.db.connection import Database
from repoindex.db.models import Connection
from repoindex.db.repository import Repository
from repoindex.rag.llm_client import provider_of, validate_api_key

console = Console()

DEFAULT_DB = Path(".repoindex.db")
DEFAULT_WORKSPACE = "default"

_REPO_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_GITHUB_URL_PREFIXES = ("https://github.com/", "http://github.com/", "github.com/")


def open_db(db_path: Path) -> sqlite3.Connection:
    return Database(db_path).open()


def open_existing_db(db_path: Path) -> sqlite3.Connection:
    """Open *db_path* or exit with a hint if it does not exist."""
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    return open_db(db_path)


def load_cfg() -> RepoIndexConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from None


def resolve_token(token: str | None) -> str:
    """Return --token, else $GITHUB_TOKEN; exit if neither is set."""
    value = token or os.environ.get("GITHUB_TOKEN")
    if not value:
        console.print(err_no_token())
        raise typer.Exit(1)
    return value


def check_api_keys(*models: str) -> None:
    """Exit with an actionable message if any model's provider key is missing."""
    for model in models:
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(provider_of(model)))
            raise typer.Exit(1) from None


def parse_repo_name(value: str) -> str:
    """Normalise 'owner/repo' or a github.com URL to 'owner/repo'."""
    name = value.strip()
    for prefix in _GITHUB_URL_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    name = name.rstrip("/")
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not _REPO_NAME_RE.match(name):
        console.print(err_invalid_repo(value))
        raise typer.Exit(1)
    return name


def resolve_connection(repo: Repository, workspace: str, repo_name: str | None) -> Connection:
    """Return the named connection, or the only one in *workspace* when no name is given."""
    if repo_name is not None:
        name = parse_repo_name(repo_name)
        connection = repo.get_connection_by_repo(workspace, name)
        if connection is None:
            console.print(err_connection_not_found(name, workspace))
            raise typer.Exit(1)
        return connection

    connections = repo.list_connections(workspace)
    if not connections:
        console.print(err_no_connections(workspace))
        raise typer.Exit(1)
    if len(connections) > 1:
        console.print(err_ambiguous_connection([c.repo_name for c in connections]))
        raise typer.Exit(1)
    return connections[0]
