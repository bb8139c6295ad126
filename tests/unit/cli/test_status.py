"""Tests for repoindex status."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from typer.testing import CliRunner

from repoindex.cli.main import app
from repoindex.db.connection import Database
from repoindex.db.models import Connection
from repoindex.db.repository import Repository
from repoindex.db.schema import initialize
from repoindex.db.vectors import ensure_vec_table

runner = CliRunner()


def _make_db(path: Path) -> tuple[sqlite3.Connection, Repository]:
    conn = Database(path).connect()
    initialize(conn)
    return conn, Repository(conn)


def _add(repo: Repository, id: str = "c1", name: str = "octo/app", workspace: str = "default") -> None:
    repo.add_connection(
        Connection(
            id=id,
            workspace_id=workspace,
            repo_url=f"https://github.com/{name}",
            repo_name=name,
        )
    )


def test_status_no_db(tmp_path: Path) -> None:
    result = runner.invoke(app, ["status", "--db", str(tmp_path / "missing.db")])
    assert result.exit_code == 0
    assert "No database found" in result.output


def test_status_no_connections(tmp_path: Path) -> None:
    db = tmp_path / "x.db"
    conn, _ = _make_db(db)
    conn.close()

    result = runner.invoke(app, ["status", "--db", str(db)])
    assert result.exit_code == 0
    assert "No repositories connected" in result.output
    assert "not generated yet" in result.output


def test_status_lists_connections(tmp_path: Path) -> None:
    db = tmp_path / "x.db"
    conn, repo = _make_db(db)
    _add(repo, "c1", "octo/a")
    _add(repo, "c2", "octo/b")
    repo.update_connection("c1", status="ready", file_count=12, module_count=11)
    conn.close()

    result = runner.invoke(app, ["status", "--db", str(db)])
    assert result.exit_code == 0
    assert "octo/a" in result.output
    assert "octo/b" in result.output
    assert "ready" in result.output
    assert "pending" in result.output
    assert "12" in result.output


def test_status_shows_error_message(tmp_path: Path) -> None:
    db = tmp_path / "x.db"
    conn, repo = _make_db(db)
    _add(repo)
    repo.update_connection("c1", status="error", error_message="token rejected")
    conn.close()

    result = runner.invoke(app, ["status", "--db", str(db)])
    assert "error" in result.output
    assert "token rejected" in result.output


def test_status_filters_workspace(tmp_path: Path) -> None:
    db = tmp_path / "x.db"
    conn, repo = _make_db(db)
    _add(repo, "c1", "octo/mine")
    _add(repo, "c2", "octo/theirs", workspace="team")
    conn.close()

    result = runner.invoke(app, ["status", "--workspace", "team", "--db", str(db)])
    assert "octo/theirs" in result.output
    assert "octo/mine" not in result.output


def test_status_index_panel(tmp_path: Path) -> None:
    db = tmp_path / "x.db"
    conn, repo = _make_db(db)
    ensure_vec_table(conn, "openai_small", dimensions=3)
    repo.upsert_architecture_summary("default", "TECH STACK")
    conn.close()

    result = runner.invoke(app, ["status", "--db", str(db)])
    assert "vec_embeddings_openai_small" in result.output
    assert "Architecture" in result.output
    assert "not generated yet" not in result.output
