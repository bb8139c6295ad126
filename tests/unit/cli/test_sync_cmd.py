"""Tests for repoindex sync."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from repoindex.cli.main import app
from repoindex.db.connection import Database
from repoindex.db.models import Connection
from repoindex.db.repository import Repository
from repoindex.db.schema import initialize
from repoindex.ingest.indexer import SyncInProgressError, SyncReport

runner = CliRunner()


def _seed(db: Path, *names: str, workspace: str = "default", **fields) -> None:
    conn = Database(db).connect()
    initialize(conn)
    repo = Repository(conn)
    for i, name in enumerate(names):
        repo.add_connection(
            Connection(
                id=f"c{i}",
                workspace_id=workspace,
                repo_url=f"https://github.com/{name}",
                repo_name=name,
            )
        )
        if fields:
            repo.update_connection(f"c{i}", **fields)
    conn.close()


@pytest.fixture
def run_indexer():
    report = SyncReport(added=1, removed=2, unchanged=4, files_found=5)
    with patch("repoindex.cli.sync.run_indexer", new=AsyncMock(return_value=report)) as mock:
        yield mock


def test_sync_no_db_exits_1(cli_env, run_indexer) -> None:
    result = runner.invoke(app, ["sync", "--db", str(cli_env / "missing.db")])
    assert result.exit_code == 1
    assert "No database" in result.output


def test_sync_no_connections_exits_0(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db)
    result = runner.invoke(app, ["sync", "--db", str(db)])
    assert result.exit_code == 0
    assert "No connections" in result.output
    run_indexer.assert_not_awaited()


def test_sync_all_connections(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a", "octo/b")
    result = runner.invoke(app, ["sync", "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert run_indexer.await_count == 2
    assert [c.args[3].repo_name for c in run_indexer.await_args_list] == ["octo/a", "octo/b"]
    assert all(c.kwargs["full"] is False for c in run_indexer.await_args_list)
    assert "1 added, 2 removed, 4 unchanged" in result.output


def test_sync_single_repo(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a", "octo/b")
    result = runner.invoke(app, ["sync", "--repo", "octo/b", "--db", str(db)])
    assert result.exit_code == 0, result.output
    run_indexer.assert_awaited_once()
    assert run_indexer.await_args.args[3].repo_name == "octo/b"


def test_sync_unknown_repo_exits_1(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a")
    result = runner.invoke(app, ["sync", "--repo", "octo/zzz", "--db", str(db)])
    assert result.exit_code == 1
    assert "Not connected" in result.output


def test_sync_respects_workspace(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a", workspace="team")
    result = runner.invoke(app, ["sync", "--workspace", "team", "--db", str(db)])
    assert result.exit_code == 0, result.output
    run_indexer.assert_awaited_once()


def test_sync_force_is_forwarded(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a")
    runner.invoke(app, ["sync", "--force", "--db", str(db)])
    assert run_indexer.await_args.kwargs["force"] is True


def test_sync_in_progress_exits_1(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a")
    run_indexer.side_effect = SyncInProgressError("busy")
    result = runner.invoke(app, ["sync", "--db", str(db)])
    assert result.exit_code == 1
    assert "already running" in result.output


def test_sync_failure_reports_error_message(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a", status="error", error_message="tree missing")
    run_indexer.return_value = None
    result = runner.invoke(app, ["sync", "--db", str(db)])
    assert result.exit_code == 1
    assert "tree missing" in result.output


def test_sync_skipped_files_reported(cli_env, run_indexer) -> None:
    db = cli_env / "x.db"
    _seed(db, "octo/a")
    run_indexer.return_value = SyncReport(added=1, unchanged=1, files_found=4)
    result = runner.invoke(app, ["sync", "--db", str(db)])
    assert result.exit_code == 0
    assert "2 files skipped" in result.output
