"""Tests for repoindex search."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from repoindex.cli.main import app
from repoindex.db.connection import Database
from repoindex.db.models import Module
from repoindex.db.schema import initialize
from repoindex.rag.search import ScoredModule

runner = CliRunner()


@pytest.fixture
def db(cli_env: Path) -> Path:
    path = cli_env / "x.db"
    conn = Database(path).connect()
    initialize(conn)
    conn.close()
    return path


def _hit(path: str, distance: float) -> ScoredModule:
    return ScoredModule(
        module=Module(
            id=path,
            connection_id="c1",
            workspace_id="default",
            file_path=path,
            module_type="service",
            summary="Signs tokens.",
        ),
        distance=distance,
    )


def test_search_prints_results(db: Path) -> None:
    hits = [_hit("a.ts", 0.12), _hit("b.ts", 0.34)]
    with patch("repoindex.cli.search.search_modules", new=AsyncMock(return_value=hits)) as mock:
        result = runner.invoke(app, ["search", "jwt signing", "--limit", "5", "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert "a.ts" in result.output
    assert "0.120" in result.output
    query, _, workspace, config = mock.await_args.args
    assert query == "jwt signing"
    assert workspace == "default"
    assert config.top_k == 5
    assert config.embedding_model == "openai/text-embedding-3-small"


def test_search_no_results(db: Path) -> None:
    with patch("repoindex.cli.search.search_modules", new=AsyncMock(return_value=[])):
        result = runner.invoke(app, ["search", "nothing", "--db", str(db)])
    assert result.exit_code == 0
    assert "No matching modules" in result.output


def test_search_without_index_exits_1(db: Path) -> None:
    error = RuntimeError("No embeddings found. Run 'repoindex sync' first.")
    with patch("repoindex.cli.search.search_modules", new=AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["search", "x", "--db", str(db)])
    assert result.exit_code == 1
    assert "repoindex sync" in result.output


def test_search_without_embedding_key_exits_1(db: Path, monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY")
    result = runner.invoke(app, ["search", "x", "--db", str(db)])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


def test_search_no_db_exits_1(cli_env: Path) -> None:
    result = runner.invoke(app, ["search", "x", "--db", str(cli_env / "missing.db")])
    assert result.exit_code == 1
    assert "No database" in result.output
