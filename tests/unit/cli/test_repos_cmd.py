"""Tests for repoindex repos."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from repoindex.cli.main import app
from repoindex.ingest.github import AuthError, GitHubRepo

runner = CliRunner()


def test_repos_lists_repositories(cli_env) -> None:
    repos = [
        GitHubRepo(full_name="octo/a", html_url="", default_branch="main", private=True),
        GitHubRepo(full_name="octo/b", html_url="", default_branch="dev"),
    ]
    with patch("repoindex.cli.repos._list_repos", new=AsyncMock(return_value=repos)) as mock:
        result = runner.invoke(app, ["repos"])

    assert result.exit_code == 0, result.output
    assert "octo/a" in result.output
    assert "private" in result.output
    assert "public" in result.output
    assert mock.await_args.args[1] == "ghp_test"


def test_repos_empty(cli_env) -> None:
    with patch("repoindex.cli.repos._list_repos", new=AsyncMock(return_value=[])):
        result = runner.invoke(app, ["repos"])
    assert result.exit_code == 0
    assert "No repositories" in result.output


def test_repos_auth_error_exits_1(cli_env) -> None:
    error = AuthError("GitHub rejected the access token while fetching repositories (401).")
    with patch("repoindex.cli.repos._list_repos", new=AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["repos"])
    assert result.exit_code == 1
    assert "rejected" in result.output


def test_repos_without_token_exits_1(cli_env, monkeypatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN")
    result = runner.invoke(app, ["repos"])
    assert result.exit_code == 1
    assert "GITHUB_TOKEN" in result.output
