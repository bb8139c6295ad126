"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from repoindex.db.connection import Database


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    conn = Database(tmp_path / ".repoindex.db").open()
    yield conn
    conn.close()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Isolated CLI environment: cwd = tmp_path, no global config, credentials set."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("repoindex.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for var in (
        "REPOINDEX_SUMMARY_MODEL",
        "REPOINDEX_ARCHITECTURE_MODEL",
        "REPOINDEX_EMBEDDING_MODEL",
        "REPOINDEX_GITHUB_API_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return tmp_path
