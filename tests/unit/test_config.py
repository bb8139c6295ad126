"""Tests for the repoindex config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from repoindex.config import ConfigError, RepoIndexConfig, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "REPOINDEX_SUMMARY_MODEL",
        "REPOINDEX_ARCHITECTURE_MODEL",
        "REPOINDEX_EMBEDDING_MODEL",
        "REPOINDEX_GITHUB_API_URL",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Defaults, no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.github.api_url == "https://api.github.com"
    assert cfg.indexer.batch_size == 5
    assert cfg.indexer.batch_delay == 0.5
    assert cfg.indexer.max_file_size == 100_000
    assert cfg.indexer.max_symbols == 50
    assert cfg.summary.model == "anthropic/claude-haiku-4-5-20251001"
    assert cfg.summary.max_tokens == 200
    assert cfg.summary.content_chars == 4_000
    assert cfg.architecture.model == "anthropic/claude-sonnet-4-20250514"
    assert cfg.architecture.max_tokens == 2_000
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.embedding.dimensions == 1536


def test_dataclass_defaults_match_loader(tmp_path: Path) -> None:
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg == RepoIndexConfig()


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"summary": {"model": "openai/gpt-4o-mini"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.summary.model == "openai/gpt-4o-mini"
    # Other keys of the section keep their defaults
    assert cfg.summary.max_tokens == 200
    assert cfg.embedding.model == "openai/text-embedding-3-small"


def test_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.indexer.batch_size == 5


@pytest.mark.parametrize(
    "data",
    [
        {"github": {"token": "ghp_x"}},
        {"github_token": "ghp_x"},
        {"summary": {"api_key": "sk-x"}},
        {"embedding": {"client_secret": "x"}},
        {"github": {"password": "x"}},
    ],
)
def test_global_rejects_credentials(tmp_path: Path, data: dict) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, data)

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_global_allows_max_tokens(tmp_path: Path) -> None:
    """max_tokens is not a credential."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"architecture": {"max_tokens": 1000}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.architecture.max_tokens == 1000


# ---------------------------------------------------------------------------
# Per-project config
# ---------------------------------------------------------------------------


def test_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"indexer": {"batch_size": 3, "batch_delay": 1.0}})
    _write_yaml(tmp_path / "repoindex.yaml", {"indexer": {"batch_size": 10}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.indexer.batch_size == 10
    # Deep merge keeps the global value for keys the project does not set
    assert cfg.indexer.batch_delay == 1.0


def test_project_sections(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "repoindex.yaml",
        {
            "github": {"api_url": "https://ghe.example.com/api/v3/", "timeout": 5},
            "embedding": {"model": "ollama/nomic-embed-text", "dimensions": 768},
            "indexer": {"max_file_size": 50_000, "max_symbols": 20},
        },
    )

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.github.api_url == "https://ghe.example.com/api/v3"
    assert cfg.github.timeout == 5.0
    assert cfg.embedding.model == "ollama/nomic-embed-text"
    assert cfg.embedding.dimensions == 768
    assert cfg.indexer.max_file_size == 50_000
    assert cfg.indexer.max_symbols == 20


def test_project_null_section_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "repoindex.yaml").write_text("summary:\n", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.summary.max_tokens == 200


def test_unknown_key_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "repoindex.yaml", {"retrieval": {"top_k": 3}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert any("retrieval" in str(w.message) for w in caught)
    assert all(issubclass(w.category, UserWarning) for w in caught)


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_env_overrides_beat_files(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "repoindex.yaml", {"summary": {"model": "openai/gpt-4o-mini"}})
    monkeypatch.setenv("REPOINDEX_SUMMARY_MODEL", "groq/llama-3.1-8b-instant")
    monkeypatch.setenv("REPOINDEX_ARCHITECTURE_MODEL", "openai/gpt-4o")
    monkeypatch.setenv("REPOINDEX_EMBEDDING_MODEL", "voyage/voyage-code-3")
    monkeypatch.setenv("REPOINDEX_GITHUB_API_URL", "https://ghe.internal/api/v3/")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.summary.model == "groq/llama-3.1-8b-instant"
    assert cfg.architecture.model == "openai/gpt-4o"
    assert cfg.embedding.model == "voyage/voyage-code-3"
    assert cfg.github.api_url == "https://ghe.internal/api/v3"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data, match",
    [
        ({"indexer": {"batch_size": 0}}, "batch_size"),
        ({"indexer": {"batch_delay": -1}}, "batch_delay"),
        ({"embedding": {"dimensions": 0}}, "dimensions"),
        ({"github": {"api_url": "http://api.github.com"}}, "https://"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, data: dict, match: str) -> None:
    _write_yaml(tmp_path / "repoindex.yaml", data)
    with pytest.raises(ConfigError, match=match):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_insecure_env_url_rejected(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("REPOINDEX_GITHUB_API_URL", "http://ghe.internal")
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
