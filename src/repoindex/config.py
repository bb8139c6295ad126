"""repoindex configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (REPOINDEX_SUMMARY_MODEL, REPOINDEX_ARCHITECTURE_MODEL,
                             REPOINDEX_EMBEDDING_MODEL, REPOINDEX_GITHUB_API_URL)
  3. Per-project repoindex.yaml  (next to .repoindex.db)
  4. Global ~/.repoindex/config.yaml  (model defaults only — no tokens)
  5. Hardcoded defaults

Global config must never contain credentials; the GitHub token comes from
GITHUB_TOKEN (or --token) and provider keys from their usual env vars.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".repoindex"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "repoindex.yaml"

# Key names that suggest a credential; forbidden in global config.
# Does NOT match legitimate config keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["github", "indexer", "summary", "architecture", "embedding"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class GitHubCfg:
    """GitHub API access (repoindex.yaml: github:)."""

    api_url: str = "https://api.github.com"
    timeout: float = 30.0


@dataclass
class IndexerCfg:
    """Batching and size limits for index / resync runs (repoindex.yaml: indexer:).

    Attributes:
        batch_size: Files (and modules, during summarization) processed concurrently.
        batch_delay: Pause in seconds between batches.
        max_file_size: Files whose decoded content is longer are skipped.
        max_symbols: Cap on stored exports and imports per module.
    """

    batch_size: int = 5
    batch_delay: float = 0.5
    max_file_size: int = 100_000
    max_symbols: int = 50


@dataclass
class SummaryCfg:
    """Per-module summarization model (repoindex.yaml: summary:)."""

    model: str = "anthropic/claude-haiku-4-5-20251001"
    max_tokens: int = 200
    content_chars: int = 4_000


@dataclass
class ArchitectureCfg:
    """Repository-level architecture synthesis model (repoindex.yaml: architecture:)."""

    model: str = "anthropic/claude-sonnet-4-20250514"
    max_tokens: int = 2_000


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (repoindex.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536


@dataclass
class RepoIndexConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    github: GitHubCfg = field(default_factory=GitHubCfg)
    indexer: IndexerCfg = field(default_factory=IndexerCfg)
    summary: SummaryCfg = field(default_factory=SummaryCfg)
    architecture: ArchitectureCfg = field(default_factory=ArchitectureCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any credential-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  Credentials must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: RepoIndexConfig) -> None:
    if cfg.indexer.batch_size < 1:
        raise ConfigError(f"indexer.batch_size must be >= 1, got {cfg.indexer.batch_size}")
    if cfg.indexer.batch_delay < 0:
        raise ConfigError(f"indexer.batch_delay must be >= 0, got {cfg.indexer.batch_delay}")
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if not cfg.github.api_url.startswith("https://"):
        raise ConfigError(
            f"github.api_url must be an https:// URL, got '{cfg.github.api_url}'"
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RepoIndexConfig:
    """Build a *RepoIndexConfig* from a merged raw YAML dict."""
    cfg = RepoIndexConfig()

    if "github" in data:
        g = data["github"] or {}
        cfg.github = GitHubCfg(
            api_url=str(g.get("api_url", cfg.github.api_url)).rstrip("/"),
            timeout=float(g.get("timeout", cfg.github.timeout)),
        )

    if "indexer" in data:
        i = data["indexer"] or {}
        cfg.indexer = IndexerCfg(
            batch_size=int(i.get("batch_size", cfg.indexer.batch_size)),
            batch_delay=float(i.get("batch_delay", cfg.indexer.batch_delay)),
            max_file_size=int(i.get("max_file_size", cfg.indexer.max_file_size)),
            max_symbols=int(i.get("max_symbols", cfg.indexer.max_symbols)),
        )

    if "summary" in data:
        s = data["summary"] or {}
        cfg.summary = SummaryCfg(
            model=str(s.get("model", cfg.summary.model)),
            max_tokens=int(s.get("max_tokens", cfg.summary.max_tokens)),
            content_chars=int(s.get("content_chars", cfg.summary.content_chars)),
        )

    if "architecture" in data:
        a = data["architecture"] or {}
        cfg.architecture = ArchitectureCfg(
            model=str(a.get("model", cfg.architecture.model)),
            max_tokens=int(a.get("max_tokens", cfg.architecture.max_tokens)),
        )

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
        )

    return cfg


def _apply_env_overrides(cfg: RepoIndexConfig) -> RepoIndexConfig:
    """Apply REPOINDEX_* environment variable overrides."""
    if model := os.environ.get("REPOINDEX_SUMMARY_MODEL"):
        cfg.summary.model = model
    if model := os.environ.get("REPOINDEX_ARCHITECTURE_MODEL"):
        cfg.architecture.model = model
    if model := os.environ.get("REPOINDEX_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if url := os.environ.get("REPOINDEX_GITHUB_API_URL"):
        cfg.github.api_url = url.rstrip("/")
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RepoIndexConfig:
    """Load and return a merged *RepoIndexConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *repoindex.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains credential-like fields, or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg
