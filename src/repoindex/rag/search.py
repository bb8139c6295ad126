"""Semantic module search over the shared embedding store (sqlite-vec).

The query is embedded with the same embedding model used at index time and
matched against 'codebase_module' vectors of one workspace. Hits are mapped
back to their Module rows; vectors whose module has since been removed are
dropped.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from repoindex.db.models import SOURCE_TYPE_MODULE, Module
from repoindex.db.repository import Repository
from repoindex.db.vectors import model_to_slug, vec_table_name
from repoindex.rag import llm_client


@dataclass
class SearchConfig:
    """Configuration for semantic search.

    Attributes:
        embedding_model: LiteLLM embedding model string (provider/model format).
        top_k: Maximum number of modules to return.
    """

    embedding_model: str = "openai/text-embedding-3-small"
    top_k: int = 10


@dataclass
class ScoredModule:
    """A module hit with its vector distance (lower = closer)."""

    module: Module
    distance: float


async def search_modules(
    query: str,
    repo: Repository,
    workspace_id: str,
    config: SearchConfig,
) -> list[ScoredModule]:
    """Return the modules closest to *query*, best-first.

    Raises:
        RuntimeError: If the vec table for the configured embedding model does not exist.
    """
    vec_table = vec_table_name(model_to_slug(config.embedding_model))
    _validate_vec_table(repo.conn, vec_table, config.embedding_model)

    vector = await llm_client.embed(config.embedding_model, query)
    hits = repo.search_embeddings(
        vec_table,
        vector,
        workspace_id,
        source_types=[SOURCE_TYPE_MODULE],
        limit=config.top_k,
    )

    results: list[ScoredModule] = []
    for record, distance in hits:
        module = repo.get_module(record.source_id)
        if module is not None:
            results.append(ScoredModule(module=module, distance=distance))
    return results


def _validate_vec_table(conn: sqlite3.Connection, vec_table: str, model: str) -> None:
    """Raise RuntimeError if the vec table for *model* does not exist."""
    exists = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (vec_table,),
    ).fetchone()
    if exists is None:
        raise RuntimeError(
            f"No embeddings found for model '{model}'. "
            f"Run 'repoindex sync' first to populate the vector index."
        )
