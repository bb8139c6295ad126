"""Module summarizer — per-module summaries + embeddings via LiteLLM.

For every module without a summary:
1. Ask the fast model for a 2-3 sentence description of the module.
2. Store the summary on the module row.
3. Embed f"{path}\\n{summary}\\nExports: {exports}" and store the vector on
   the module row and in the shared embedding store (source_type
   "codebase_module", chunk_index 0).

Failures are per module: a failed summary leaves summary + embedding null,
a failed embedding leaves the embedding null. Neither stops the batch.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

from repoindex.db.models import SOURCE_TYPE_MODULE, EmbeddingRecord, Module
from repoindex.db.repository import Repository
from repoindex.rag import llm_client

logger = logging.getLogger(__name__)

_SUMMARY_PROMPT = """\
Describe what this code module does in 2-3 sentences. Be specific about its \
purpose, what data it handles, and what it exports. File: {file_path}

{content}"""


@dataclass
class SummarizerConfig:
    """Models and batching for the summarization stage."""

    model: str = "anthropic/claude-haiku-4-5-20251001"
    max_tokens: int = 200
    content_chars: int = 4_000
    embedding_model: str = "openai/text-embedding-3-small"
    batch_size: int = 5
    batch_delay: float = 0.5


def embedding_text(module: Module, summary: str) -> str:
    """Build the text embedded for *module*: path, summary and export list."""
    return f"{module.file_path}\n{summary}\nExports: {', '.join(module.exports)}"


class ModuleSummarizer:
    """Generate and persist summaries and embeddings for a connection's modules.

    Args:
        repo:      Open Repository instance.
        vec_table: sqlite-vec table for the configured embedding model.
        config:    Models and batching parameters.
    """

    def __init__(
        self, repo: Repository, vec_table: str, config: SummarizerConfig | None = None
    ) -> None:
        self._repo = repo
        self._vec_table = vec_table
        self._config = config or SummarizerConfig()

    async def summarize_pending(
        self, connection_id: str, only_ids: list[str] | None = None
    ) -> int:
        """Summarize every module of *connection_id* that has no summary yet.

        Args:
            connection_id: Connection whose modules are processed.
            only_ids: Restrict the run to these module ids (resync passes the
                newly inserted modules).

        Returns:
            Number of modules that received a summary.
        """
        modules = self._repo.list_unsummarized(connection_id, only_ids=only_ids)
        if not modules:
            logger.info("No modules to summarize")
            return 0

        logger.info("Summarizing %d modules", len(modules))
        size = self._config.batch_size
        summarized = 0
        for start in range(0, len(modules), size):
            batch = modules[start : start + size]
            results = await asyncio.gather(*(self._summarize_one(m) for m in batch))
            summarized += sum(results)
            if start + size < len(modules):
                await asyncio.sleep(self._config.batch_delay)
        return summarized

    async def _summarize_one(self, module: Module) -> bool:
        """Summarize and embed one module. Returns True if a summary was stored."""
        try:
            summary = await self._generate(module)
        except Exception:
            logger.warning("Summarization failed for %s", module.file_path, exc_info=True)
            return False
        if not summary:
            logger.warning("Summarization returned no text for %s", module.file_path)
            return False

        self._repo.set_module_summary(module.id, summary)

        text = embedding_text(module, summary)
        try:
            vector = await llm_client.embed(self._config.embedding_model, text)
            self._repo.upsert_embedding(
                EmbeddingRecord(
                    workspace_id=module.workspace_id,
                    source_id=module.id,
                    source_type=SOURCE_TYPE_MODULE,
                    chunk_index=0,
                    chunk_text=text,
                    metadata=json.dumps({"file_path": module.file_path}),
                ),
                self._vec_table,
                vector,
            )
            self._repo.set_module_embedding(module.id, vector)
        except Exception:
            logger.warning("Embedding failed for %s", module.file_path, exc_info=True)
        return True

    async def _generate(self, module: Module) -> str:
        prompt = _SUMMARY_PROMPT.format(
            file_path=module.file_path,
            content=(module.raw_content or "")[: self._config.content_chars],
        )
        return await llm_client.complete(
            self._config.model,
            [{"role": "user", "content": prompt}],
            max_tokens=self._config.max_tokens,
        )
