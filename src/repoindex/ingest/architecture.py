"""Architecture synthesis — one plain-text overview per workspace.

Aggregates every summarized module of a connection into a single prompt for
the stronger model and stores the answer as the workspace's architecture
summary artifact (updated in place, never duplicated).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from repoindex.db.models import Module
from repoindex.db.repository import Repository
from repoindex.rag import llm_client

logger = logging.getLogger(__name__)

_ARCHITECTURE_PROMPT = """\
Based on these code modules, generate a structured architecture overview of \
this codebase. Include: tech stack, main services/modules, data models, API \
surface, key dependencies, and how the major pieces connect. Be specific and \
reference actual file paths.

IMPORTANT: Respond in clean plain text only. Do not use markdown formatting \
characters like **, ##, `, or other syntax markers. Use clear paragraphs, \
dashes for bullet points, and blank lines between sections. Use ALL CAPS for \
section labels.

{modules}"""


@dataclass
class ArchitectureConfig:
    model: str = "anthropic/claude-sonnet-4-20250514"
    max_tokens: int = 2_000


def module_overview(modules: list[Module]) -> str:
    """Render one block per module: type, path, language, exports, summary."""
    return "\n\n".join(
        f"[{m.module_type or 'unknown'}] {m.file_path} ({m.language})\n"
        f"Exports: {', '.join(m.exports)}\n"
        f"{m.summary}"
        for m in modules
    )


class ArchitectureSynthesizer:
    """Build and persist the workspace architecture summary.

    Args:
        repo:   Open Repository instance.
        config: Model configuration for the synthesis call.
    """

    def __init__(self, repo: Repository, config: ArchitectureConfig | None = None) -> None:
        self._repo = repo
        self._config = config or ArchitectureConfig()

    async def synthesize(self, connection_id: str, workspace_id: str) -> str | None:
        """Generate and store the architecture summary.

        Returns:
            The stored text, or None when there was nothing to synthesize
            (no summarized modules, or an empty model answer).

        Raises:
            Exception: LLM failures propagate to the caller.
        """
        modules = self._repo.list_summarized(connection_id)
        if not modules:
            logger.info("No summarized modules for architecture overview")
            return None

        logger.info("Generating architecture summary from %d modules", len(modules))
        content = await llm_client.complete(
            self._config.model,
            [
                {
                    "role": "user",
                    "content": _ARCHITECTURE_PROMPT.format(modules=module_overview(modules)),
                }
            ],
            max_tokens=self._config.max_tokens,
        )
        if not content:
            logger.warning("Architecture synthesis returned no text; keeping previous summary")
            return None

        self._repo.upsert_architecture_summary(workspace_id, content)
        logger.info("Architecture summary stored for workspace %s", workspace_id)
        return content
