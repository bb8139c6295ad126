"""Indexing orchestrator and resync engine.

Full index:  pending/ready/error → syncing → list tree → filter → fetch + parse
             + upsert in throttled batches → summarize → synthesize → ready.
Resync:      same gate and status handling, but only the presence diff is
             applied: removed paths are deleted (modules + embeddings), added
             paths are inserted and summarized, unchanged paths are untouched.

Per-file failures are logged and skipped. Anything else aborts the run and
is recorded on the connection as status=error with a readable message; rows
written before the failure are kept.

Progress is reported through an optional ``on_progress`` callback
(ProgressEvent per status change / batch); the connection row remains the
durable snapshot that other readers poll.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from repoindex.config import RepoIndexConfig
from repoindex.db.models import (
    SOURCE_TYPE_MODULE,
    STATUS_ERROR,
    STATUS_READY,
    STATUS_SYNCING,
    Connection,
    Module,
    utc_now,
)
from repoindex.db.repository import Repository
from repoindex.db.vectors import ensure_vec_table, model_to_slug
from repoindex.ingest.architecture import ArchitectureConfig, ArchitectureSynthesizer
from repoindex.ingest.filters import detect_language, detect_module_type, is_eligible, module_name
from repoindex.ingest.github import AuthError, GitHubClient, RateLimitedError
from repoindex.ingest.parsers import MAX_SYMBOLS, parse
from repoindex.ingest.summarizer import ModuleSummarizer, SummarizerConfig

logger = logging.getLogger(__name__)

# Failures that would repeat for every remaining file; they end the run.
_FATAL_FILE_ERRORS = (AuthError, RateLimitedError)


class SyncInProgressError(RuntimeError):
    """Raised when a run is requested for a connection that is already syncing."""


@dataclass
class IndexerConfig:
    batch_size: int = 5
    batch_delay: float = 0.5  # seconds between batches
    max_file_size: int = 100_000  # characters of decoded content
    max_symbols: int = MAX_SYMBOLS


@dataclass
class ProgressEvent:
    """One progress notification.

    Attributes:
        kind: 'status', 'files_found', 'batch_done', 'summarized' or 'finished'.
        connection_id: Connection the run belongs to.
        status: New status (kind='status').
        processed: Files/modules done so far.
        total: Files/modules expected.
        message: Error text when status is 'error'.
    """

    kind: str
    connection_id: str
    status: str | None = None
    processed: int = 0
    total: int = 0
    message: str | None = None


@dataclass
class SyncReport:
    """Outcome of a successful run. For a full index every stored file counts as added."""

    added: int
    removed: int = 0
    unchanged: int = 0
    files_found: int = 0

    @property
    def skipped(self) -> int:
        """Eligible files that were neither stored nor already present."""
        return self.files_found - self.added - self.unchanged


def build_module(
    connection: Connection, path: str, content: str, max_symbols: int = MAX_SYMBOLS
) -> Module:
    """Detect language/type, parse *content* and return an unsaved Module."""
    language = detect_language(path)
    parsed = parse(content, language, max_symbols=max_symbols)
    return Module(
        id=str(uuid.uuid4()),
        connection_id=connection.id,
        workspace_id=connection.workspace_id,
        file_path=path,
        module_name=module_name(path),
        module_type=detect_module_type(path),
        language=language,
        raw_content=content,
        content_hash=hashlib.sha256(content.encode("utf-8")).hexdigest(),
        dependencies=parsed.imports[:max_symbols],
        exports=parsed.exports[:max_symbols],
        functions=parsed.functions,
        classes=parsed.classes,
        types=parsed.types,
        updated_at=utc_now(),
    )


class Indexer:
    """Drive full index and resync runs for repository connections.

    Args:
        repo:        Open Repository instance (sole writer of connection + module rows).
        github:      GitHub client bound to the workspace token.
        summarizer:  Summarization stage.
        synthesizer: Architecture synthesis stage.
        config:      Batching and size limits.
        on_progress: Optional callback receiving ProgressEvent instances.
    """

    def __init__(
        self,
        repo: Repository,
        github: GitHubClient,
        summarizer: ModuleSummarizer,
        synthesizer: ArchitectureSynthesizer,
        config: IndexerConfig | None = None,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> None:
        self._repo = repo
        self._github = github
        self._summarizer = summarizer
        self._synthesizer = synthesizer
        self._config = config or IndexerConfig()
        self._on_progress = on_progress

    @classmethod
    def from_config(
        cls,
        repo: Repository,
        github: GitHubClient,
        cfg: RepoIndexConfig,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> Indexer:
        """Wire all stages from a loaded RepoIndexConfig (creates the vec table if needed)."""
        vec_table = ensure_vec_table(
            repo.conn, model_to_slug(cfg.embedding.model), cfg.embedding.dimensions
        )
        summarizer = ModuleSummarizer(
            repo,
            vec_table,
            SummarizerConfig(
                model=cfg.summary.model,
                max_tokens=cfg.summary.max_tokens,
                content_chars=cfg.summary.content_chars,
                embedding_model=cfg.embedding.model,
                batch_size=cfg.indexer.batch_size,
                batch_delay=cfg.indexer.batch_delay,
            ),
        )
        synthesizer = ArchitectureSynthesizer(
            repo,
            ArchitectureConfig(
                model=cfg.architecture.model, max_tokens=cfg.architecture.max_tokens
            ),
        )
        config = IndexerConfig(
            batch_size=cfg.indexer.batch_size,
            batch_delay=cfg.indexer.batch_delay,
            max_file_size=cfg.indexer.max_file_size,
            max_symbols=cfg.indexer.max_symbols,
        )
        return cls(repo, github, summarizer, synthesizer, config, on_progress)

    # ------------------------------------------------------------------
    # Full index
    # ------------------------------------------------------------------

    async def index_repository(self, connection_id: str, *, force: bool = False) -> SyncReport | None:
        """Index every eligible file of the connection's default branch.

        Returns:
            SyncReport on success, None if the run failed (status=error).

        Raises:
            LookupError: Unknown connection id.
            SyncInProgressError: Connection already syncing and *force* not set.
        """
        connection = self._begin(connection_id, force)
        try:
            paths = await self._list_eligible(connection)
            self._repo.update_connection(connection_id, file_count=len(paths))
            self._emit("files_found", connection_id, total=len(paths))

            indexed = await self._process_files(
                connection, paths, self._repo.upsert_module, track_count=True
            )
            logger.info(
                "Stored %d modules for %s; starting summarization",
                len(indexed),
                connection.repo_name,
            )

            summarized = await self._summarizer.summarize_pending(connection_id)
            self._emit("summarized", connection_id, processed=summarized)
            await self._synthesizer.synthesize(connection_id, connection.workspace_id)

            self._finish(connection_id, module_count=len(indexed))
            logger.info("Indexing complete for %s", connection.repo_name)
            return SyncReport(added=len(indexed), files_found=len(paths))
        except Exception as exc:
            self._fail(connection_id, exc, "indexing")
            return None

    # ------------------------------------------------------------------
    # Resync
    # ------------------------------------------------------------------

    async def resync_repository(self, connection_id: str, *, force: bool = False) -> SyncReport | None:
        """Apply the presence diff between stored modules and the live tree.

        Unchanged paths are not re-fetched, re-parsed or re-summarized.

        Returns:
            SyncReport on success, None if the run failed (status=error).

        Raises:
            LookupError: Unknown connection id.
            SyncInProgressError: Connection already syncing and *force* not set.
        """
        connection = self._begin(connection_id, force)
        try:
            paths = await self._list_eligible(connection)
            live = set(paths)
            stored = self._repo.list_module_paths(connection_id)

            removed_ids = [mid for path, mid in stored.items() if path not in live]
            if removed_ids:
                self._repo.delete_embeddings(removed_ids, SOURCE_TYPE_MODULE)
                self._repo.delete_modules(removed_ids)
                logger.info("Removed %d deleted files", len(removed_ids))

            new_paths = [p for p in paths if p not in stored]
            self._repo.update_connection(connection_id, file_count=len(paths))
            self._emit("files_found", connection_id, total=len(new_paths))

            inserted = await self._process_files(
                connection, new_paths, self._repo.insert_module, track_count=False
            )
            logger.info(
                "Re-sync: %d new files, %d removed", len(inserted), len(removed_ids)
            )

            if inserted:
                summarized = await self._summarizer.summarize_pending(
                    connection_id, only_ids=inserted
                )
                self._emit("summarized", connection_id, processed=summarized)
            await self._synthesizer.synthesize(connection_id, connection.workspace_id)

            self._finish(connection_id, module_count=self._repo.count_modules(connection_id))
            return SyncReport(
                added=len(inserted),
                removed=len(removed_ids),
                unchanged=len(live & set(stored)),
                files_found=len(paths),
            )
        except Exception as exc:
            self._fail(connection_id, exc, "re-sync")
            return None

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _begin(self, connection_id: str, force: bool) -> Connection:
        connection = self._repo.get_connection(connection_id)
        if connection is None:
            raise LookupError(f"Connection not found: {connection_id}")
        if connection.status == STATUS_SYNCING and not force:
            raise SyncInProgressError(
                f"A sync is already in progress for {connection.repo_name}"
            )
        self._repo.update_connection(connection_id, status=STATUS_SYNCING, error_message=None)
        self._emit("status", connection_id, status=STATUS_SYNCING)
        return connection

    def _finish(self, connection_id: str, module_count: int) -> None:
        self._repo.update_connection(
            connection_id,
            status=STATUS_READY,
            last_synced_at=utc_now(),
            module_count=module_count,
        )
        self._emit("status", connection_id, status=STATUS_READY)
        self._emit("finished", connection_id, processed=module_count)

    def _fail(self, connection_id: str, exc: Exception, what: str) -> None:
        logger.error("%s failed for connection %s", what.capitalize(), connection_id, exc_info=exc)
        message = str(exc) or f"Unknown error during {what} ({type(exc).__name__})"
        self._repo.update_connection(connection_id, status=STATUS_ERROR, error_message=message)
        self._emit("status", connection_id, status=STATUS_ERROR, message=message)

    async def _list_eligible(self, connection: Connection) -> list[str]:
        logger.info("Fetching tree for %s@%s", connection.repo_name, connection.default_branch)
        tree = await self._github.fetch_tree(
            connection.owner, connection.repo, connection.default_branch
        )
        paths = [entry.path for entry in tree if is_eligible(entry.path)]
        logger.info("Found %d supported files out of %d total", len(paths), len(tree))
        return paths

    async def _process_files(
        self,
        connection: Connection,
        paths: list[str],
        write: Callable[[Module], None],
        track_count: bool,
    ) -> list[str]:
        """Fetch, parse and write *paths* in throttled batches.

        Returns:
            Ids of the modules written.
        """
        size = self._config.batch_size
        written: list[str] = []
        for start in range(0, len(paths), size):
            batch = paths[start : start + size]
            results = await asyncio.gather(
                *(self._process_file(connection, path, write) for path in batch),
                return_exceptions=True,
            )
            fatal = next((r for r in results if isinstance(r, BaseException)), None)
            written.extend(r for r in results if isinstance(r, str))
            if fatal is not None:
                raise fatal

            if track_count:
                self._repo.update_connection(connection.id, module_count=len(written))
            self._emit(
                "batch_done", connection.id, processed=start + len(batch), total=len(paths)
            )

            if start + size < len(paths):
                await asyncio.sleep(self._config.batch_delay)
        return written

    async def _process_file(
        self, connection: Connection, path: str, write: Callable[[Module], None]
    ) -> str | None:
        """Index one file. Returns the module id, or None if the file was skipped."""
        try:
            content = await self._github.fetch_file_content(
                connection.owner, connection.repo, path
            )
            if len(content) > self._config.max_file_size:
                logger.info("Skipping large file: %s (%d chars)", path, len(content))
                return None
            module = build_module(connection, path, content, self._config.max_symbols)
            write(module)
            return module.id
        except _FATAL_FILE_ERRORS:
            raise
        except Exception:
            logger.warning("Failed to process %s", path, exc_info=True)
            return None

    def _emit(self, kind: str, connection_id: str, **fields) -> None:
        if self._on_progress is not None:
            self._on_progress(ProgressEvent(kind=kind, connection_id=connection_id, **fields))
