"""Repository pattern for all repoindex database operations.

Single interface for: connections, modules, the shared embedding store
(rows + sqlite-vec vectors) and the per-workspace architecture summary.
Vec tables are created by ensure_vec_table(); vector writes go through repoindex.db.vectors.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterable

from repoindex.db.models import (
    ARTIFACT_ARCHITECTURE,
    SOURCE_TYPE_MODULE,
    Artifact,
    Connection,
    EmbeddingRecord,
    Module,
    utc_now,
)
from repoindex.db.vectors import delete_vectors, write_vector

_CONNECTION_COLUMNS = (
    "id, workspace_id, repo_url, repo_name, default_branch, status, file_count, "
    "module_count, last_synced_at, error_message, created_at"
)
_MODULE_COLUMNS = (
    "id, connection_id, workspace_id, file_path, module_name, module_type, language, "
    "raw_content, content_hash, dependencies, exports, structure, summary, embedding, "
    "updated_at"
)
_EMBEDDING_COLUMNS = (
    "id, workspace_id, source_id, source_type, chunk_index, chunk_text, metadata, created_at"
)

# Connection columns that update_connection() may write.
_UPDATABLE_CONNECTION_FIELDS = frozenset(
    ["status", "file_count", "module_count", "last_synced_at", "error_message", "default_branch"]
)


class Repository:
    """Data access layer for all repoindex database entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see repoindex.db.schema.initialize).
        """
        self._conn = conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def add_connection(self, connection: Connection) -> None:
        """Insert a new connection record (status as given, normally pending).

        Raises:
            sqlite3.IntegrityError: If the workspace already links this repo.
        """
        self._conn.execute(
            """
            INSERT INTO connections (id, workspace_id, repo_url, repo_name, default_branch, status)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                connection.id,
                connection.workspace_id,
                connection.repo_url,
                connection.repo_name,
                connection.default_branch,
                connection.status,
            ),
        )
        self._conn.commit()

    def get_connection(self, connection_id: str) -> Connection | None:
        row = self._conn.execute(
            f"SELECT {_CONNECTION_COLUMNS} FROM connections WHERE id = ?", (connection_id,)
        ).fetchone()
        return _row_to_connection(row) if row else None

    def get_connection_by_repo(self, workspace_id: str, repo_name: str) -> Connection | None:
        row = self._conn.execute(
            f"SELECT {_CONNECTION_COLUMNS} FROM connections WHERE workspace_id = ? AND repo_name = ?",
            (workspace_id, repo_name),
        ).fetchone()
        return _row_to_connection(row) if row else None

    def list_connections(self, workspace_id: str | None = None) -> list[Connection]:
        """Return connections (optionally for one workspace), oldest first."""
        if workspace_id is None:
            rows = self._conn.execute(
                f"SELECT {_CONNECTION_COLUMNS} FROM connections ORDER BY created_at, rowid"
            ).fetchall()
        else:
            rows = self._conn.execute(
                f"SELECT {_CONNECTION_COLUMNS} FROM connections WHERE workspace_id = ? "
                "ORDER BY created_at, rowid",
                (workspace_id,),
            ).fetchall()
        return [_row_to_connection(r) for r in rows]

    def update_connection(self, connection_id: str, **fields: object) -> None:
        """Update status / counter columns of a connection.

        Args:
            connection_id: ID of the connection to update.
            **fields: Column values; only status, counters, timestamps,
                error_message and default_branch are accepted.

        Raises:
            ValueError: If an unknown column is passed.
        """
        if not fields:
            return
        unknown = set(fields) - _UPDATABLE_CONNECTION_FIELDS
        if unknown:
            raise ValueError(f"Cannot update connection column(s): {sorted(unknown)}")
        assignments = ", ".join(f"{name} = ?" for name in fields)
        self._conn.execute(
            f"UPDATE connections SET {assignments} WHERE id = ?",  # noqa: S608
            (*fields.values(), connection_id),
        )
        self._conn.commit()

    def delete_connection(self, connection_id: str) -> int:
        """Delete a connection, its modules and their embeddings.

        Returns:
            Number of module rows removed.
        """
        module_ids = list(self.list_module_paths(connection_id).values())
        self.delete_embeddings(module_ids)
        cur = self._conn.execute("DELETE FROM modules WHERE connection_id = ?", (connection_id,))
        removed = cur.rowcount
        self._conn.execute("DELETE FROM connections WHERE id = ?", (connection_id,))
        self._conn.commit()
        return removed

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def upsert_module(self, module: Module) -> None:
        """Insert or update a module keyed by (connection_id, file_path).

        On conflict the existing row keeps its id, summary and embedding;
        everything derived from the file content is replaced.
        """
        self._conn.execute(
            """
            INSERT INTO modules (id, connection_id, workspace_id, file_path, module_name,
                                 module_type, language, raw_content, content_hash,
                                 dependencies, exports, structure, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(connection_id, file_path) DO UPDATE SET
                module_name  = excluded.module_name,
                module_type  = excluded.module_type,
                language     = excluded.language,
                raw_content  = excluded.raw_content,
                content_hash = excluded.content_hash,
                dependencies = excluded.dependencies,
                exports      = excluded.exports,
                structure    = excluded.structure,
                updated_at   = excluded.updated_at
            """,
            _module_params(module),
        )
        self._conn.commit()

    def insert_module(self, module: Module) -> None:
        """Insert a new module row.

        Raises:
            sqlite3.IntegrityError: If (connection_id, file_path) already exists.
        """
        self._conn.execute(
            """
            INSERT INTO modules (id, connection_id, workspace_id, file_path, module_name,
                                 module_type, language, raw_content, content_hash,
                                 dependencies, exports, structure, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            _module_params(module),
        )
        self._conn.commit()

    def get_module(self, module_id: str) -> Module | None:
        row = self._conn.execute(
            f"SELECT {_MODULE_COLUMNS} FROM modules WHERE id = ?", (module_id,)
        ).fetchone()
        return _row_to_module(row) if row else None

    def get_module_by_path(self, connection_id: str, file_path: str) -> Module | None:
        row = self._conn.execute(
            f"SELECT {_MODULE_COLUMNS} FROM modules WHERE connection_id = ? AND file_path = ?",
            (connection_id, file_path),
        ).fetchone()
        return _row_to_module(row) if row else None

    def list_modules(
        self,
        connection_id: str,
        module_type: str | None = None,
        query: str | None = None,
    ) -> list[Module]:
        """Return modules of a connection ordered by file path.

        Args:
            connection_id: Connection to list.
            module_type: Restrict to one module type; ``"unknown"`` selects
                modules without a type.
            query: Case-insensitive substring matched against path or summary.
        """
        sql = f"SELECT {_MODULE_COLUMNS} FROM modules WHERE connection_id = ?"
        params: list[object] = [connection_id]
        if module_type == "unknown":
            sql += " AND module_type IS NULL"
        elif module_type is not None:
            sql += " AND module_type = ?"
            params.append(module_type)
        if query:
            pattern = f"%{_escape_like(query.lower())}%"
            sql += (
                " AND (lower(file_path) LIKE ? ESCAPE '\\'"
                " OR lower(coalesce(summary, '')) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern])
        sql += " ORDER BY file_path"
        return [_row_to_module(r) for r in self._conn.execute(sql, params).fetchall()]

    def list_module_paths(self, connection_id: str) -> dict[str, str]:
        """Return ``{file_path: module_id}`` for every module of a connection."""
        rows = self._conn.execute(
            "SELECT file_path, id FROM modules WHERE connection_id = ?", (connection_id,)
        ).fetchall()
        return {r["file_path"]: r["id"] for r in rows}

    def list_unsummarized(
        self, connection_id: str, only_ids: Iterable[str] | None = None
    ) -> list[Module]:
        """Return modules with no summary, optionally restricted to *only_ids*."""
        modules = [
            _row_to_module(r)
            for r in self._conn.execute(
                f"SELECT {_MODULE_COLUMNS} FROM modules "
                "WHERE connection_id = ? AND summary IS NULL ORDER BY file_path",
                (connection_id,),
            ).fetchall()
        ]
        if only_ids is not None:
            wanted = set(only_ids)
            modules = [m for m in modules if m.id in wanted]
        return modules

    def list_summarized(self, connection_id: str) -> list[Module]:
        rows = self._conn.execute(
            f"SELECT {_MODULE_COLUMNS} FROM modules "
            "WHERE connection_id = ? AND summary IS NOT NULL ORDER BY file_path",
            (connection_id,),
        ).fetchall()
        return [_row_to_module(r) for r in rows]

    def count_modules(self, connection_id: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM modules WHERE connection_id = ?", (connection_id,)
        ).fetchone()[0]

    def set_module_summary(self, module_id: str, summary: str) -> None:
        self._conn.execute("UPDATE modules SET summary = ? WHERE id = ?", (summary, module_id))
        self._conn.commit()

    def set_module_embedding(self, module_id: str, embedding: list[float]) -> None:
        self._conn.execute(
            "UPDATE modules SET embedding = ? WHERE id = ?", (json.dumps(embedding), module_id)
        )
        self._conn.commit()

    def delete_modules(self, module_ids: list[str]) -> int:
        """Delete modules by id. Embeddings are removed separately (delete_embeddings)."""
        if not module_ids:
            return 0
        placeholders = ",".join("?" * len(module_ids))
        cur = self._conn.execute(
            f"DELETE FROM modules WHERE id IN ({placeholders})", module_ids  # noqa: S608
        )
        self._conn.commit()
        return cur.rowcount

    # ------------------------------------------------------------------
    # Embedding store
    # ------------------------------------------------------------------

    def upsert_embedding(
        self, record: EmbeddingRecord, vec_table: str, vector: list[float]
    ) -> int:
        """Upsert an embedding row keyed by (source_id, source_type, chunk_index).

        The vec row shares the embedding row's id and is replaced in place.
        Row and vector are written in one transaction: if the vector is
        rejected (e.g. wrong dimensions) neither is stored and the previous
        row, if any, is left as it was.

        Returns the embedding id.

        Raises:
            sqlite3.Error: The write failed; the transaction was rolled back.
        """
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO embeddings (workspace_id, source_id, source_type, chunk_index,
                                        chunk_text, metadata)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(source_id, source_type, chunk_index) DO UPDATE SET
                    workspace_id = excluded.workspace_id,
                    chunk_text   = excluded.chunk_text,
                    metadata     = excluded.metadata
                """,
                (
                    record.workspace_id,
                    record.source_id,
                    record.source_type,
                    record.chunk_index,
                    record.chunk_text,
                    record.metadata,
                ),
            )
            embedding_id = self._conn.execute(
                "SELECT id FROM embeddings "
                "WHERE source_id = ? AND source_type = ? AND chunk_index = ?",
                (record.source_id, record.source_type, record.chunk_index),
            ).fetchone()[0]
            write_vector(self._conn, vec_table, embedding_id, vector)
        record.id = embedding_id
        return embedding_id

    def get_embedding(
        self, source_id: str, source_type: str, chunk_index: int = 0
    ) -> EmbeddingRecord | None:
        row = self._conn.execute(
            f"SELECT {_EMBEDDING_COLUMNS} FROM embeddings "
            "WHERE source_id = ? AND source_type = ? AND chunk_index = ?",
            (source_id, source_type, chunk_index),
        ).fetchone()
        return _row_to_embedding(row) if row else None

    def count_embeddings(self, source_type: str | None = None) -> int:
        if source_type is None:
            return self._conn.execute("SELECT COUNT(*) FROM embeddings").fetchone()[0]
        return self._conn.execute(
            "SELECT COUNT(*) FROM embeddings WHERE source_type = ?", (source_type,)
        ).fetchone()[0]

    def delete_embeddings(self, source_ids: list[str], source_type: str | None = None) -> int:
        """Delete embedding rows (+ vectors in every vec table) for *source_ids*.

        Args:
            source_ids: Source ids whose embeddings should be removed.
            source_type: Restrict to one source type (default: module embeddings).

        Returns:
            Number of embedding rows deleted.
        """
        if not source_ids:
            return 0
        source_type = source_type or SOURCE_TYPE_MODULE
        placeholders = ",".join("?" * len(source_ids))
        ids = [
            r[0]
            for r in self._conn.execute(
                f"SELECT id FROM embeddings WHERE source_type = ? AND source_id IN ({placeholders})",  # noqa: S608
                (source_type, *source_ids),
            ).fetchall()
        ]
        if not ids:
            return 0

        id_placeholders = ",".join("?" * len(ids))
        delete_vectors(self._conn, ids)
        cur = self._conn.execute(
            f"DELETE FROM embeddings WHERE id IN ({id_placeholders})", ids  # noqa: S608
        )
        self._conn.commit()
        return cur.rowcount

    def search_embeddings(
        self,
        vec_table: str,
        vector: list[float],
        workspace_id: str,
        source_types: list[str] | None = None,
        limit: int = 10,
    ) -> list[tuple[EmbeddingRecord, float]]:
        """Nearest-neighbour search. Returns (record, distance) sorted by distance.

        The KNN query over-fetches and then filters by workspace / source type.
        """
        vec_rows = self._conn.execute(
            f"SELECT rowid, distance FROM {vec_table} WHERE embedding MATCH ? "
            "ORDER BY distance LIMIT ?",
            (json.dumps(vector), limit * 5),
        ).fetchall()

        results: list[tuple[EmbeddingRecord, float]] = []
        for vec_row in vec_rows:
            row = self._conn.execute(
                f"SELECT {_EMBEDDING_COLUMNS} FROM embeddings WHERE id = ?", (vec_row["rowid"],)
            ).fetchone()
            if row is None or row["workspace_id"] != workspace_id:
                continue
            if source_types and row["source_type"] not in source_types:
                continue
            results.append((_row_to_embedding(row), vec_row["distance"]))
            if len(results) >= limit:
                break
        return results

    # ------------------------------------------------------------------
    # Architecture summary
    # ------------------------------------------------------------------

    def get_architecture_summary(self, workspace_id: str) -> Artifact | None:
        row = self._conn.execute(
            "SELECT id, workspace_id, type, title, content, status, created_at, updated_at "
            "FROM artifacts WHERE workspace_id = ? AND type = ?",
            (workspace_id, ARTIFACT_ARCHITECTURE),
        ).fetchone()
        return _row_to_artifact(row) if row else None

    def upsert_architecture_summary(
        self, workspace_id: str, content: str, title: str = "Codebase Architecture"
    ) -> Artifact:
        """Update the workspace's architecture summary in place, or create it."""
        existing = self.get_architecture_summary(workspace_id)
        if existing is not None:
            artifact_id = existing.id
            self._conn.execute(
                "UPDATE artifacts SET content = ?, updated_at = datetime('now') WHERE id = ?",
                (content, artifact_id),
            )
        else:
            artifact_id = str(uuid.uuid4())
            self._conn.execute(
                "INSERT INTO artifacts (id, workspace_id, type, title, content, status) "
                "VALUES (?, ?, ?, ?, ?, 'active')",
                (artifact_id, workspace_id, ARTIFACT_ARCHITECTURE, title, content),
            )
        self._conn.commit()

        row = self._conn.execute(
            "SELECT id, workspace_id, type, title, content, status, created_at, updated_at "
            "FROM artifacts WHERE id = ?",
            (artifact_id,),
        ).fetchone()
        if row is None:
            raise RuntimeError(f"Architecture summary {artifact_id} vanished after write")
        return _row_to_artifact(row)


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _module_params(module: Module) -> tuple:
    return (
        module.id,
        module.connection_id,
        module.workspace_id,
        module.file_path,
        module.module_name,
        module.module_type,
        module.language,
        module.raw_content,
        module.content_hash,
        json.dumps(module.dependencies),
        json.dumps(module.exports),
        module.structure_json,
        module.updated_at or utc_now(),
    )


def _row_to_connection(row: sqlite3.Row) -> Connection:
    return Connection(
        id=row["id"],
        workspace_id=row["workspace_id"],
        repo_url=row["repo_url"],
        repo_name=row["repo_name"],
        default_branch=row["default_branch"],
        status=row["status"],
        file_count=row["file_count"],
        module_count=row["module_count"],
        last_synced_at=row["last_synced_at"],
        error_message=row["error_message"],
        created_at=row["created_at"],
    )


def _row_to_module(row: sqlite3.Row) -> Module:
    structure = json.loads(row["structure"] or "{}")
    return Module(
        id=row["id"],
        connection_id=row["connection_id"],
        workspace_id=row["workspace_id"],
        file_path=row["file_path"],
        module_name=row["module_name"],
        module_type=row["module_type"],
        language=row["language"],
        raw_content=row["raw_content"],
        content_hash=row["content_hash"],
        dependencies=json.loads(row["dependencies"] or "[]"),
        exports=json.loads(row["exports"] or "[]"),
        functions=structure.get("functions", []),
        classes=structure.get("classes", []),
        types=structure.get("types", []),
        summary=row["summary"],
        embedding=json.loads(row["embedding"]) if row["embedding"] else None,
        updated_at=row["updated_at"],
    )


def _row_to_embedding(row: sqlite3.Row) -> EmbeddingRecord:
    return EmbeddingRecord(
        id=row["id"],
        workspace_id=row["workspace_id"],
        source_id=row["source_id"],
        source_type=row["source_type"],
        chunk_index=row["chunk_index"],
        chunk_text=row["chunk_text"],
        metadata=row["metadata"],
        created_at=row["created_at"],
    )


def _row_to_artifact(row: sqlite3.Row) -> Artifact:
    return Artifact(
        id=row["id"],
        workspace_id=row["workspace_id"],
        type=row["type"],
        title=row["title"],
        content=row["content"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
