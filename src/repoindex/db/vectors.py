"""sqlite-vec tables of the embedding store.

Each embedding model gets its own vec0 table, ``vec_embeddings_<slug>``,
because vector dimensions differ between models. A vector row's rowid is
the ``embeddings.id`` of the record it belongs to; that is the only link
between the two tables, so every write and delete goes through the helpers
below.
"""

from __future__ import annotations

import json
import re
import sqlite3
from collections.abc import Sequence

VEC_TABLE_PREFIX = "vec_embeddings_"


def model_to_slug(model: str) -> str:
    """'openai/text-embedding-3-small' → 'openai_text_embedding_3_small'."""
    return re.sub(r"[^a-z0-9]", "_", model.lower())


def vec_table_name(model_slug: str) -> str:
    return f"{VEC_TABLE_PREFIX}{model_slug}"


def ensure_vec_table(conn: sqlite3.Connection, model_slug: str, dimensions: int) -> str:
    """Create the vec0 table for *model_slug* if needed and return its name.

    Vec tables live outside the migration list: which ones exist depends on
    the embedding models a project has been configured with.

    Raises:
        ValueError: *model_slug* is not a sanitized slug, or *dimensions* < 1.
    """
    if not re.fullmatch(r"[a-z0-9_]+", model_slug):
        raise ValueError(
            f"Invalid model_slug '{model_slug}'; pass it through model_to_slug() first."
        )
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    table = vec_table_name(model_slug)
    if table not in list_vec_tables(conn):
        conn.execute(f"CREATE VIRTUAL TABLE {table} USING vec0(embedding float[{dimensions}])")
        conn.commit()
    return table


def list_vec_tables(conn: sqlite3.Connection) -> list[str]:
    """Names of all vec0 tables, excluding the shadow tables vec0 creates."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name LIKE ? "
        "AND sql LIKE 'CREATE VIRTUAL TABLE%' ORDER BY name",
        (f"{VEC_TABLE_PREFIX}%",),
    ).fetchall()
    return [r[0] for r in rows]


def write_vector(
    conn: sqlite3.Connection, table: str, embedding_id: int, vector: Sequence[float]
) -> None:
    """Store *vector* for *embedding_id*, replacing any previous one.

    Does not commit. A dimension mismatch raises sqlite3.OperationalError.
    """
    # vec0 has no upsert
    conn.execute(f"DELETE FROM {table} WHERE rowid = ?", (embedding_id,))
    conn.execute(
        f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
        (embedding_id, json.dumps(list(vector))),
    )


def delete_vectors(conn: sqlite3.Connection, embedding_ids: Sequence[int]) -> None:
    """Remove the vectors of *embedding_ids* from every vec table. Does not commit."""
    if not embedding_ids:
        return
    placeholders = ",".join("?" * len(embedding_ids))
    for table in list_vec_tables(conn):
        conn.execute(
            f"DELETE FROM [{table}] WHERE rowid IN ({placeholders})",  # noqa: S608
            list(embedding_ids),
        )
