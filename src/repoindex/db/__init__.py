"""repoindex database layer."""

from repoindex.db.connection import Database
from repoindex.db.migrations import MIGRATIONS, run_migrations
from repoindex.db.repository import Repository
from repoindex.db.schema import initialize
from repoindex.db.vectors import ensure_vec_table, list_vec_tables, model_to_slug, vec_table_name

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "list_vec_tables",
    "model_to_slug",
    "vec_table_name",
]
