"""Opening the index database (.repoindex.db).

One file holds every connection of every workspace, the module rows and the
embedding store. A sync run writes through one connection while `repoindex
status` may read the same file from another process, so connections use WAL
and wait on a busy database instead of failing.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

from repoindex.db.schema import initialize

# Milliseconds a reader/writer waits for a lock held by a running sync.
BUSY_TIMEOUT_MS = 5_000


class Database:
    """Handle on an index file; vec0 tables require the sqlite-vec extension."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Return a raw connection with sqlite-vec loaded (schema untouched)."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.enable_load_extension(True)
        sqlite_vec.load(conn)
        conn.enable_load_extension(False)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
        return conn

    def open(self) -> sqlite3.Connection:
        """Connect and bring the schema up to date. The file is created if missing."""
        conn = self.connect()
        initialize(conn)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.open()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
