"""Domain models for the repoindex database layer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone

# Connection lifecycle states.
STATUS_PENDING = "pending"
STATUS_SYNCING = "syncing"
STATUS_READY = "ready"
STATUS_ERROR = "error"
STATUSES = (STATUS_PENDING, STATUS_SYNCING, STATUS_READY, STATUS_ERROR)

MODULE_TYPES = ("component", "service", "model", "route", "utility", "config", "test")

SOURCE_TYPE_MODULE = "codebase_module"
ARTIFACT_ARCHITECTURE = "architecture_summary"


@dataclass
class Connection:
    id: str
    workspace_id: str
    repo_url: str
    repo_name: str  # owner/repo
    default_branch: str = "main"
    status: str = STATUS_PENDING
    file_count: int = 0
    module_count: int = 0
    last_synced_at: str | None = None
    error_message: str | None = None
    created_at: str | None = None

    @property
    def owner(self) -> str:
        return self.repo_name.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repo_name.split("/", 1)[1]


@dataclass
class Module:
    """One indexed file of a connection, unique per (connection_id, file_path)."""

    id: str
    connection_id: str
    workspace_id: str
    file_path: str
    module_name: str | None = None
    module_type: str | None = None
    language: str | None = None
    raw_content: str | None = None
    content_hash: str | None = None
    dependencies: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    summary: str | None = None
    embedding: list[float] | None = None
    updated_at: str | None = None

    @property
    def structure_json(self) -> str:
        return json.dumps(
            {"functions": self.functions, "classes": self.classes, "types": self.types}
        )


@dataclass
class EmbeddingRecord:
    workspace_id: str
    source_id: str
    source_type: str
    chunk_text: str
    chunk_index: int = 0
    metadata: str = field(default_factory=lambda: "{}")
    created_at: str | None = None
    id: int | None = None  # set after insert; doubles as the vec rowid

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)


@dataclass
class Artifact:
    id: str
    workspace_id: str
    type: str
    title: str
    content: str
    status: str = "active"
    created_at: str | None = None
    updated_at: str | None = None


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string (stored in TEXT timestamp columns)."""
    return datetime.now(timezone.utc).isoformat()
