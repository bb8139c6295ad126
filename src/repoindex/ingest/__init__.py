"""Repoindex ingest pipeline — GitHub fetch, parsers, summarizer, indexer."""

from repoindex.ingest.architecture import ArchitectureSynthesizer
from repoindex.ingest.github import GitHubClient
from repoindex.ingest.indexer import Indexer, ProgressEvent, SyncInProgressError, SyncReport
from repoindex.ingest.summarizer import ModuleSummarizer

__all__ = [
    "ArchitectureSynthesizer",
    "GitHubClient",
    "Indexer",
    "ModuleSummarizer",
    "ProgressEvent",
    "SyncInProgressError",
    "SyncReport",
]
