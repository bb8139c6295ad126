"""Structural parser — approximate per-language line scanners.

``parse(content, language)`` dispatches through a registry of scanners keyed
by language name. Unsupported languages (or None) yield an empty result.
"""

from __future__ import annotations

from repoindex.ingest.parsers.base import MAX_SYMBOLS, BaseScanner, ParsedModule
from repoindex.ingest.parsers.go import GoScanner
from repoindex.ingest.parsers.java import JavaScanner
from repoindex.ingest.parsers.python import PythonScanner
from repoindex.ingest.parsers.rust import RustScanner
from repoindex.ingest.parsers.typescript import TypeScriptScanner

_TYPESCRIPT = TypeScriptScanner()

SCANNERS: dict[str, BaseScanner] = {
    "typescript": _TYPESCRIPT,
    "javascript": _TYPESCRIPT,
    "python": PythonScanner(),
    "go": GoScanner(),
    "rust": RustScanner(),
    "java": JavaScanner(),
}


def parse(content: str, language: str | None, max_symbols: int = MAX_SYMBOLS) -> ParsedModule:
    """Extract exports, imports, functions, classes and types from *content*."""
    scanner = SCANNERS.get(language or "")
    if scanner is None:
        return ParsedModule()
    return scanner.parse(content, max_symbols=max_symbols)


__all__ = [
    "MAX_SYMBOLS",
    "SCANNERS",
    "BaseScanner",
    "GoScanner",
    "JavaScanner",
    "ParsedModule",
    "PythonScanner",
    "RustScanner",
    "TypeScriptScanner",
    "parse",
]
