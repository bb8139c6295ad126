"""Base scanner interface for the structural parser.

Scanners are deliberately approximate: one pass over the lines of a file,
matching declaration-introducing keywords by line-prefix regexes. Nested or
multi-line declarations may be missed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

MAX_SYMBOLS = 50


@dataclass
class ParsedModule:
    """Public surface and structural facts of one source file, in discovery order."""

    exports: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)


class BaseScanner(ABC):
    """Abstract base for all per-language scanners.

    Subclasses implement ``scan()``; ``parse()`` handles line splitting and
    the export/import caps.
    """

    language: str = ""

    def parse(self, content: str, max_symbols: int = MAX_SYMBOLS) -> ParsedModule:
        """Scan *content* and return its ParsedModule.

        Exports and imports are truncated to *max_symbols* entries.
        """
        result = ParsedModule()
        self.scan(content.splitlines(), result)
        result.exports = result.exports[:max_symbols]
        result.imports = result.imports[:max_symbols]
        return result

    @abstractmethod
    def scan(self, lines: list[str], result: ParsedModule) -> None:
        """Append every recognised declaration in *lines* to *result*."""

    @staticmethod
    def _split_names(text: str) -> list[str]:
        """Split a comma-separated name list, dropping ``as`` aliases and blanks."""
        names: list[str] = []
        for part in text.split(","):
            name = part.strip().split(" as ")[0].strip()
            if name:
                names.append(name)
        return names
