"""Rust scanner.

Public surface: items declared with ``pub`` (including ``pub(crate)`` and
other restricted forms).
"""

from __future__ import annotations

import re

from repoindex.ingest.parsers.base import BaseScanner, ParsedModule

_VIS = r"(pub(?:\s*\([^)]*\))?\s+)?"

_USE_RE = re.compile(rf"^{_VIS}use\s+([^;]+);?")
_EXTERN_CRATE_RE = re.compile(r"^extern\s+crate\s+(\w+)")
_FN_RE = re.compile(
    rf"^{_VIS}(?:(?:const|async|unsafe|default)\s+)*(?:extern\s+\"[^\"]*\"\s+)?fn\s+(\w+)"
)
_STRUCT_RE = re.compile(rf"^{_VIS}(?:struct|union)\s+(\w+)")
_TYPE_RE = re.compile(rf"^{_VIS}(?:unsafe\s+)?(?:enum|trait|type)\s+(\w+)")


class RustScanner(BaseScanner):
    language = "rust"

    def scan(self, lines: list[str], result: ParsedModule) -> None:
        for line in lines:
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("//"):
                continue

            if m := _USE_RE.match(trimmed):
                result.imports.append(" ".join(m.group(2).split()))
            elif m := _EXTERN_CRATE_RE.match(trimmed):
                result.imports.append(m.group(1))
            elif m := _FN_RE.match(trimmed):
                self._record(m, result.functions, result)
            elif m := _STRUCT_RE.match(trimmed):
                self._record(m, result.classes, result)
            elif m := _TYPE_RE.match(trimmed):
                self._record(m, result.types, result)

    @staticmethod
    def _record(m: re.Match[str], bucket: list[str], result: ParsedModule) -> None:
        visibility, name = m.group(1), m.group(2)
        bucket.append(name)
        if visibility:
            result.exports.append(name)
