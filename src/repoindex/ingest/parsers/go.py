"""Go scanner.

Public surface: identifiers whose first letter is upper case.
"""

from __future__ import annotations

import re

from repoindex.ingest.parsers.base import BaseScanner, ParsedModule

_QUOTED_RE = re.compile(r"\"([^\"]+)\"")
_SINGLE_IMPORT_RE = re.compile(r"^import\s+(?:[\w.]+\s+)?\"([^\"]+)\"")
_FUNC_RE = re.compile(r"^func\s+(\w+)")
_METHOD_RE = re.compile(r"^func\s+\([^)]+\)\s+(\w+)")
_TYPE_RE = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+(struct|interface)?")


class GoScanner(BaseScanner):
    language = "go"

    def scan(self, lines: list[str], result: ParsedModule) -> None:
        in_import_block = False

        for line in lines:
            trimmed = line.strip()

            if trimmed == "import (":
                in_import_block = True
                continue
            if in_import_block:
                if trimmed == ")":
                    in_import_block = False
                elif trimmed and not trimmed.startswith("//"):
                    m = _QUOTED_RE.search(trimmed)
                    pkg = m.group(1) if m else trimmed.replace('"', "").strip()
                    result.imports.append(pkg)
                continue

            if m := _SINGLE_IMPORT_RE.match(trimmed):
                result.imports.append(m.group(1))
            elif m := _FUNC_RE.match(trimmed):
                self._record(m.group(1), result.functions, result)
            elif m := _METHOD_RE.match(trimmed):
                self._record(m.group(1), result.functions, result)
            elif m := _TYPE_RE.match(trimmed):
                name, kind = m.groups()
                self._record(name, result.classes if kind == "struct" else result.types, result)

    @staticmethod
    def _record(name: str, bucket: list[str], result: ParsedModule) -> None:
        bucket.append(name)
        if name[0].isupper():
            result.exports.append(name)
