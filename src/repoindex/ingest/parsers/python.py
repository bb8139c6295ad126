"""Python scanner.

Only module-level (column 0) ``def`` / ``class`` are recorded. Public surface:
every recorded name that does not start with an underscore.
"""

from __future__ import annotations

import re

from repoindex.ingest.parsers.base import BaseScanner, ParsedModule

_FROM_IMPORT_RE = re.compile(r"^from\s+(\S+)\s+import\s+(.+)")
_IMPORT_RE = re.compile(r"^import\s+(.+)")
_DEF_RE = re.compile(r"^(?:async\s+)?def\s+(\w+)")
_CLASS_RE = re.compile(r"^class\s+(\w+)")
_TYPE_ALIAS_RE = re.compile(r"^type\s+(\w+)\s*(?:\[[^\]]*\])?\s*=")


class PythonScanner(BaseScanner):
    language = "python"

    def scan(self, lines: list[str], result: ParsedModule) -> None:
        for line in lines:
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("#"):
                continue

            if m := _FROM_IMPORT_RE.match(trimmed):
                module = m.group(1)
                names = self._split_names(_strip_comment(m.group(2)).strip("()\\ "))
                result.imports.extend(f"{n} from {module}" for n in names)
                continue

            if m := _IMPORT_RE.match(trimmed):
                result.imports.extend(self._split_names(_strip_comment(m.group(1))))
                continue

            # Everything below must start at column 0.
            if m := _DEF_RE.match(line):
                self._record(m.group(1), result.functions, result)
            elif m := _CLASS_RE.match(line):
                self._record(m.group(1), result.classes, result)
            elif m := _TYPE_ALIAS_RE.match(line):
                self._record(m.group(1), result.types, result)

    @staticmethod
    def _record(name: str, bucket: list[str], result: ParsedModule) -> None:
        bucket.append(name)
        if not name.startswith("_"):
            result.exports.append(name)


def _strip_comment(text: str) -> str:
    return text.split("#", 1)[0]
