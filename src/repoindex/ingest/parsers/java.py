"""Java scanner.

Public surface: declarations carrying the ``public`` modifier. Constructors
and implicitly public interface members are not recorded as exports.
"""

from __future__ import annotations

import re

from repoindex.ingest.parsers.base import BaseScanner, ParsedModule

_MODIFIERS = (
    "public", "protected", "private", "static", "final", "abstract", "sealed",
    "non-sealed", "strictfp", "default", "synchronized", "native", "transient", "volatile",
)
_MODS = r"((?:(?:" + "|".join(re.escape(m) for m in _MODIFIERS) + r")\s+)*)"

_IMPORT_RE = re.compile(r"^import\s+(?:static\s+)?([\w.]+(?:\.\*)?)\s*;")
_ANNOTATION_RE = re.compile(r"^@(?!interface\b)\w+(?:\([^)]*\))?\s*")
_TYPE_DECL_RE = re.compile(rf"^{_MODS}(class|interface|enum|record|@interface)\s+(\w+)")
_METHOD_RE = re.compile(
    rf"^{_MODS}(?:<[^>]+>\s+)?([\w.$\[\]]+(?:<.*>)?(?:\[\])*)\s+(\w+)\s*\([^;]*$"
)

# Words that can precede "name(" without declaring a method.
_NOT_A_TYPE = frozenset(
    ["return", "new", "throw", "else", "case", "yield", "await", "assert", *_MODIFIERS]
)


class JavaScanner(BaseScanner):
    language = "java"

    def scan(self, lines: list[str], result: ParsedModule) -> None:
        for line in lines:
            trimmed = line.strip()
            if not trimmed or trimmed.startswith(("//", "*", "/*")):
                continue

            if m := _IMPORT_RE.match(trimmed):
                result.imports.append(m.group(1))
                continue

            # Strip leading annotations: "@Override public void run() {"
            while m := _ANNOTATION_RE.match(trimmed):
                trimmed = trimmed[m.end():]

            if m := _TYPE_DECL_RE.match(trimmed):
                modifiers, kind, name = m.groups()
                bucket = result.classes if kind in ("class", "record") else result.types
                self._record(name, modifiers, bucket, result)
            elif m := _METHOD_RE.match(trimmed):
                modifiers, return_type, name = m.groups()
                if return_type in _NOT_A_TYPE:
                    continue
                self._record(name, modifiers, result.functions, result)

    @staticmethod
    def _record(name: str, modifiers: str, bucket: list[str], result: ParsedModule) -> None:
        bucket.append(name)
        if "public" in modifiers.split():
            result.exports.append(name)
