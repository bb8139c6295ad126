"""TypeScript / JavaScript scanner.

Public surface: declarations carrying the ``export`` keyword.
"""

from __future__ import annotations

import re

from repoindex.ingest.parsers.base import BaseScanner, ParsedModule

_IMPORT_RE = re.compile(
    r"^import\s+(?:type\s+)?(?:\{([^}]+)\}|\*\s+as\s+(\w+)|(\w+)).*from\s+[\"']([^\"']+)[\"']"
)
_SIDE_EFFECT_IMPORT_RE = re.compile(r"^import\s+[\"']([^\"']+)[\"']")
_REQUIRE_RE = re.compile(
    r"^(?:const|let|var)\s+(\{[^}]+\}|\w+)\s*=\s*require\(\s*[\"']([^\"']+)[\"']\s*\)"
)

_EXPORT_FUNCTION_RE = re.compile(r"^export\s+(?:async\s+)?function\*?\s+(\w+)")
_EXPORT_CLASS_RE = re.compile(r"^export\s+(?:abstract\s+)?class\s+(\w+)")
_EXPORT_ENUM_RE = re.compile(r"^export\s+(?:const\s+)?enum\s+(\w+)")
_EXPORT_CONST_RE = re.compile(r"^export\s+(?:const|let|var)\s+(\w+)")
_EXPORT_TYPE_RE = re.compile(r"^export\s+(?:declare\s+)?(?:type|interface)\s+(\w+)")
_EXPORT_LIST_RE = re.compile(r"^export\s+(?:type\s+)?\{([^}]*)\}")
_EXPORT_DEFAULT_NAMED_RE = re.compile(r"^export\s+default\s+(?:async\s+)?(?:function|class)\s+(\w+)")

_FUNCTION_RE = re.compile(r"^(?:async\s+)?function\*?\s+(\w+)")
_CLASS_RE = re.compile(r"^(?:abstract\s+)?class\s+(\w+)")
_TYPE_RE = re.compile(r"^(?:declare\s+)?(?:type|interface)\s+(\w+)")
_ENUM_RE = re.compile(r"^(?:const\s+)?enum\s+(\w+)")


class TypeScriptScanner(BaseScanner):
    """Line scanner shared by TypeScript and JavaScript sources."""

    language = "typescript"

    def scan(self, lines: list[str], result: ParsedModule) -> None:
        for line in lines:
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("//"):
                continue
            if self._scan_import(trimmed, result):
                continue
            if trimmed.startswith("export"):
                self._scan_export(trimmed, result)
                continue
            self._scan_local(trimmed, result)

    def _scan_import(self, trimmed: str, result: ParsedModule) -> bool:
        m = _IMPORT_RE.match(trimmed)
        if m:
            named, namespace, default, source = m.groups()
            if named:
                names = [n.removeprefix("type ").strip() for n in self._split_names(named)]
                result.imports.extend(f"{n} from {source}" for n in names if n)
            else:
                result.imports.append(f"{namespace or default} from {source}")
            return True

        m = _SIDE_EFFECT_IMPORT_RE.match(trimmed)
        if m:
            result.imports.append(m.group(1))
            return True

        m = _REQUIRE_RE.match(trimmed)
        if m:
            target, source = m.groups()
            names = self._split_names(target.strip("{} ")) if target.startswith("{") else [target]
            result.imports.extend(f"{n.split(':')[0].strip()} from {source}" for n in names)
            return True
        return False

    def _scan_export(self, trimmed: str, result: ParsedModule) -> None:
        if m := _EXPORT_FUNCTION_RE.match(trimmed):
            result.exports.append(m.group(1))
            result.functions.append(m.group(1))
        elif m := _EXPORT_CLASS_RE.match(trimmed):
            result.exports.append(m.group(1))
            result.classes.append(m.group(1))
        elif m := _EXPORT_ENUM_RE.match(trimmed):
            result.exports.append(m.group(1))
            result.types.append(m.group(1))
        elif m := _EXPORT_CONST_RE.match(trimmed):
            result.exports.append(m.group(1))
        elif m := _EXPORT_TYPE_RE.match(trimmed):
            result.exports.append(m.group(1))
            result.types.append(m.group(1))
        elif m := _EXPORT_DEFAULT_NAMED_RE.match(trimmed):
            result.exports.append(f"default({m.group(1)})")
        elif trimmed.startswith("export default"):
            result.exports.append("default")
        elif m := _EXPORT_LIST_RE.match(trimmed):
            # export { a, b as c } exposes the alias
            for part in m.group(1).split(","):
                name = part.strip().removeprefix("type ").split(" as ")[-1].strip()
                if name:
                    result.exports.append(name)

    @staticmethod
    def _scan_local(trimmed: str, result: ParsedModule) -> None:
        if m := _FUNCTION_RE.match(trimmed):
            result.functions.append(m.group(1))
        elif m := _CLASS_RE.match(trimmed):
            result.classes.append(m.group(1))
        elif m := _TYPE_RE.match(trimmed):
            result.types.append(m.group(1))
        elif m := _ENUM_RE.match(trimmed):
            result.types.append(m.group(1))
