"""File eligibility, language and module-type detection for repository paths.

All functions are pure and operate on repository-relative POSIX paths
(as returned by the GitHub tree API).
"""

from __future__ import annotations

import re

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".go", ".rs", ".java"]
)

SKIP_DIRS: frozenset[str] = frozenset(
    [
        "node_modules", ".git", "dist", "build", "__pycache__", ".next", ".vercel",
        "coverage", ".cache", "vendor", "target", ".venv", "venv",
    ]
)

SKIP_FILES: frozenset[str] = frozenset(
    [
        "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "bun.lockb", "Cargo.lock",
        "poetry.lock", "go.sum", ".env", ".env.local", ".env.production", ".DS_Store",
        "Thumbs.db",
    ]
)

_LANGUAGES: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
}

_TEST_FILE_RE = re.compile(
    r"(\.(test|spec)\.(ts|tsx|js|jsx|mjs|cjs|py|go|rs|java)$)"
    r"|(/test_[^/]+\.py$)"
    r"|(_test\.(py|go)$)"
)
_JAVA_TEST_RE = re.compile(r"[a-z0-9]Tests?\.java$")

# Ordered: first match wins.
_TYPE_SEGMENTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("component", ("/components/", "/component/")),
    ("service", ("/services/", "/service/", "/lib/")),
    ("model", ("/models/", "/types/", "/schemas/", "/schema/")),
    ("route", ("/routes/", "/api/", "/pages/", "/app/")),
    ("utility", ("/utils/", "/helpers/", "/util/")),
    ("config", ("/config/", "/configuration/")),
)


def _extension(file_name: str) -> str:
    if "." not in file_name:
        return ""
    return "." + file_name.rsplit(".", 1)[1].lower()


def is_eligible(path: str) -> bool:
    """Return True if *path* should be indexed.

    Rejects paths with a deny-listed directory segment, deny-listed file
    names and dotfiles; otherwise requires an allow-listed extension.
    """
    parts = path.split("/")
    file_name = parts[-1]

    if any(part in SKIP_DIRS for part in parts):
        return False
    if file_name in SKIP_FILES:
        return False
    if file_name.startswith("."):
        return False
    return _extension(file_name) in SUPPORTED_EXTENSIONS


def detect_language(path: str) -> str | None:
    """Map the file extension of *path* to a language name, or None."""
    return _LANGUAGES.get(_extension(path.rsplit("/", 1)[-1]))


def detect_module_type(path: str) -> str | None:
    """Classify *path* as test/component/service/model/route/utility/config, or None."""
    # Leading slash so top-level directories (app/, lib/) match like nested ones
    lower = "/" + path.lower()
    if _TEST_FILE_RE.search(lower) or _JAVA_TEST_RE.search(path):
        return "test"
    for module_type, segments in _TYPE_SEGMENTS:
        if any(segment in lower for segment in segments):
            return module_type
    return None


def module_name(path: str) -> str:
    """File name of *path* without its last extension (``src/app.test.ts`` → ``app.test``)."""
    file_name = path.rsplit("/", 1)[-1]
    if "." in file_name.lstrip("."):
        return file_name.rsplit(".", 1)[0]
    return file_name
