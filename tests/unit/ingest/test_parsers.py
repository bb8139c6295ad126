"""Tests for parser dispatch and the export / import caps."""

from __future__ import annotations

import pytest

from repoindex.ingest.parsers import MAX_SYMBOLS, SCANNERS, ParsedModule, parse

_MANY = {
    "typescript": (
        lambda i: f"import x{i} from 'm{i}'",
        lambda i: f"export const c{i} = {i}",
    ),
    "python": (lambda i: f"import m{i}", lambda i: f"def f{i}(): pass"),
    "go": (lambda i: f'import "pkg/m{i}"', lambda i: f"func F{i}() {{}}"),
    "rust": (lambda i: f"use crate::m{i};", lambda i: f"pub fn f{i}() {{}}"),
    "java": (lambda i: f"import a.M{i};", lambda i: f"public class C{i} {{"),
}


@pytest.mark.parametrize("language", sorted(_MANY))
def test_exports_and_imports_capped(language):
    make_import, make_export = _MANY[language]
    lines = [make_import(i) for i in range(80)] + [make_export(i) for i in range(80)]
    result = parse("\n".join(lines), language)
    assert len(result.exports) == MAX_SYMBOLS
    assert len(result.imports) == MAX_SYMBOLS
    # The first N in discovery order are kept.
    assert result.exports[0].lower().endswith("0")


def test_custom_cap():
    src = "\n".join(f"export const c{i} = {i}" for i in range(10))
    assert len(parse(src, "typescript", max_symbols=3).exports) == 3


@pytest.mark.parametrize("language", [None, "", "ruby", "markdown"])
def test_unsupported_language_yields_empty(language):
    assert parse("def x(): pass", language) == ParsedModule()


def test_registry_covers_supported_languages():
    assert set(SCANNERS) == {"typescript", "javascript", "python", "go", "rust", "java"}
    assert SCANNERS["typescript"] is SCANNERS["javascript"]


def test_empty_content():
    for language in SCANNERS:
        assert parse("", language) == ParsedModule()
