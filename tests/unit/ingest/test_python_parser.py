"""Tests for the Python scanner."""

from __future__ import annotations

from repoindex.ingest.parsers import parse

SOURCE = """\
\"\"\"Module docstring.\"\"\"
import os
import json, sys as system
from pathlib import Path
from typing import (Any, Optional)
from .models import User  # local import

# def commented_out(): pass

def public_func():
    def nested():
        pass

async def fetch():
    pass

def _private():
    pass

class Service:
    def method(self):
        pass

class _Hidden:
    pass

type UserId = int
"""


def test_imports():
    result = parse(SOURCE, "python")
    assert result.imports == [
        "os",
        "json",
        "sys",
        "Path from pathlib",
        "Any from typing",
        "Optional from typing",
        "User from .models",
    ]


def test_exports_skip_private_names():
    result = parse(SOURCE, "python")
    assert result.exports == ["public_func", "fetch", "Service", "UserId"]


def test_structure_is_module_level_only():
    result = parse(SOURCE, "python")
    assert result.functions == ["public_func", "fetch", "_private"]
    assert result.classes == ["Service", "_Hidden"]
    assert result.types == ["UserId"]
