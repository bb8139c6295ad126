"""Tests for the Rust scanner."""

from __future__ import annotations

from repoindex.ingest.parsers import parse

SOURCE = """\
extern crate serde;
use std::collections::HashMap;
pub use crate::config::Settings;

pub struct Index {
    items: HashMap<String, u32>,
}

struct Private;

pub enum Mode { Full, Delta }
pub(crate) trait Store {}
type Alias = u32;

pub async fn build() {}
pub(crate) fn helper() {}
fn internal() {}
pub const unsafe fn raw() {}
"""


def test_imports():
    result = parse(SOURCE, "rust")
    assert result.imports == ["serde", "std::collections::HashMap", "crate::config::Settings"]


def test_exports_require_pub():
    result = parse(SOURCE, "rust")
    assert result.exports == ["Index", "Mode", "Store", "build", "helper", "raw"]


def test_structure():
    result = parse(SOURCE, "rust")
    assert result.functions == ["build", "helper", "internal", "raw"]
    assert result.classes == ["Index", "Private"]
    assert result.types == ["Mode", "Store", "Alias"]
