"""Tests for the TypeScript / JavaScript scanner."""

from __future__ import annotations

from repoindex.ingest.parsers import parse

SOURCE = """\
import React, { useState } from 'react';
import { type User, Role as R } from "./models";
import * as path from "path";
import "./styles.css";
const fs = require('fs');
const { join, resolve: res } = require("node:path");

// export function commented() {}
export async function fetchUsers() {}
export function* walk() {}
export default function App() {}
export abstract class Store {}
export class Cache {}
export const enum Color { Red }
export enum Size { S }
export const API_URL = "x";
export let counter = 0;
export type UserId = string;
export interface Props {}
export { helper, internal as publicName };

function localHelper() {}
class LocalThing {}
interface LocalShape {}
enum LocalEnum { A }
"""


def test_imports():
    result = parse(SOURCE, "typescript")
    assert result.imports == [
        "React from react",
        "User from ./models",
        "Role from ./models",
        "path from path",
        "./styles.css",
        "fs from fs",
        "join from node:path",
        "resolve from node:path",
    ]


def test_exports_in_order():
    result = parse(SOURCE, "typescript")
    assert result.exports == [
        "fetchUsers",
        "walk",
        "default(App)",
        "Store",
        "Cache",
        "Color",
        "Size",
        "API_URL",
        "counter",
        "UserId",
        "Props",
        "helper",
        "publicName",
    ]


def test_structure_includes_local_declarations():
    result = parse(SOURCE, "typescript")
    assert result.functions == ["fetchUsers", "walk", "localHelper"]
    assert result.classes == ["Store", "Cache", "LocalThing"]
    assert result.types == ["Color", "Size", "UserId", "Props", "LocalShape", "LocalEnum"]


def test_anonymous_default_export():
    result = parse("export default {\n  name: 'x',\n};\n", "javascript")
    assert result.exports == ["default"]


def test_javascript_uses_same_scanner():
    src = "export function a() {}\nimport b from 'b'\n"
    assert parse(src, "javascript") == parse(src, "typescript")


def test_comment_lines_ignored():
    result = parse("// export const hidden = 1\n", "typescript")
    assert result.exports == []
