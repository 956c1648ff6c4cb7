from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from jsdedupe.analysis.extractor import extract_functions
from jsdedupe.parsing.ts_parser import parse_source


# Three occurrences of the same body: a named declaration and two expressions.
INC_SOURCE = (
    "function inc(x) { return x + 1; }\n"
    "var f = function (x) { return x + 1; };\n"
    "var g = function(x){ return x+1 };\n"
    "console.log(inc(1), f(2), g(3));\n"
)


@pytest.fixture
def extract():
    def _extract(text: str, filename: str = "test.js", strict: bool = True):
        return extract_functions(parse_source(text, filename, strict=strict))

    return _extract


@pytest.fixture
def write_js(tmp_path: Path):
    def _write(rel: str, text: str) -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def inc_source() -> str:
    return INC_SOURCE
