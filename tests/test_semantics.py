from __future__ import annotations

import quickjs

from jsdedupe.analysis.extractor import extract_functions
from jsdedupe.analysis.grouping import select_by_threshold
from jsdedupe.parsing.ts_parser import parse_source
from jsdedupe.rewrite.optimizer import optimize_source

PROGRAM = (
    "function dbl(x) { return x * 2; }\n"
    "var twice = function (x) { return x * 2; };\n"
    "var out = JSON.stringify([dbl(1), twice(2), dbl(3), dbl === twice]);\n"
)


def _run(source: str) -> str:
    ctx = quickjs.Context()
    return ctx.eval(source + "\nout")


def test_rewritten_program_behaves_the_same() -> None:
    before = _run(PROGRAM)
    hashes = select_by_threshold(extract_functions(parse_source(PROGRAM, "prog.js")).functions, 1)
    assert len(hashes) == 1
    result = optimize_source(PROGRAM, "prog.js", hashes)
    assert result.iterations == 1
    assert "function (x)" not in result.text
    assert _run(result.text) == before.replace("false]", "true]")
    assert before == "[2,4,6,false]"
