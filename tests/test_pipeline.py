from __future__ import annotations

from jsdedupe.parsing.normalizer import content_hash
from jsdedupe.analysis.names import NameAllocator
from jsdedupe.rewrite.pipeline import (
    consolidate_declarations, header, outermost, remove_stale_declarations, rewrite_usages, run_pass,
)

INC_HASH = content_hash("function(x){return x+1}")

INC_EXPECTED = (
    "var a=function(x){return x+1},inc=a;\n"
    "var f = a;\n"
    "var g = a;\n"
    "console.log(a(1), f(2), g(3));\n"
)


def test_single_pass_on_inc_example(inc_source) -> None:
    result = run_pass(inc_source, "t.js", [INC_HASH])
    assert result.text == INC_EXPECTED
    assert result.name_mapping == {INC_HASH: "a"}
    assert result.aliases == {"inc": "a"}
    assert result.replacements == {"inc": "a"}
    assert result.declarations == ["a=function(x){return x+1}"]


def test_unknown_hash_leaves_text_alone(inc_source) -> None:
    result = run_pass(inc_source, "t.js", ["deadbeef"])
    assert result.text == inc_source
    assert result.name_mapping == {}


def test_generated_names_avoid_existing_identifiers() -> None:
    text = "var a = 1;\nvar f = function (x) { return x; };\nvar g = function (x) { return x; };\n"
    result = run_pass(text, "t.js", [content_hash("function(x){return x}")])
    assert result.name_mapping[content_hash("function(x){return x}")] == "b"
    assert result.text.startswith("var b=function(x){return x};")


def test_nested_occurrences_stay_inside_hoisted_body() -> None:
    body = "function () { var inner = function (y) { return y * 2; }; return inner; }"
    text = f"var outer = {body};\nvar other = {body};\nvar lone = function (y) {{ return y * 2; }};\n"
    outer_hash = content_hash("function(){var inner=function(y){return y*2};return inner}")
    inner_hash = content_hash("function(y){return y*2}")

    result = run_pass(text, "t.js", [outer_hash, inner_hash])

    assert result.text == (
        "var a=function(){var inner=function(y){return y*2};return inner},b=function(y){return y*2};"
        "var outer = a;\nvar other = a;\nvar lone = b;\n"
    )


def test_exported_declaration_keeps_its_binding() -> None:
    text = (
        "export function twice(x) { return x * 2; }\n"
        "const d = function (x) { return x * 2; };\n"
        "export const z = twice(2) + d(1);\n"
    )
    result = run_pass(text, "t.mjs", [content_hash("function(x){return x*2}")])
    assert result.text == (
        "var a=function(x){return x*2},twice=a;"
        "export var twice=a;\n"
        "const d = a;\n"
        "export const z = a(2) + d(1);\n"
    )


def test_earlier_replacements_keep_applying() -> None:
    text = "var y = 1;\ny = old;\nold(2);\n"
    result = run_pass(text, "t.js", [], {"old": "q"})
    assert result.text == "var y = 1;\ny = q;\nq(2);\n"
    assert result.replacements == {"old": "q"}


def test_remove_stale_declarations() -> None:
    text = "function inc(x) { return x; }\nvar y = inc;\n"
    assert remove_stale_declarations(text, "t.js", {"inc": "a"}) == "\nvar y = inc;\n"
    assert remove_stale_declarations(text, "t.js", {}) == text


def test_rewrite_usages() -> None:
    text = "var y = 1;\ny = inc;\ninc(2);\ninc.prototype.k = 1;\n"
    assert rewrite_usages(text, "t.js", {"inc": "a"}) == "var y = 1;\ny = a;\na(2);\ninc.prototype.k = 1;\n"


def test_header() -> None:
    assert header([], {}, {}) == ""
    assert header(
        ["a=function(){}"],
        {"inc": "a", "a": "a", "b": "c"},
        {"h1": "a", "h2": "b"},
    ) == "var a=function(){},inc=a;"


def test_outermost(extract) -> None:
    result = extract("var o = function () { return function () { return 1; }; };\nvar p = () => 2;\n")
    kept = outermost(result.functions)
    assert len(result.functions) == 3
    assert len(kept) == 2


def _rebuild_stage1(text, functions, name_mapping) -> str:
    """Left-to-right reconstruction of the stage 1 text from the kept spans."""
    selected = [rec for rec in functions if rec.content_hash in name_mapping]
    kept = sorted(
        (rec for rec in selected
         if not any(o is not rec and o.span.start <= rec.span.start and rec.span.end <= o.span.end for o in selected)),
        key=lambda rec: rec.span.start,
    )
    pieces, cursor = [], 0
    for rec in kept:
        pieces.append(text[cursor:rec.span.start])
        pieces.append("" if rec.is_declaration else name_mapping[rec.content_hash])
        cursor = rec.span.end
    pieces.append(text[cursor:])
    return "".join(pieces)


def test_stage1_only_touches_outermost_selected_spans(extract) -> None:
    body = "function (y) { var inner = function (z) { return z + 1; }; return inner(y); }"
    keep = "function keep(q) { return q - 1; }"
    text = (
        f"var p = {body};\n"
        f"{keep}\n"
        f"var r = {body};\n"
        "function twin(z) { return z + 1; }\n"
        "var s = function (z) { return z + 1; };\n"
    )
    extraction = extract(text)
    functions = extraction.functions
    outer_hash, inner_hash = functions[0].content_hash, functions[1].content_hash
    assert functions[2].name == "keep"
    assert functions[2].content_hash not in {outer_hash, inner_hash}

    result = consolidate_declarations(
        text, functions, [outer_hash, inner_hash], NameAllocator(extraction.reserved_names()),
    )

    assert result.text == _rebuild_stage1(text, functions, result.name_mapping)
    assert f"\n{keep}\n" in result.text
    assert "return z + 1" not in result.text
    assert result.aliases == {"twin": result.name_mapping[inner_hash]}


def test_header_goes_after_hash_bang_line(inc_source) -> None:
    text = "#!/usr/bin/env node\n" + inc_source
    result = run_pass(text, "t.js", [INC_HASH])
    assert result.text == "#!/usr/bin/env node\n" + INC_EXPECTED


def test_single_remaining_copy_is_not_hoisted_again(inc_source) -> None:
    first = run_pass(inc_source, "t.js", [INC_HASH])
    second = run_pass(first.text, "t.js", [INC_HASH], first.replacements)
    assert second.text == first.text
    assert second.name_mapping == {}


def test_lone_function_is_left_alone() -> None:
    text = "var f = function (x) { return x; };\n"
    result = run_pass(text, "t.js", [content_hash("function(x){return x}")])
    assert result.text == text
    assert result.declarations == []
