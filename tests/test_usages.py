from __future__ import annotations

from jsdedupe.analysis.usages import find_usages
from jsdedupe.parsing.ts_parser import parse_source

SOURCE = (
    "var r = inc(1);\n"
    "x = inc;\n"
    "inc.call(null, 2);\n"
    "inc.prototype.y = 1;\n"
    "function inc(a) { return a; }\n"
)


def test_reference_shapes() -> None:
    usages = find_usages(parse_source(SOURCE, "t.js"), {"inc"})
    assert len(usages) == 3
    assert all(SOURCE[u.span.start:u.span.end] == "inc" for u in usages)
    lines = [SOURCE.count("\n", 0, u.span.start) for u in usages]
    assert lines == [0, 1, 2]


def test_prototype_access_and_declaration_are_not_usages() -> None:
    text = "inc.prototype.y = 1;\nfunction inc(a) { return a; }\n"
    assert find_usages(parse_source(text, "t.js"), {"inc"}) == []


def test_only_requested_names() -> None:
    parsed = parse_source(SOURCE, "t.js")
    assert find_usages(parsed, {"other"}) == []
    assert find_usages(parsed, set()) == []


def test_augmented_assignment_value() -> None:
    text = "var total = 0;\ntotal += step;\n"
    (usage,) = find_usages(parse_source(text, "t.js"), {"step"})
    assert usage.name == "step"
    assert text[usage.span.start:usage.span.end] == "step"
