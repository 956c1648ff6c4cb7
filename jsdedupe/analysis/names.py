"""
Collision-free short identifier allocation.

Names are enumerated shortest-first by a mixed-radix counter: the first
character comes from FIRST_ALPHABET (27 symbols), every following character
from REST_ALPHABET (37 symbols), so every candidate is a bare identifier:

    a, b, ..., z, $, a0, a1, ..., a9, aa, ..., a$, b0, ..., $$, a00, ...

The counter state is an explicit immutable ``NameCursor``; callers thread the
cursor returned by ``next_name`` into the next call and add every allocated
name to ``reserved`` before asking again.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import AbstractSet

FIRST_ALPHABET = "abcdefghijklmnopqrstuvwxyz$"
REST_ALPHABET = "0123456789" + FIRST_ALPHABET

JS_RESERVED_WORDS = frozenset({
    "arguments", "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "eval", "export",
    "extends", "false", "finally", "for", "function", "if", "implements", "import",
    "in", "instanceof", "interface", "let", "new", "null", "package", "private",
    "protected", "public", "return", "static", "super", "switch", "this", "throw",
    "true", "try", "typeof", "undefined", "var", "void", "while", "with", "yield",
    "NaN", "Infinity",
})


@dataclass(frozen=True)
class NameCursor:
    digits: tuple[int, ...] = (0,)

    def render(self) -> str:
        head, *rest = self.digits
        return FIRST_ALPHABET[head] + "".join(REST_ALPHABET[d] for d in rest)

    def advance(self) -> "NameCursor":
        digits = list(self.digits)
        for pos in range(len(digits) - 1, -1, -1):
            top = len(FIRST_ALPHABET if pos == 0 else REST_ALPHABET) - 1
            if digits[pos] < top:
                digits[pos] += 1
                return NameCursor(tuple(digits))
            digits[pos] = 0
        return NameCursor((0,) * (len(digits) + 1))


def next_name(cursor: NameCursor, reserved: AbstractSet[str]) -> tuple[str, NameCursor]:
    """Return the first free name at or after ``cursor`` and the cursor just past it."""
    while True:
        name = cursor.render()
        cursor = cursor.advance()
        if name not in reserved and name not in JS_RESERVED_WORDS:
            return name, cursor


def generate(reserved: AbstractSet[str]) -> str:
    name, _ = next_name(NameCursor(), reserved)
    return name


class NameAllocator:
    """Stateful convenience wrapper used by the rewrite pipeline."""

    def __init__(self, reserved: AbstractSet[str]):
        self.reserved = set(reserved)
        self.cursor = NameCursor()

    def allocate(self) -> str:
        name, self.cursor = next_name(self.cursor, self.reserved)
        self.reserved.add(name)
        return name
