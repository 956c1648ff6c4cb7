"""
Canonical re-printing of a JavaScript function from its tree-sitter tokens.

Two functions that differ only in formatting, comments, optional semicolons,
parentheses around a single arrow parameter, or an unused own name print to
the same text and therefore share a content hash. The printed text is valid
in expression position, so it can be hoisted as ``name=<code>``.
"""
from __future__ import annotations
import hashlib
import re
from typing import Optional

from tree_sitter import Node

from jsdedupe.parsing.ir import DedupeError
from jsdedupe.parsing.ts_parser import ParsedSource, iter_nodes

NAMED_FUNCTION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
}

ATOMIC_TYPES = {"string", "template_string", "regex", "number", "hash_bang_line"}
COMMENT_TYPES = {"comment", "html_comment"}

ASI_STATEMENTS = {
    "expression_statement",
    "lexical_declaration",
    "variable_declaration",
    "return_statement",
    "throw_statement",
    "break_statement",
    "continue_statement",
    "do_statement",
    "debugger_statement",
    "import_statement",
    "export_statement",
    "field_definition",
}

_WORD_CHAR = re.compile(r"[\w$\\]|[^\x00-\x7f]")
_INTEGER = re.compile(r"^\d+$")


class NormalizationError(DedupeError):
    pass


def content_hash(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def _key(node: Node) -> tuple[str, int, int]:
    return (node.type, node.start_byte, node.end_byte)


def _own_name_if_unused(node: Node, parsed: ParsedSource) -> Optional[Node]:
    if not node.is_named or node.type not in NAMED_FUNCTION_TYPES:
        return None
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = parsed.node_text(name_node)
    for inner in iter_nodes(node):
        if inner.type == "identifier" and inner.start_byte != name_node.start_byte and parsed.node_text(inner) == name:
            return None
    return name_node


def _arrow_parens(node: Node) -> list[Node]:
    params = node.child_by_field_name("parameters")
    if params is None or params.named_child_count != 1:
        return []
    only = params.named_children[0]
    if only.type != "identifier" or params.child_count != 3:
        return []
    return [params.children[0], params.children[2]]


def _relies_on_asi(node: Node) -> bool:
    if node.type == "export_statement" and node.child_by_field_name("declaration") is not None:
        return False
    significant = [c for c in node.children if c.type not in COMMENT_TYPES]
    last = significant[-1] if significant else None
    return not (last is not None and last.type == ";" and last.end_byte > last.start_byte)


def _tokens(root: Node, parsed: ParsedSource) -> list[tuple[str, bool]]:
    """(text, droppable) pairs; only statement terminators are droppable."""
    skip: set[tuple[str, int, int]] = set()
    own_name = _own_name_if_unused(root, parsed)
    if own_name is not None:
        skip.add(_key(own_name))

    out: list[tuple[str, bool]] = []
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, closing = stack.pop()
        if closing:
            if _relies_on_asi(node):
                out.append((";", True))
            continue
        if node.type in COMMENT_TYPES or _key(node) in skip:
            continue
        if node.type in ATOMIC_TYPES or node.child_count == 0:
            if node.end_byte > node.start_byte:
                droppable = node.type == ";" and node.parent is not None and node.parent.type != "empty_statement"
                out.append((parsed.node_text(node), droppable))
            continue
        if node.type == "arrow_function":
            skip.update(_key(p) for p in _arrow_parens(node))
        if node.type in ASI_STATEMENTS:
            stack.append((node, True))
        for i in range(node.child_count - 1, -1, -1):
            stack.append((node.children[i], False))
    return out


def _needs_space(prev: str, nxt: str) -> bool:
    a, b = prev[-1], nxt[0]
    if _WORD_CHAR.match(a) and _WORD_CHAR.match(b):
        return True
    if (a, b) in {("+", "+"), ("-", "-"), ("/", "/"), ("/", "*")}:
        return True
    return b == "." and bool(_INTEGER.match(prev))


def join_tokens(tokens: list[tuple[str, bool]]) -> str:
    kept: list[tuple[str, bool]] = []
    for text, droppable in tokens:
        if text == "}":
            while kept and kept[-1][1]:
                kept.pop()
        kept.append((text, droppable))
    pieces: list[str] = []
    for text, _ in kept:
        if pieces and _needs_space(pieces[-1], text):
            pieces.append(" ")
        pieces.append(text)
    return "".join(pieces)


def normalize_function(node: Node, parsed: ParsedSource) -> str:
    if node.has_error:
        raise NormalizationError(f"syntax errors inside {node.type} at byte {node.start_byte}")
    code = join_tokens(_tokens(node, parsed))
    if not code:
        raise NormalizationError(f"empty output for {node.type} at byte {node.start_byte}")
    return code
