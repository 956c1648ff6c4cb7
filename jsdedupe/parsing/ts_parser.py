from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

from jsdedupe.parsing.ir import DedupeError

JAVASCRIPT = Language(tree_sitter_javascript.language())


class ParseError(DedupeError):
    def __init__(self, filename: str, line: int, column: int, message: str):
        self.filename = filename
        self.line = line
        self.column = column
        self.message = message
        super().__init__(f"{filename}:{line}:{column}: {message}")


@dataclass
class ParsedSource:
    filename: str
    text: str
    data: bytes
    tree: Tree
    _char_starts: Optional[list[int]] = field(default=None, repr=False)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def char_offset(self, byte_offset: int) -> int:
        # ASCII input: bytes and characters line up.
        if self._char_starts is None:
            return byte_offset
        return bisect_right(self._char_starts, byte_offset) - 1

    def node_text(self, node: Node) -> str:
        return self.data[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _char_starts(text: str) -> Optional[list[int]]:
    if text.isascii():
        return None
    starts: list[int] = []
    pos = 0
    for ch in text:
        starts.append(pos)
        pos += len(ch.encode("utf-8"))
    starts.append(pos)
    return starts


def iter_nodes(root: Node) -> Iterator[Node]:
    """Pre-order, document-order walk without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        for i in range(node.child_count - 1, -1, -1):
            stack.append(node.children[i])


def first_error(root: Node) -> Optional[Node]:
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        for i in range(node.child_count - 1, -1, -1):
            child = node.children[i]
            if child.has_error or child.is_missing:
                stack.append(child)
    return root


def parse_source(text: str, filename: str = "<input>", strict: bool = True) -> ParsedSource:
    data = text.encode("utf-8")
    parser = Parser(JAVASCRIPT)
    tree = parser.parse(data)
    parsed = ParsedSource(filename=filename, text=text, data=data, tree=tree, _char_starts=_char_starts(text))
    if strict:
        bad = first_error(tree.root_node)
        if bad is not None:
            row, col = bad.start_point
            if bad.is_missing:
                message = f"missing '{bad.type}'"
            else:
                snippet = parsed.node_text(bad).strip().splitlines()
                message = f"unexpected '{snippet[0][:40]}'" if snippet else "syntax error"
            raise ParseError(filename, row + 1, col + 1, message)
    return parsed
