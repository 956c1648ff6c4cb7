from __future__ import annotations
import logging
from typing import AbstractSet, Optional

from tree_sitter import Node

from jsdedupe.parsing.ir import Span, UsageRecord
from jsdedupe.parsing.ts_parser import ParsedSource, iter_nodes

logger = logging.getLogger(__name__)

ASSIGNMENT_TYPES = {"assignment_expression", "augmented_assignment_expression"}


def _reference(node: Node, parsed: ParsedSource) -> Optional[Node]:
    """The identifier child of ``node`` that counts as a reference site, if any."""
    if node.type in ASSIGNMENT_TYPES:
        return node.child_by_field_name("right")
    if node.type == "call_expression":
        return node.child_by_field_name("function")
    if node.type == "member_expression":
        prop = node.child_by_field_name("property")
        if prop is not None and parsed.node_text(prop) == "prototype":
            return None
        return node.child_by_field_name("object")
    return None


def find_usages(parsed: ParsedSource, names: AbstractSet[str]) -> list[UsageRecord]:
    """Reference sites of ``names``: assignment values, callees and member-access bases.

    ``X.prototype`` is constructor identity rather than a use of ``X`` and is
    never reported; declaration sites are not reported either.
    """
    if not names:
        return []
    found: dict[Span, UsageRecord] = {}
    for node in iter_nodes(parsed.root):
        ref = _reference(node, parsed)
        if ref is None or ref.type != "identifier":
            continue
        name = parsed.node_text(ref)
        if name not in names:
            continue
        span = Span(parsed.char_offset(ref.start_byte), parsed.char_offset(ref.end_byte))
        found.setdefault(span, UsageRecord(name=name, span=span))
    logger.debug("%s: %d usages of %d names", parsed.filename, len(found), len(names))
    return list(found.values())
