from __future__ import annotations
import logging
from dataclasses import dataclass, field
from functools import reduce
from pathlib import Path
from typing import Optional

from tree_sitter import Node

from jsdedupe.parsing.ir import (
    ExtractionResult, FunctionKind, FunctionRecord, NormalizationFailure, Span,
)
from jsdedupe.parsing.normalizer import NormalizationError, content_hash, normalize_function
from jsdedupe.parsing.ts_parser import ParsedSource, iter_nodes

logger = logging.getLogger(__name__)

FUNCTION_KINDS: dict[str, FunctionKind] = {
    "function_declaration": FunctionKind.DECLARATION,
    "generator_function_declaration": FunctionKind.DECLARATION,
    "function_expression": FunctionKind.EXPRESSION,
    "function": FunctionKind.EXPRESSION,
    "generator_function": FunctionKind.EXPRESSION,
    "arrow_function": FunctionKind.ARROW,
}

IDENTIFIER_TYPES = {"identifier", "shorthand_property_identifier", "shorthand_property_identifier_pattern"}


@dataclass(frozen=True)
class _Harvest:
    """What a single node contributes to the extraction."""
    functions: tuple[FunctionRecord, ...] = ()
    errors: tuple[NormalizationFailure, ...] = ()
    var_names: frozenset[str] = frozenset()
    identifiers: frozenset[str] = frozenset()
    constructors: frozenset[str] = frozenset()


@dataclass
class _Accumulator:
    functions: list[FunctionRecord] = field(default_factory=list)
    errors: list[NormalizationFailure] = field(default_factory=list)
    var_names: set[str] = field(default_factory=set)
    identifiers: set[str] = field(default_factory=set)
    constructors: set[str] = field(default_factory=set)

    def add(self, harvest: _Harvest) -> "_Accumulator":
        self.functions.extend(harvest.functions)
        self.errors.extend(harvest.errors)
        self.var_names |= harvest.var_names
        self.identifiers |= harvest.identifiers
        self.constructors |= harvest.constructors
        return self


def _binding_names(node: Optional[Node], parsed: ParsedSource) -> set[str]:
    """Names bound by a parameter or declarator target, one destructuring level deep."""
    if node is None:
        return set()
    if node.type == "identifier":
        return {parsed.node_text(node)}
    if node.type == "assignment_pattern":
        left = node.child_by_field_name("left")
        return {parsed.node_text(left)} if left is not None and left.type == "identifier" else set()
    if node.type == "rest_pattern":
        return {parsed.node_text(c) for c in node.named_children if c.type == "identifier"}
    names: set[str] = set()
    if node.type == "object_pattern":
        for element in node.named_children:
            if element.type == "shorthand_property_identifier_pattern":
                names.add(parsed.node_text(element))
            elif element.type == "pair_pattern":
                value = element.child_by_field_name("value")
                if value is not None and value.type == "identifier":
                    names.add(parsed.node_text(value))
            elif element.type == "object_assignment_pattern":
                left = element.child_by_field_name("left")
                if left is not None:
                    names.add(parsed.node_text(left))
            elif element.type == "rest_pattern":
                names |= _binding_names(element, parsed)
    elif node.type == "array_pattern":
        for element in node.named_children:
            if element.type in {"identifier", "assignment_pattern", "rest_pattern"}:
                names |= _binding_names(element, parsed)
    return names


def _parameter_names(node: Node, parsed: ParsedSource) -> set[str]:
    single = node.child_by_field_name("parameter")
    if single is not None:
        return _binding_names(single, parsed)
    params = node.child_by_field_name("parameters")
    names: set[str] = set()
    for param in (params.named_children if params is not None else []):
        names |= _binding_names(param, parsed)
    return names


def _function_harvest(node: Node, kind: FunctionKind, parsed: ParsedSource, path: Optional[Path]) -> _Harvest:
    name_node = node.child_by_field_name("name") if kind is not FunctionKind.ARROW else None
    name = parsed.node_text(name_node) if name_node is not None else None
    span = Span(parsed.char_offset(node.start_byte), parsed.char_offset(node.end_byte))

    var_names = _parameter_names(node, parsed)
    if kind is FunctionKind.DECLARATION and name:
        var_names.add(name)

    try:
        code = normalize_function(node, parsed)
    except NormalizationError as exc:
        logger.debug("Skipping %s at %d..%d: %s", name or node.type, span.start, span.end, exc)
        failure = NormalizationFailure(name=name, span=span, message=str(exc), path=path)
        return _Harvest(errors=(failure,), var_names=frozenset(var_names))

    export = None
    if kind is FunctionKind.DECLARATION and node.parent is not None and node.parent.type == "export_statement":
        export = "default" if any(c.type == "default" for c in node.parent.children) else "named"
    record = FunctionRecord(
        name=name,
        span=span,
        normalized_code=code,
        content_hash=content_hash(code),
        kind=kind,
        export=export,
        path=path,
    )
    return _Harvest(functions=(record,), var_names=frozenset(var_names))


def _visit(node: Node, parsed: ParsedSource, path: Optional[Path]) -> _Harvest:
    # the "function" keyword is an anonymous leaf with the same type name
    kind = FUNCTION_KINDS.get(node.type) if node.is_named else None
    if kind is not None:
        return _function_harvest(node, kind, parsed, path)
    if node.type in IDENTIFIER_TYPES:
        return _Harvest(identifiers=frozenset({parsed.node_text(node)}))
    if node.type == "variable_declarator":
        return _Harvest(var_names=frozenset(_binding_names(node.child_by_field_name("name"), parsed)))
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is not None and prop is not None and obj.type == "identifier" and parsed.node_text(prop) == "prototype":
            return _Harvest(constructors=frozenset({parsed.node_text(obj)}))
    return _Harvest()


def extract_functions(parsed: ParsedSource, path: Optional[Path] = None) -> ExtractionResult:
    """Collect function records and the names already in use in ``parsed``.

    Functions whose name is used as ``X.prototype`` anywhere in the source are
    treated as constructors and left out; functions that fail to normalize
    are reported in ``errors`` instead of ``functions``.
    """
    acc = reduce(_Accumulator.add, (_visit(n, parsed, path) for n in iter_nodes(parsed.root)), _Accumulator())
    functions = [rec for rec in acc.functions if rec.name is None or rec.name not in acc.constructors]
    logger.debug(
        "%s: %d functions, %d constructors, %d normalization failures",
        parsed.filename, len(functions), len(acc.constructors), len(acc.errors),
    )
    return ExtractionResult(
        functions=functions,
        var_names=acc.var_names,
        identifiers=acc.identifiers,
        constructors=acc.constructors,
        errors=acc.errors,
        has_syntax_errors=parsed.root.has_error,
    )
