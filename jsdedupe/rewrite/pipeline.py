"""
One rewrite pass over an immutable source snapshot.

Stage 1 hoists every selected function body into a generated name and removes
or replaces its occurrences. Stage 2 re-parses that output and drops the
remaining declarations of retired names. Stage 3 re-parses again and points
reference sites of retired names at their generated replacements. The
generated declarations and backward-compatibility aliases are finally joined
into one ``var`` statement placed at the top of the text, after a hash-bang
line if there is one. A selected hash with a single occurrence left, such as
the hoisted copy from an earlier pass, is not hoisted again.

Spans are only ever used against the snapshot they were extracted from: each
stage parses its own input and builds a fresh edit list.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from jsdedupe.analysis.extractor import extract_functions
from jsdedupe.analysis.grouping import group_by_hash
from jsdedupe.analysis.names import NameAllocator
from jsdedupe.analysis.usages import find_usages
from jsdedupe.parsing.ir import FunctionRecord
from jsdedupe.parsing.ts_parser import ParsedSource, parse_source
from jsdedupe.rewrite.edits import Edit, apply_edits

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    text: str
    name_mapping: dict[str, str] = field(default_factory=dict)  # content hash -> generated name
    aliases: dict[str, str] = field(default_factory=dict)  # old declared name -> generated name
    replacements: dict[str, str] = field(default_factory=dict)  # accumulated across passes
    declarations: list[str] = field(default_factory=list)


def outermost(records: Iterable[FunctionRecord]) -> list[FunctionRecord]:
    """Drop records whose span sits strictly inside another record's span."""
    records = list(records)
    return [
        rec for rec in records
        if not any(other.span.strictly_contains(rec.span) for other in records)
    ]


def _occurrence_edit(rec: FunctionRecord, target: str) -> Edit:
    if not rec.is_declaration:
        return Edit(rec.span, target)
    if rec.export == "default":
        return Edit(rec.span, target)
    if rec.export == "named":
        return Edit(rec.span, f"var {rec.name}={target};")
    return Edit.delete(rec.span)


def _log_edit(stage: str, text: str, rec: FunctionRecord, edit: Edit) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    action = "Removing declaration" if not edit.replacement else f"Replacing with {edit.replacement!r}"
    logger.debug(
        "[%s] %s (%d..%d) %s; original: %s",
        stage, action, rec.span.start, rec.span.end, rec.name or "<anonymous>",
        text[rec.span.start:rec.span.end],
    )


def consolidate_declarations(
    text: str,
    functions: Sequence[FunctionRecord],
    hashes: Sequence[str],
    allocator: NameAllocator,
) -> PassResult:
    """Stage 1: allocate a name per selected hash and rewrite its occurrences."""
    groups = group_by_hash(functions)
    result = PassResult(text=text)
    for h in hashes:
        group = groups.get(h)
        if group is None:
            logger.debug("No function with hash %s, skipping", h)
            continue
        if h in result.name_mapping:
            continue
        if group.duplicate_count == 0:
            logger.debug("Only one function with hash %s left, skipping", h)
            continue
        name = allocator.allocate()
        canonical = group.canonical
        logger.debug("Building a unique declaration for %s as %s", name, canonical.normalized_code)
        result.declarations.append(f"{name}={canonical.normalized_code}")
        result.name_mapping[h] = name
        for member in group.named_members:
            if member.name not in result.aliases:
                logger.debug("Will alias old name %s to %s", member.name, name)
                result.aliases[member.name] = name

    occurrences = outermost(rec for rec in functions if rec.content_hash in result.name_mapping)
    edits = []
    for rec in occurrences:
        edit = _occurrence_edit(rec, result.name_mapping[rec.content_hash])
        _log_edit("stage 1", text, rec, edit)
        edits.append(edit)
    result.text = apply_edits(text, edits)
    return result


def remove_stale_declarations(text: str, filename: str, aliases: Mapping[str, str]) -> str:
    """Stage 2: drop leftover declarations of names that now alias a generated one."""
    if not aliases:
        return text
    extraction = extract_functions(parse_source(text, filename))
    stale = outermost(rec for rec in extraction.functions if rec.name in aliases)
    edits = []
    for rec in stale:
        edit = _occurrence_edit(rec, aliases[rec.name])
        _log_edit("stage 2", text, rec, edit)
        edits.append(edit)
    return apply_edits(text, edits)


def rewrite_usages(text: str, filename: str, replacements: Mapping[str, str]) -> str:
    """Stage 3: point reference sites of retired names at their replacements."""
    if not replacements:
        return text
    usages = find_usages(parse_source(text, filename), set(replacements))
    edits = []
    for usage in usages:
        logger.debug("[stage 3] Renaming %s (%d..%d) to %s", usage.name, usage.span.start, usage.span.end, replacements[usage.name])
        edits.append(Edit(usage.span, replacements[usage.name]))
    return apply_edits(text, edits)


def _header_offset(parsed: ParsedSource) -> int:
    """Where the header goes: after a leading hash-bang line, else at the start."""
    root = parsed.root
    first = root.children[0] if root.child_count else None
    if first is None or first.type != "hash_bang_line":
        return 0
    end = parsed.char_offset(first.end_byte)
    return end + 1 if parsed.text[end:end + 1] == "\n" else end


def header(declarations: Sequence[str], aliases: Mapping[str, str], name_mapping: Mapping[str, str]) -> str:
    generated = set(name_mapping.values())
    bindings = list(declarations)
    for old, new in aliases.items():
        if old == new or old in generated:
            continue
        logger.debug("Adding backwards compatibility declaration for %s mapping onto %s", old, new)
        bindings.append(f"{old}={new}")
    if not bindings:
        return ""
    return f"var {','.join(bindings)};"


def run_pass(
    text: str,
    filename: str,
    hashes: Sequence[str],
    replacements: Mapping[str, str] | None = None,
) -> PassResult:
    """Run the three stages once over ``text``.

    ``replacements`` maps every name retired by earlier passes to its
    generated name; the returned result carries it extended with this pass's
    aliases. Nothing is selected -> the text comes back unchanged.
    """
    parsed = parse_source(text, filename)
    extraction = extract_functions(parsed)
    allocator = NameAllocator(extraction.reserved_names() | set(replacements or {}))

    result = consolidate_declarations(text, extraction.functions, hashes, allocator)
    stage1 = result.text
    stage2 = remove_stale_declarations(stage1, filename, result.aliases)

    accumulated = dict(replacements or {})
    accumulated.update(result.aliases)
    stage3 = rewrite_usages(stage2, filename, accumulated)

    result.replacements = accumulated
    prelude = header(result.declarations, result.aliases, result.name_mapping)
    # a hash-bang line must stay first; the edits above never touch it
    at = _header_offset(parsed)
    result.text = stage3[:at] + prelude + stage3[at:]
    return result
