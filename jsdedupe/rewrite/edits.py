from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from jsdedupe.parsing.ir import DedupeError, Span


class EditConflictError(DedupeError):
    pass


@dataclass(frozen=True)
class Edit:
    span: Span
    replacement: str

    @classmethod
    def delete(cls, span: Span) -> "Edit":
        return cls(span, "")


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """Apply edits computed against ``text`` in one right-to-left pass.

    Spans must lie inside ``text`` and must not overlap; touching spans
    (one ending where the next starts) are fine.
    """
    ordered = sorted(edits, key=lambda e: (e.span.start, e.span.end))
    prev_end = 0
    for edit in ordered:
        if edit.span.start < 0 or edit.span.end > len(text) or edit.span.start > edit.span.end:
            raise EditConflictError(f"edit {edit.span} outside text of length {len(text)}")
        if edit.span.start < prev_end:
            raise EditConflictError(f"edit {edit.span} overlaps a previous edit ending at {prev_end}")
        prev_end = edit.span.end

    out = text
    for edit in reversed(ordered):
        out = out[:edit.span.start] + edit.replacement + out[edit.span.end:]
    return out
