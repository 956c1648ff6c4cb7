from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from jsdedupe.parsing.ir import FunctionRecord

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    content_hash: str
    members: list[FunctionRecord] = field(default_factory=list)

    @property
    def canonical(self) -> FunctionRecord:
        # min() keeps the first of equally short members
        return min(self.members, key=lambda rec: rec.length)

    @property
    def duplicate_count(self) -> int:
        return len(self.members) - 1

    @property
    def wasted_length(self) -> int:
        return sum(rec.length for rec in self.members) - self.canonical.length

    @property
    def named_members(self) -> list[FunctionRecord]:
        return [rec for rec in self.members if rec.name]


@dataclass(frozen=True)
class DuplicateEntry:
    hash: str
    code: str
    duplicates: int
    length: int
    locations: tuple[str, ...] = ()


@dataclass
class AnalysisReport:
    entries: list[DuplicateEntry]
    total_functions: int
    unique_functions: int
    wasted_bytes: int
    source_size: Optional[int] = None
    failed_files: list[str] = field(default_factory=list)
    syntax_error_files: list[str] = field(default_factory=list)  # analyzed partially
    normalization_failures: int = 0

    @property
    def unique_pct(self) -> float:
        if not self.total_functions:
            return 0.0
        return round(self.unique_functions / self.total_functions * 100.0, 2)

    @property
    def wasted_pct(self) -> Optional[float]:
        if not self.source_size:
            return None
        return round(self.wasted_bytes / self.source_size * 100.0, 2)

    def summary_lines(self) -> list[str]:
        lines = [
            f"Found {self.total_functions} functions, {self.unique_functions} are unique ({self.unique_pct}%)",
        ]
        if self.source_size:
            lines.append(
                f"Duplicates length: {self.wasted_bytes} bytes out of {self.source_size} bytes "
                f"are duplicate code ({self.wasted_pct}%)"
            )
        else:
            lines.append(f"Duplicates length: {self.wasted_bytes} bytes")
        return lines


def _location(rec: FunctionRecord) -> str:
    where = f"{rec.span.start}..{rec.span.end}"
    return f"{rec.path.as_posix()}:{where}" if rec.path is not None else where


def group_by_hash(functions: Iterable[FunctionRecord]) -> dict[str, DuplicateGroup]:
    groups: dict[str, DuplicateGroup] = {}
    for rec in functions:
        groups.setdefault(rec.content_hash, DuplicateGroup(rec.content_hash)).members.append(rec)
    return groups


def analyze(functions: Iterable[FunctionRecord], source_size: Optional[int] = None) -> AnalysisReport:
    """Group records by content hash and summarize the duplication.

    Only groups with at least one duplicate are reported, most duplicated
    first; ties keep first-seen order.
    """
    records = list(functions)
    groups = group_by_hash(records)
    duplicated = sorted(
        (g for g in groups.values() if g.duplicate_count > 0),
        key=lambda g: -g.duplicate_count,
    )
    entries = [
        DuplicateEntry(
            hash=g.content_hash,
            code=g.canonical.normalized_code,
            duplicates=g.duplicate_count,
            length=g.wasted_length,
            locations=tuple(_location(rec) for rec in g.members),
        )
        for g in duplicated
    ]
    return AnalysisReport(
        entries=entries,
        total_functions=len(records),
        unique_functions=len(groups),
        wasted_bytes=sum(e.length for e in entries),
        source_size=source_size,
    )


def select_by_threshold(functions: Iterable[FunctionRecord], threshold: int) -> list[str]:
    """Hashes whose group has at least ``threshold`` duplicates, in first-seen order."""
    return [h for h, g in group_by_hash(functions).items() if g.duplicate_count >= threshold]


def select_by_hashes(raw: str) -> list[str]:
    """Parse a comma separated hash list; blanks are dropped, order kept."""
    return [h.strip() for h in (raw or "").split(",") if h.strip()]
