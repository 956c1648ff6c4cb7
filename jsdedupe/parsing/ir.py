from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class DedupeError(Exception):
    """Base class for every error raised by jsdedupe."""


@dataclass(frozen=True)
class Span:
    start: int
    end: int  # exclusive

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, other: "Span") -> bool:
        return self.start <= other.start and other.end <= self.end

    def strictly_contains(self, other: "Span") -> bool:
        return self.contains(other) and self != other


class FunctionKind(str, Enum):
    DECLARATION = "declaration"
    EXPRESSION = "expression"
    ARROW = "arrow"


@dataclass(frozen=True)
class FunctionRecord:
    name: Optional[str]
    span: Span
    normalized_code: str
    content_hash: str
    kind: FunctionKind
    export: Optional[str] = None  # "named" | "default" for exported declarations
    path: Optional[Path] = None

    @property
    def length(self) -> int:
        return self.span.length

    @property
    def is_declaration(self) -> bool:
        return self.kind is FunctionKind.DECLARATION


@dataclass(frozen=True)
class NormalizationFailure:
    name: Optional[str]
    span: Span
    message: str
    path: Optional[Path] = None


@dataclass(frozen=True)
class UsageRecord:
    name: str
    span: Span


@dataclass
class ExtractionResult:
    functions: list[FunctionRecord] = field(default_factory=list)
    var_names: set[str] = field(default_factory=set)
    identifiers: set[str] = field(default_factory=set)
    constructors: set[str] = field(default_factory=set)
    errors: list[NormalizationFailure] = field(default_factory=list)
    has_syntax_errors: bool = False

    def reserved_names(self) -> set[str]:
        return set(self.var_names) | set(self.identifiers)
