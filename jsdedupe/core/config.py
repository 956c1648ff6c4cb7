from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional


@dataclass
class AnalyzeConfig:
    source: Path
    output: Path
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    max_bytes: int = 2_000_000
    workers: int = 4
    report_md: Optional[Path] = None

    @classmethod
    def from_rules(cls, source: Path, rules: dict, **overrides: Any) -> "AnalyzeConfig":
        section = rules.get("analyze", {}) or {}
        values = {
            "output": Path(section.get("output", "analysis.json")),
            "include": list(section.get("include", []) or []),
            "exclude": list(section.get("exclude", []) or []),
            "max_bytes": int(section.get("max_bytes", 2_000_000)),
            "workers": int(section.get("workers", 4)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(source=source, **values)


@dataclass
class OptimizeConfig:
    source: Path
    output: Path
    max_iterations: int = 5
    threshold: Optional[int] = None
    hashes: List[str] = field(default_factory=list)

    @classmethod
    def from_rules(cls, source: Path, rules: dict, **overrides: Any) -> "OptimizeConfig":
        section = rules.get("optimize", {}) or {}
        values = {
            "output": Path(section.get("output", "output.js")),
            "max_iterations": int(section.get("max_iterations", 5)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(source=source, **values)

    @property
    def uses_threshold(self) -> bool:
        return self.threshold is not None
