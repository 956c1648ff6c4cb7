from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jsdedupe.analysis.extractor import extract_functions
from jsdedupe.analysis.grouping import AnalysisReport, analyze
from jsdedupe.ingestion.walker import DEFAULT_INCLUDE, walk_repo
from jsdedupe.parsing.ir import ExtractionResult, FunctionRecord, NormalizationFailure
from jsdedupe.parsing.ts_parser import parse_source

logger = logging.getLogger(__name__)


@dataclass
class AnalysisRun:
    report: AnalysisReport
    functions: list[FunctionRecord] = field(default_factory=list)
    errors: list[NormalizationFailure] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)


@dataclass
class _FileOutcome:
    path: Path
    size: int = 0
    extraction: Optional[ExtractionResult] = None
    failure: Optional[str] = None


def read_source(path: Path) -> str:
    logger.info("Reading code from file %s", path)
    return path.read_text(encoding="utf-8")


def extract_file(path: Path, display: Optional[Path] = None, strict: bool = True) -> tuple[str, ExtractionResult]:
    text = read_source(path)
    shown = display or path
    parsed = parse_source(text, shown.as_posix(), strict=strict)
    return text, extract_functions(parsed, path=display)


def _extract_in_tree(root: Path, rel: Path) -> _FileOutcome:
    try:
        text, extraction = extract_file(root / rel, display=rel, strict=False)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping %s: %s", rel, exc)
        return _FileOutcome(path=rel, failure=f"{rel.as_posix()}: {exc}")
    return _FileOutcome(path=rel, size=len(text), extraction=extraction)


def analyze_file(path: Path) -> AnalysisRun:
    """Strict single-file analysis; a syntax error propagates as ParseError."""
    text, extraction = extract_file(path)
    report = analyze(extraction.functions, source_size=len(text))
    report.normalization_failures = len(extraction.errors)
    return AnalysisRun(report=report, functions=extraction.functions, errors=extraction.errors, files=[path])


def analyze_directory(
    root: Path,
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
    max_bytes: int = 2_000_000,
    workers: int = 4,
) -> AnalysisRun:
    """Extract every JavaScript file under ``root`` and analyze them as one pool.

    Files are parsed independently; records are merged in path order, which
    decides the first-seen tie-break for canonical occurrences.
    """
    metas = walk_repo(root, include or DEFAULT_INCLUDE, exclude or [], max_bytes, follow_symlinks=False)
    rels = [m.path for m in metas]
    logger.info("Analyzing %d files under %s", len(rels), root)

    resolved = root.resolve()
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        outcomes = list(pool.map(lambda rel: _extract_in_tree(resolved, rel), rels))

    functions: list[FunctionRecord] = []
    errors: list[NormalizationFailure] = []
    failed: list[str] = []
    broken: list[str] = []
    total_size = 0
    for outcome in outcomes:
        if outcome.extraction is None:
            failed.append(outcome.failure or outcome.path.as_posix())
            continue
        if outcome.extraction.has_syntax_errors:
            logger.warning("%s has syntax errors; only its intact functions were analyzed", outcome.path)
            broken.append(outcome.path.as_posix())
        functions.extend(outcome.extraction.functions)
        errors.extend(outcome.extraction.errors)
        total_size += outcome.size

    report = analyze(functions, source_size=total_size)
    report.failed_files = failed
    report.syntax_error_files = broken
    report.normalization_failures = len(errors)
    return AnalysisRun(report=report, functions=functions, errors=errors, files=rels)


def run_analysis(
    path: Path,
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
    max_bytes: int = 2_000_000,
    workers: int = 4,
) -> AnalysisRun:
    if path.is_dir():
        return analyze_directory(path, include, exclude, max_bytes, workers)
    return analyze_file(path)
