from __future__ import annotations
from pathlib import Path
import json
from jsdedupe.analysis.grouping import AnalysisReport
from jsdedupe.reporting.schema import AnalysisSummaryJSON, DuplicateEntryJSON


def report_entries(report: AnalysisReport) -> list[DuplicateEntryJSON]:
    return [
        DuplicateEntryJSON(hash=e.hash, code=e.code, duplicates=e.duplicates, length=e.length)
        for e in report.entries
    ]


def report_summary(report: AnalysisReport) -> AnalysisSummaryJSON:
    return AnalysisSummaryJSON(
        total_functions=report.total_functions,
        unique_functions=report.unique_functions,
        unique_pct=report.unique_pct,
        wasted_bytes=report.wasted_bytes,
        source_size=report.source_size,
        wasted_pct=report.wasted_pct,
        duplicate_groups=len(report.entries),
        normalization_failures=report.normalization_failures,
        failed_files=list(report.failed_files),
        syntax_error_files=list(report.syntax_error_files),
    )


def export_analysis_json(report: AnalysisReport, out: Path) -> Path:
    out.parent.mkdir(parents=True, exist_ok=True)
    payload = [entry.model_dump() for entry in report_entries(report)]
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out


def export_summary_json(report: AnalysisReport, out: Path) -> Path:
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(report_summary(report).model_dump_json(indent=2), encoding="utf-8")
    return out


def write_source(text: str, out: Path) -> Path:
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    return out
