from __future__ import annotations
from pathlib import Path
from typing import List

from jsdedupe.analysis.grouping import AnalysisReport


def _toc() -> str:
    return (
        "\n- [Summary](#summary)\n"
        "- [Duplicate groups](#duplicate-groups)\n"
    )


def _preview(code: str, limit: int = 80) -> str:
    flat = " ".join(code.split())
    flat = flat if len(flat) <= limit else flat[: limit - 3] + "..."
    return flat.replace("|", "\\|").replace("`", "'")


def write_analysis_markdown(report: AnalysisReport, out_path: Path, source: str = "", max_rows: int = 50) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)

    lines: List[str] = []
    lines.append("# Function Duplication Report\n")
    lines.append(_toc())
    lines.append("\n## Summary\n")
    if source:
        lines.append(f"- Source: {source}\n")
    lines.append(f"- Functions found: {report.total_functions}\n")
    lines.append(f"- Unique bodies: {report.unique_functions} ({report.unique_pct}%)\n")
    lines.append(f"- Duplicate groups: {len(report.entries)}\n")
    if report.source_size:
        lines.append(f"- Duplicate code: {report.wasted_bytes} of {report.source_size} bytes ({report.wasted_pct}%)\n")
    else:
        lines.append(f"- Duplicate code: {report.wasted_bytes} bytes\n")
    if report.normalization_failures:
        lines.append(f"- Functions skipped (could not normalize): {report.normalization_failures}\n")
    if report.failed_files:
        lines.append(f"- Files skipped: {len(report.failed_files)}\n")
        for f in report.failed_files:
            lines.append(f"  - {f}\n")
    if report.syntax_error_files:
        lines.append(f"- Files with syntax errors (partially analyzed): {len(report.syntax_error_files)}\n")
        for f in report.syntax_error_files:
            lines.append(f"  - {f}\n")

    lines.append("\n## Duplicate groups\n")
    if not report.entries:
        lines.append("- No duplicated functions found.\n")
    else:
        lines.append("| Duplicates | Wasted bytes | Hash | Code |\n")
        lines.append("|---:|---:|---|---|\n")
        for e in report.entries[:max_rows]:
            lines.append(f"| {e.duplicates} | {e.length} | `{e.hash[:12]}` | `{_preview(e.code)}` |\n")
        if len(report.entries) > max_rows:
            lines.append(f"\n... and {len(report.entries) - max_rows} more groups\n")

        lines.append("\n### Locations\n")
        for e in report.entries[:max_rows]:
            lines.append(f"\n- `{e.hash[:12]}`\n")
            for loc in e.locations:
                lines.append(f"  - {loc}\n")

    out_path.write_text("".join(lines), encoding="utf-8")
    return out_path
