from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from jsdedupe.analysis.grouping import AnalysisReport, select_by_hashes, select_by_threshold
from jsdedupe.analysis.runner import analyze_file, run_analysis
from jsdedupe.core.config import AnalyzeConfig, OptimizeConfig
from jsdedupe.parsing.ts_parser import ParseError
from jsdedupe.presets import DEFAULT_RULES_PATH, load_rules
from jsdedupe.reporting.exporters import export_analysis_json, export_summary_json
from jsdedupe.reporting.markdown import write_analysis_markdown
from jsdedupe.rewrite.optimizer import optimize_file


app = typer.Typer(add_completion=False, help="Find and collapse duplicated JavaScript functions.")
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=False)],
        force=True,
    )


def _rules_path(rules_file: Optional[str]) -> Path:
    if rules_file:
        return Path(rules_file)
    env = os.environ.get("JSDEDUPE_RULES")
    return Path(env) if env else DEFAULT_RULES_PATH


def _usage_error(ctx: typer.Context, message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    typer.echo(ctx.get_help(), err=True)
    raise typer.Exit(code=2)


def _print_groups(report: AnalysisReport, limit: int = 20) -> None:
    table = Table(title="Duplicated functions")
    table.add_column("Hash", overflow="fold")
    table.add_column("Duplicates", justify="right")
    table.add_column("Wasted", justify="right")
    table.add_column("Code", overflow="fold")
    for e in report.entries[:limit]:
        code = e.code if len(e.code) <= 60 else e.code[:57] + "..."
        table.add_row(e.hash[:16], str(e.duplicates), str(e.length), code)
    console.print(table)
    if len(report.entries) > limit:
        console.print(f"... and {len(report.entries) - limit} more")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(code=2)


@app.command("analyze")
def analyze(
    source: str = typer.Argument(..., help="JavaScript file or directory to analyze"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="JSON report path [default: analysis.json]"),
    report_md: Optional[str] = typer.Option(None, "--report-md", help="Also write a markdown report here"),
    summary_json: Optional[str] = typer.Option(None, "--summary-json", help="Also write the summary statistics as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every extraction and grouping step"),
    rules_file: Optional[str] = typer.Option(None, "--rules", help="Rules file [default: presets/rules.yaml]"),
    workers: Optional[int] = typer.Option(None, help="Parallel file parsers in directory mode"),
) -> None:
    """Report groups of identical function bodies."""
    _configure_logging(verbose)
    root = Path(source)
    if not root.exists():
        typer.secho(f"Path not found: {root}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    rules = load_rules(_rules_path(rules_file))
    cfg = AnalyzeConfig.from_rules(
        root,
        rules,
        output=Path(output) if output else None,
        report_md=Path(report_md) if report_md else None,
        workers=workers,
    )

    console.rule("[bold]Analyzing code")
    try:
        run = run_analysis(cfg.source, cfg.include, cfg.exclude, cfg.max_bytes, cfg.workers)
    except ParseError as e:
        typer.secho(f"Parse failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except (OSError, UnicodeDecodeError) as e:
        typer.secho(f"Cannot read {root}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    report = run.report
    for line in report.summary_lines():
        console.print(line)
    if report.failed_files:
        console.print(f"[yellow]Skipped {len(report.failed_files)} unreadable files[/]")
    if report.syntax_error_files:
        console.print(f"[yellow]{len(report.syntax_error_files)} files have syntax errors and were analyzed partially[/]")
    if verbose:
        if report.entries:
            _print_groups(report)
        for err in run.errors:
            where = f"{err.path.as_posix()}:" if err.path else ""
            console.print(f"[yellow]Not normalized: {where}{err.span.start}..{err.span.end} {err.message}[/]")

    out = export_analysis_json(report, cfg.output)
    typer.secho(f"Wrote analysis results to {out}", fg=typer.colors.GREEN)
    if cfg.report_md:
        md = write_analysis_markdown(report, cfg.report_md, source=str(root))
        typer.secho(f"Wrote markdown report to {md}", fg=typer.colors.GREEN)
    if summary_json:
        summary = export_summary_json(report, Path(summary_json))
        typer.secho(f"Wrote summary to {summary}", fg=typer.colors.GREEN)


@app.command("optimize")
def optimize(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="JavaScript file to rewrite"),
    threshold: Optional[int] = typer.Option(None, "--threshold", "-t", min=0, help="Collapse groups with at least this many duplicates"),
    hashes: Optional[str] = typer.Option(None, "--hashes", help="Comma separated content hashes to collapse"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file [default: output.js]"),
    max_iterations: Optional[int] = typer.Option(None, "--max-iterations", min=0, help="Cap on rewrite passes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every splice the rewrite performs"),
    rules_file: Optional[str] = typer.Option(None, "--rules", help="Rules file [default: presets/rules.yaml]"),
) -> None:
    """Hoist duplicated function bodies into single shared declarations."""
    _configure_logging(verbose)
    if (threshold is None) == (hashes is None):
        _usage_error(ctx, "Pass exactly one of --threshold or --hashes.")

    src = Path(source)
    if not src.is_file():
        typer.secho(f"File not found: {src}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    rules = load_rules(_rules_path(rules_file))
    cfg = OptimizeConfig.from_rules(
        src,
        rules,
        output=Path(output) if output else None,
        max_iterations=max_iterations,
        threshold=threshold,
        hashes=select_by_hashes(hashes) if hashes is not None else None,
    )

    try:
        if cfg.uses_threshold:
            console.rule("[bold]Selecting duplicates")
            run = analyze_file(cfg.source)
            cfg.hashes = select_by_threshold(run.functions, cfg.threshold)
            console.print(f"{len(cfg.hashes)} function bodies have at least {cfg.threshold} duplicates")

        console.rule("[bold]Rewriting")
        result = optimize_file(cfg.source, cfg.output, cfg.hashes, cfg.max_iterations)
    except ParseError as e:
        typer.secho(f"Parse failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except (OSError, UnicodeDecodeError) as e:
        typer.secho(f"Cannot read {src}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if result.stop_reason == "iteration_cap":
        console.print(f"Stopped after {result.iterations} iteration(s) (cap reached)")
    else:
        console.print(f"Converged after {result.iterations} iteration(s)")
    console.print(f"Saved {result.saved_bytes} of {result.original_size} bytes")
    typer.secho(f"Wrote uniq code to {cfg.output}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
