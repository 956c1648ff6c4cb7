from __future__ import annotations

from pathlib import Path

import pytest

from jsdedupe.analysis.runner import analyze_directory, analyze_file, run_analysis
from jsdedupe.ingestion.walker import walk_repo
from jsdedupe.parsing.ts_parser import ParseError

COPY = "var h = function(x){ return x+1 };\n"


@pytest.fixture
def tree(write_js, inc_source, tmp_path) -> Path:
    write_js("a.js", inc_source)
    write_js("lib/b.js", COPY)
    write_js("lib/c.mjs", "export const k = () => 0;\n")
    write_js("node_modules/dep/index.js", COPY)
    write_js("gen/out.js", COPY)
    write_js("notes.txt", COPY)
    write_js(".gitignore", "gen/\n")
    return tmp_path


def _paths(metas) -> list[str]:
    return [m.path.as_posix() for m in metas]


def test_walk_finds_javascript_sorted(tree) -> None:
    assert _paths(walk_repo(tree, ["**/*.js", "**/*.mjs"], [], 10**6)) == ["a.js", "lib/b.js", "lib/c.mjs"]


def test_walk_filters(tree) -> None:
    assert _paths(walk_repo(tree, ["lib/*"], [], 10**6)) == ["lib/b.js", "lib/c.mjs"]
    assert _paths(walk_repo(tree, ["**/*.js"], ["**/lib/**"], 10**6)) == ["a.js"]
    assert _paths(walk_repo(tree, ["**/*.js"], [], 10)) == []


def test_directory_analysis_pools_all_files(tree) -> None:
    run = analyze_directory(tree, workers=2)
    assert [p.as_posix() for p in run.files] == ["a.js", "lib/b.js", "lib/c.mjs"]
    report = run.report
    assert report.total_functions == 5
    (entry,) = report.entries
    assert entry.duplicates == 3
    assert "lib/b.js:8..33" in entry.locations
    assert report.syntax_error_files == []
    assert report.failed_files == []
    assert report.source_size == sum((tree / p).stat().st_size for p in ["a.js", "lib/b.js", "lib/c.mjs"])


def test_directory_analysis_skips_unreadable_files(tree) -> None:
    (tree / "latin.js").write_bytes(b"var s = '\xff';\n")
    run = analyze_directory(tree)
    assert len(run.report.failed_files) == 1
    assert run.report.failed_files[0].startswith("latin.js")


def test_directory_analysis_tolerates_syntax_errors(tree, write_js) -> None:
    write_js("broken.js", "function (\n")
    run = analyze_directory(tree)
    assert "broken.js" in [p.as_posix() for p in run.files]
    assert run.report.entries[0].duplicates == 3
    assert run.report.syntax_error_files == ["broken.js"]
    assert run.report.failed_files == []


def test_single_file_is_strict(write_js) -> None:
    bad = write_js("bad.js", "var x = ;\n")
    with pytest.raises(ParseError):
        run_analysis(bad)


def test_single_file_analysis(write_js, inc_source) -> None:
    run = analyze_file(write_js("one.js", inc_source))
    assert run.report.total_functions == 3
    assert run.report.unique_functions == 1
    assert run.report.wasted_bytes == 63
    assert run.report.source_size == len(inc_source)
