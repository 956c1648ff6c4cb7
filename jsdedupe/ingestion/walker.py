from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
import fnmatch
from typing import Optional

import pathspec


@dataclass(frozen=True)
class FileMeta:
    path: Path  # relative to the walk root
    bytes: int


JS_SUFFIXES = {".js", ".mjs", ".cjs"}

DEFAULT_INCLUDE = ["**/*.js", "**/*.mjs", "**/*.cjs"]

HARD_EXCLUDE_DIRS = {
    ".git", ".hg", ".svn",
    ".venv", "venv", "env",
    "__pycache__",
    "node_modules",
    ".idea", ".vscode",
    ".cache", ".pytest_cache",
}


def _compile_gitignore(root: Path, extra_excludes: list[str]) -> Optional[pathspec.PathSpec]:
    lines: list[str] = []
    gi = root / ".gitignore"
    if gi.exists():
        lines.extend(gi.read_text(encoding="utf-8", errors="ignore").splitlines())
    lines.extend(extra_excludes or [])
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def _matches_any(path: Path, patterns: list[str]) -> bool:
    # "**/x" must also match at the root
    s = path.as_posix()
    return any(fnmatch.fnmatch(s, pat) or fnmatch.fnmatch(f"./{s}", pat) for pat in patterns)


def walk_repo(
    root: Path,
    include: list[str],
    exclude: list[str],
    max_bytes: int,
    follow_symlinks: bool = False,
) -> list[FileMeta]:
    """JavaScript files under ``root`` that pass the include/exclude filters, sorted by path."""
    root = root.resolve()
    spec = _compile_gitignore(root, exclude)
    results: list[FileMeta] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_symlinks):
        dir_rel = Path(dirpath).relative_to(root)

        pruned = []
        for d in dirnames:
            d_rel = dir_rel / d
            if d in HARD_EXCLUDE_DIRS:
                pruned.append(d)
            elif spec and spec.match_file(d_rel.as_posix() + "/"):
                pruned.append(d)
            elif _matches_any(d_rel, exclude):
                pruned.append(d)
        for d in pruned:
            dirnames.remove(d)

        for fname in filenames:
            rel = dir_rel / fname
            if rel.suffix.lower() not in JS_SUFFIXES:
                continue
            if spec and spec.match_file(rel.as_posix()):
                continue
            if _matches_any(rel, exclude):
                continue
            if not _matches_any(rel, include or DEFAULT_INCLUDE):
                continue
            try:
                size = (root / rel).stat().st_size
            except FileNotFoundError:
                continue
            if size > max_bytes:
                continue
            results.append(FileMeta(path=rel, bytes=int(size)))
    return sorted(results, key=lambda fm: fm.path.as_posix())
