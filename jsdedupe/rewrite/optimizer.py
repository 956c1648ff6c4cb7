from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal, Optional, Sequence

from jsdedupe.reporting.exporters import write_source
from jsdedupe.rewrite.pipeline import run_pass

logger = logging.getLogger(__name__)

StopReason = Literal["converged", "iteration_cap"]


@dataclass
class OptimizeResult:
    text: str
    original_size: int
    iterations: int
    stop_reason: StopReason
    replacements: dict[str, str] = field(default_factory=dict)

    @property
    def saved_bytes(self) -> int:
        return self.original_size - len(self.text)


def optimize_source(
    text: str,
    filename: str,
    hashes: Sequence[str],
    max_iterations: int = 5,
    on_iteration: Optional[Callable[[int, str], None]] = None,
) -> OptimizeResult:
    """Repeat rewrite passes until the text stops shrinking or the cap is hit.

    A pass whose output is not strictly shorter than its input is discarded.
    ``on_iteration(i, text)`` runs after every kept pass.
    """
    current = text
    selected = [h for h in hashes if h]
    replacements: dict[str, str] = {}
    iterations = 0
    stop_reason: StopReason = "iteration_cap"

    while iterations < max_iterations:
        logger.debug("Optimization iteration %d/%d", iterations + 1, max_iterations)
        result = run_pass(current, filename, selected, replacements)
        if len(result.text) >= len(current):
            logger.info("No further gain after %d iteration(s)", iterations)
            stop_reason = "converged"
            break
        iterations += 1
        current = result.text
        replacements = result.replacements
        if on_iteration is not None:
            on_iteration(iterations, current)
    else:
        logger.info("Stopped at the iteration cap (%d)", max_iterations)

    return OptimizeResult(
        text=current,
        original_size=len(text),
        iterations=iterations,
        stop_reason=stop_reason,
        replacements=replacements,
    )


def optimize_file(
    source: Path,
    output: Path,
    hashes: Sequence[str],
    max_iterations: int = 5,
) -> OptimizeResult:
    """Optimize ``source`` into ``output``, persisting each kept iteration."""
    text = source.read_text(encoding="utf-8")

    def _persist(i: int, current: str) -> None:
        write_source(current, output)
        logger.info("Iteration %d: wrote %d bytes to %s", i, len(current), output)

    result = optimize_source(text, str(source), hashes, max_iterations, on_iteration=_persist)
    write_source(result.text, output)
    return result
