# Diagnostic reporter: deterministic ordering, text/json/table rendering, exit status.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from rich.console import Console

from policylint.findings.models import Diagnostic, DiagnosticKind, Severity
from policylint.reporting.console import display_path, print_diagnostics

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_CONFIG = 2


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Order by (file path, line, column, rule id, message) regardless of arrival order."""
    return sorted(diagnostics, key=lambda d: d.sort_key())


def exit_status(diagnostics: Iterable[Diagnostic]) -> int:
    """1 if any error-severity diagnostic exists; warnings alone do not fail the run."""
    return EXIT_ERRORS if any(d.severity is Severity.ERROR for d in diagnostics) else EXIT_OK


def format_text_line(diagnostic: Diagnostic, root: Optional[Path] = None) -> str:
    loc = diagnostic.location
    return (
        f"{display_path(loc.path, root)}:{loc.line}:{loc.column}: "
        f"[{diagnostic.severity.value}] {diagnostic.rule_id}: {diagnostic.message}"
    )


def render_text(
    diagnostics: Sequence[Diagnostic],
    root: Optional[Path] = None,
    verbose: bool = False,
) -> str:
    lines: list[str] = []
    for d in sort_diagnostics(diagnostics):
        lines.append(format_text_line(d, root))
        if verbose and d.suggestion:
            lines.append(f"    fix: {d.suggestion}")
    return "\n".join(lines) + "\n" if lines else ""


def render_json(diagnostics: Sequence[Diagnostic], root: Optional[Path] = None) -> str:
    payload = []
    for d in sort_diagnostics(diagnostics):
        item = d.to_json_dict()
        item["file"] = display_path(d.location.path, root)
        payload.append(item)
    return json.dumps(payload, indent=2) + "\n"


class Reporter:
    """
    Renders diagnostics to a stream and computes the process exit status.

    The logger is passed in rather than looked up, so tests can capture it.
    """

    def __init__(
        self,
        stream: TextIO,
        logger: logging.Logger,
        output_format: str = "text",
        verbose: bool = False,
        root: Optional[Path] = None,
    ) -> None:
        self.stream = stream
        self.logger = logger
        self.output_format = output_format
        self.verbose = verbose
        self.root = root

    def report(self, diagnostics: Sequence[Diagnostic]) -> int:
        ordered = sort_diagnostics(diagnostics)
        internal = [d for d in ordered if d.kind is DiagnosticKind.INTERNAL]
        if internal:
            self.logger.error("%d internal rule failure(s) occurred; results are incomplete", len(internal))

        if self.output_format == "json":
            self.stream.write(render_json(ordered, self.root))
        elif self.output_format == "table":
            console = Console(file=self.stream, highlight=False, soft_wrap=True)
            print_diagnostics(ordered, console=console, verbose=self.verbose, root=self.root)
        else:
            self.stream.write(render_text(ordered, self.root, verbose=self.verbose))
        self.stream.flush()

        status = exit_status(ordered)
        self.logger.info(
            "Reported %d diagnostic(s) (%d error, %d warning); exit status %d",
            len(ordered),
            sum(1 for d in ordered if d.severity is Severity.ERROR),
            sum(1 for d in ordered if d.severity is Severity.WARNING),
            status,
        )
        return status
